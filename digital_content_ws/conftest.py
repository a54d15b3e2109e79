"""
Shared fixtures for the digital content service tests.
"""
import time
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import httpx
import jwt
import pytest

from digital_content_ws.config import PdfConfig, ServiceConfig, deep_merge
from digital_content_ws.context import ClientContext
from digital_content_ws.fields import FieldSpec, FieldSpecSet
from digital_content_ws.pdf_client import PdfClient

JWT_KEY = "test-signing-key"

BASE_CONFIG: Dict[str, Any] = {
    "jwt_key": JWT_KEY,
    "solr": {
        "host": "http://solr.test/solr",
        "core": "digital",
        "handler": "select",
        "conn_timeout": "5",
        "read_timeout": "10",
        "params": {
            "qt": "search",
            "deftype": "lucene",
            "fq": ["shadowed_location_f:VISIBLE", ""],
            "fl": ["*", "score"],
        },
    },
    "pdf": {"endpoints": {"status": "/status", "generate": "", "download": "/download"}},
    "iiif": {"manifest_url_prefix": "https://iiif.test/pid-"},
    "item_fields": [
        {"name": "manifest", "field": "url_iiif_manifest_stored"},
    ],
    "fields": [
        {"name": "pid", "field": "alternate_id_a", "array": True, "required": True},
        {"name": "call_number", "field": "individual_call_number_a", "array": True},
        {"name": "iiif_manifest_url", "custom": True},
        {"name": "thumbnail_url", "field": "thumbnail_url_a", "array": True},
        {"name": "pdf", "field": "pdf_url_a", "array": True, "custom": True},
    ],
}

SAMPLE_DOC: Dict[str, Any] = {
    "id": "rec1",
    "alternate_id_a": ["tsm:1", "tsm:2"],
    "individual_call_number_a": ["MSS 1 v.1", "MSS 1 v.2"],
    "thumbnail_url_a": ["https://thumbs.test/1.jpg", "https://thumbs.test/2.jpg"],
    "pdf_url_a": ["https://pdf.test", "https://pdf.test"],
    "url_iiif_manifest_stored": "https://iiif.test/rec1/manifest",
    "score": 3.5,
}


def make_config(**overrides) -> ServiceConfig:
    """BASE_CONFIG with overrides deep-merged on top (lists replace)."""
    return ServiceConfig.model_validate(deep_merge(BASE_CONFIG, overrides))


def solr_body(docs, status: int = 0) -> Dict[str, Any]:
    return {
        "responseHeader": {"status": status, "QTime": 3},
        "response": {"numFound": len(docs), "start": 0, "maxScore": 1.0, "docs": docs},
    }


def make_token(key: str = JWT_KEY, **claims) -> str:
    payload = {"userId": "tester", "exp": int(time.time()) + 300}
    payload.update(claims)
    return jwt.encode(payload, key, algorithm="HS256")


def mock_http_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def ctx() -> ClientContext:
    return ClientContext()


@pytest.fixture
def example_fields() -> FieldSpecSet:
    """pid (scalar, required), title (array, required), thumb (array)"""
    return FieldSpecSet(part_fields=(
        FieldSpec(name="pid", source_tag="id", required=True),
        FieldSpec(name="title", source_tag="title_a", required=True, is_array=True),
        FieldSpec(name="thumb", source_tag="thumbnail_url_a", is_array=True),
    ))


@pytest.fixture
def pdf_client() -> PdfClient:
    """PdfClient whose status lookup is an AsyncMock answering READY."""
    client = PdfClient(PdfConfig(), client=MagicMock())
    client.get_status = AsyncMock(return_value="READY")
    return client
