"""
Tests for the PDF status client.
"""
import httpx
import pytest

from digital_content_ws.config import PdfConfig, PdfEndpointsConfig
from digital_content_ws.conftest import mock_http_client
from digital_content_ws.errors import (
    PdfBadStatus,
    PdfConnectionRefused,
    PdfDecodeError,
    PdfTimeout,
    PdfUnavailable,
)
from digital_content_ws.http_client import new_http_client
from digital_content_ws.pdf_client import PdfClient


def make_client(handler, config: PdfConfig = None) -> PdfClient:
    return PdfClient(config or PdfConfig(), client=mock_http_client(handler))


@pytest.mark.asyncio
async def test_status_returned(ctx):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return httpx.Response(200, text="READY")

    status = await make_client(handler).get_status("https://pdf.test", "tsm:1", ctx)

    assert status == "READY"
    assert seen["url"] == "https://pdf.test/tsm:1/status"


@pytest.mark.asyncio
async def test_missing_inputs_skip_request(ctx):
    def handler(request):
        raise AssertionError("no request expected")

    client = make_client(handler)

    with pytest.raises(PdfUnavailable):
        await client.get_status("", "tsm:1", ctx)
    with pytest.raises(PdfUnavailable):
        await client.get_status("https://pdf.test", "", ctx)


@pytest.mark.asyncio
async def test_timeout(ctx):
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(PdfTimeout):
        await make_client(handler).get_status("https://pdf.test", "tsm:1", ctx)


@pytest.mark.asyncio
async def test_connection_refused(ctx):
    def handler(request):
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    with pytest.raises(PdfConnectionRefused):
        await make_client(handler).get_status("https://pdf.test", "tsm:1", ctx)


@pytest.mark.asyncio
async def test_other_transport_error(ctx):
    def handler(request):
        raise httpx.ConnectError("name resolution failed", request=request)

    with pytest.raises(PdfUnavailable) as exc_info:
        await make_client(handler).get_status("https://pdf.test", "tsm:1", ctx)

    assert type(exc_info.value) is PdfUnavailable


@pytest.mark.asyncio
async def test_malformed_base_url(ctx):
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(PdfUnavailable) as exc_info:
        await make_client(handler).get_status("https://pdf.test:notaport", "tsm:1", ctx)

    assert type(exc_info.value) is PdfUnavailable


@pytest.mark.asyncio
async def test_bad_status(ctx):
    client = make_client(lambda request: httpx.Response(404, text="not found"))

    with pytest.raises(PdfBadStatus) as exc_info:
        await client.get_status("https://pdf.test", "tsm:1", ctx)

    assert exc_info.value.code == 404


@pytest.mark.asyncio
async def test_decode_error(ctx):
    client = make_client(lambda request: httpx.Response(200, content=b"\xff\xfe\xfa"))

    with pytest.raises(PdfDecodeError):
        await client.get_status("https://pdf.test", "tsm:1", ctx)


def test_endpoint_urls_only_configured():
    config = PdfConfig(endpoints=PdfEndpointsConfig(status="/status", generate="", download="/download"))
    client = PdfClient(config, client=new_http_client(5, 5))

    assert client.endpoint_urls("https://pdf.test", "tsm:1") == {
        "status": "https://pdf.test/tsm:1/status",
        "download": "https://pdf.test/tsm:1/download",
    }
