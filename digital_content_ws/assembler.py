"""
Record assembler.

Builds the response record from a projection. Pass 1 (indexed values) is
done by the projector; Pass 2 here derives custom fields, which may read the
part's identifier assigned in Pass 1. PDF lookups for all parts run
concurrently and are joined back by part index.
"""
import asyncio
import logging
from typing import Any, Dict, List, Tuple

from .context import ClientContext
from .errors import PdfUnavailable
from .fields import FieldSpec, FieldSpecSet, ManifestUrl, PdfDetails, PdfStatus
from .pdf_client import PdfClient
from .projector import Projection, project
from .solr_document import SolrDocument

logger = logging.getLogger(__name__)


async def _pdf_status_or_empty(pdf_client: PdfClient, base_url: str, pid: str, ctx: ClientContext) -> str:
    """PDF status, or "" when the PDF service cannot answer."""
    try:
        return await pdf_client.get_status(base_url, pid, ctx)
    except PdfUnavailable as e:
        ctx.err(f"[PDF] status unavailable for {pid}: {e}")
        return ""


def _pdf_value(spec: FieldSpec, pdf_client: PdfClient, base_url: str, pid: str, status: str) -> Dict[str, Any]:
    if isinstance(spec.derivation, PdfDetails):
        return {"urls": pdf_client.endpoint_urls(base_url, pid), "status": status}
    return {"status": status}


async def derive_custom_fields(
    fields: FieldSpecSet,
    projection: Projection,
    pdf_client: PdfClient,
    ctx: ClientContext
) -> List[Dict[str, Any]]:
    """
    Compute custom field values for every part.

    Returns:
        One mapping per part holding only the custom fields that apply
    """
    derived: List[Dict[str, Any]] = [{} for _ in projection.rows]
    lookups: List[Tuple[int, FieldSpec, str, str]] = []

    for i, row in enumerate(projection.rows):
        pid = row.get(fields.identifier_field, "")

        for spec in fields.custom_part_fields:
            derivation = spec.derivation

            if isinstance(derivation, ManifestUrl):
                if pid:
                    derived[i][spec.name] = f"{derivation.prefix}{pid}"
                continue

            if isinstance(derivation, (PdfStatus, PdfDetails)):
                base_url = projection.raw_value(spec, i)
                if not base_url or not pid:
                    continue
                lookups.append((i, spec, base_url, pid))

    if lookups:
        statuses = await asyncio.gather(*[
            _pdf_status_or_empty(pdf_client, base_url, pid, ctx)
            for _, _, base_url, pid in lookups
        ])
        for (i, spec, base_url, pid), status in zip(lookups, statuses):
            derived[i][spec.name] = _pdf_value(spec, pdf_client, base_url, pid, status)

    return derived


def _in_configured_order(specs, *sources: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for source in sources:
        merged.update(source)
    return {spec.name: merged[spec.name] for spec in specs if spec.name in merged}


async def assemble(
    fields: FieldSpecSet,
    doc: SolrDocument,
    identifier: str,
    pdf_client: PdfClient,
    ctx: ClientContext
) -> Dict[str, Any]:
    """
    Project a document and build the nested response record.

    Returns:
        {"id": identifier, <item fields>, <group key>: [parts...]}

    Raises:
        StructuralInvalid, EmptyRecord: from projection
    """
    projection = project(fields, doc)

    ctx.log(f"projected {projection.cardinality} part(s) for {identifier}")

    derived = await derive_custom_fields(fields, projection, pdf_client, ctx)

    parts = [
        _in_configured_order(fields.part_fields, row, extra)
        for row, extra in zip(projection.rows, derived)
    ]

    record: Dict[str, Any] = {"id": identifier}
    record.update(_in_configured_order(fields.item_fields, projection.item))
    record[fields.group_key] = parts

    return record
