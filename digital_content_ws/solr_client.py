"""
Solr client.

Issues a single-document lookup and returns the decoded documents plus
row-count metadata. Every failure surfaces as IndexUnavailable with a
stable message; the underlying cause is only logged.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .config import SolrConfig, timeout_with_minimum
from .context import ClientContext
from .errors import IndexUnavailable
from .http_client import REFUSED, TIMEOUT, classify_transport_error, new_http_client
from .solr_document import SolrDocument

logger = logging.getLogger(__name__)


@dataclass
class SolrResponse:
    documents: List[SolrDocument] = field(default_factory=list)
    total_matches: int = 0
    start: int = 0
    q_time: int = 0
    max_score: float = 0.0

    @property
    def num_rows(self) -> int:
        return len(self.documents)


def nonempty_values(values: List[str]) -> List[str]:
    return [v for v in values if v.strip()]


def identifier_query(identifier: str) -> str:
    """Exact-match query on the id field."""
    escaped = identifier.replace("\\", "\\\\").replace('"', '\\"')
    return f'id:"{escaped}"'


class SolrClient:
    """Single-document lookups against one Solr core."""

    def __init__(self, config: SolrConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.url = f"{config.host}/{config.core}/{config.handler}"
        self.client = client or new_http_client(
            timeout_with_minimum(config.conn_timeout),
            timeout_with_minimum(config.read_timeout),
        )
        logger.info(f"[SERVICE] solr.url = [{self.url}]")

    async def close(self):
        await self.client.aclose()

    def build_request(self, identifier: str) -> Dict[str, Any]:
        """Request body for a lookup constrained to one document."""
        params: Dict[str, Any] = {
            "q": identifier_query(identifier),
            "qt": self.config.params.qt,
            "defType": self.config.params.deftype,
            "start": 0,
            "rows": 1,
        }

        fq = nonempty_values(self.config.params.fq)
        if fq:
            params["fq"] = fq

        fl = nonempty_values(self.config.params.fl)
        if fl:
            params["fl"] = fl

        return {"params": params}

    async def query(self, identifier: str, ctx: ClientContext) -> SolrResponse:
        """
        Look up one record by identifier.

        Args:
            identifier: Record id
            ctx: Request context used for logging

        Returns:
            SolrResponse; an empty documents list means not found

        Raises:
            IndexUnavailable: on any transport, HTTP, decode or Solr error
        """
        body = self.build_request(identifier)

        if ctx.verbose:
            ctx.log(f"[SOLR] req: [{body}]")
        else:
            ctx.log(f"[SOLR] req: [{body['params']['q']}]")

        # the query goes in a JSON body rather than the URL to avoid 414 responses
        start = time.monotonic()
        try:
            response = await self.client.post(self.url, json=body)
        except httpx.HTTPError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            kind = classify_transport_error(e)
            status = 400
            message = str(e)
            if kind == TIMEOUT:
                status = 408
                message = f"{self.url} timed out"
            elif kind == REFUSED:
                status = 503
                message = f"{self.url} refused connection"
            ctx.err(f"[SOLR] client.post() failed: {e}")
            ctx.err(f"Failed response from POST {self.url} - {status}:{message}. Elapsed Time: {elapsed_ms} (ms)")
            raise IndexUnavailable("failed to receive Solr response") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)

        try:
            data = response.json()
        except ValueError as e:
            ctx.err(f"[SOLR] decode failed (http {response.status_code}): {e}")
            ctx.err(f"Failed response from POST {self.url} - 500:{e}. Elapsed Time: {elapsed_ms} (ms)")
            raise IndexUnavailable("failed to decode Solr response") from e

        if not isinstance(data, dict):
            ctx.err(f"[SOLR] unexpected response body type: {type(data).__name__}")
            raise IndexUnavailable("failed to decode Solr response")

        ctx.log(f"Successful Solr response from POST {self.url}. Elapsed Time: {elapsed_ms} (ms)")

        header = data.get("responseHeader") or {}
        solr_status = header.get("status", 0)
        q_time = header.get("QTime", 0)
        log_header = f"[SOLR] res: header: {{ status = {solr_status}, QTime = {q_time} }}"

        if solr_status != 0 or response.status_code != 200:
            error = data.get("error") or {}
            code = error.get("code", response.status_code)
            msg = error.get("msg", "")
            ctx.err(f"{log_header}, error: {{ code = {code}, msg = {msg} }}")
            raise IndexUnavailable(f"{code} - {msg}")

        body_part = data.get("response") or {}
        raw_docs = body_part.get("docs") or []

        result = SolrResponse(
            documents=[SolrDocument.from_dict(doc) for doc in raw_docs if isinstance(doc, dict)],
            total_matches=int(body_part.get("numFound", 0) or 0),
            start=int(body_part.get("start", 0) or 0),
            q_time=int(q_time or 0),
            max_score=float(body_part.get("maxScore", 0.0) or 0.0),
        )

        ctx.log(
            f"{log_header}, body: {{ start = {result.start}, rows = {result.num_rows}, "
            f"total = {result.total_matches}, maxScore = {result.max_score:0.2f} }}"
        )

        return result
