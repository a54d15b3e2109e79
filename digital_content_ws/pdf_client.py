"""
PDF status client.

Each document carries its own PDF service base URL, so the client holds only
the endpoint paths and one pooled httpx client.
"""
import logging
import time
from typing import Dict, Optional

import httpx

from .config import PdfConfig, timeout_with_minimum
from .context import ClientContext
from .errors import PdfBadStatus, PdfConnectionRefused, PdfDecodeError, PdfTimeout, PdfUnavailable
from .http_client import REFUSED, TIMEOUT, classify_transport_error, new_http_client

logger = logging.getLogger(__name__)


class PdfClient:
    """Fetches PDF generation status for one part at a time."""

    def __init__(self, config: PdfConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.client = client or new_http_client(
            timeout_with_minimum(config.conn_timeout),
            timeout_with_minimum(config.read_timeout),
        )

    async def close(self):
        await self.client.aclose()

    def endpoint_urls(self, base_url: str, pid: str) -> Dict[str, str]:
        """URLs for the configured endpoints, keyed generate / status / download."""
        endpoints = self.config.endpoints
        urls = {}
        for name, path in (("generate", endpoints.generate), ("status", endpoints.status), ("download", endpoints.download)):
            if path:
                urls[name] = f"{base_url}/{pid}{path}"
        return urls

    async def get_status(self, base_url: str, pid: str, ctx: ClientContext) -> str:
        """
        Fetch the status string for one part.

        Raises:
            PdfUnavailable: missing inputs or unclassified transport failure
            PdfTimeout, PdfConnectionRefused, PdfBadStatus, PdfDecodeError
        """
        if not base_url or not pid:
            raise PdfUnavailable("pdf url or pid is missing")

        url = f"{base_url}/{pid}{self.config.endpoints.status}"

        start = time.monotonic()
        try:
            response = await self.client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            kind = classify_transport_error(e)
            ctx.err(f"[PDF] client.get() failed: {e}")
            if kind == TIMEOUT:
                ctx.err(f"Failed response from GET {url} - 408:{url} timed out. Elapsed Time: {elapsed_ms} (ms)")
                raise PdfTimeout(f"{url} timed out") from e
            if kind == REFUSED:
                ctx.err(f"Failed response from GET {url} - 503:{url} refused connection. Elapsed Time: {elapsed_ms} (ms)")
                raise PdfConnectionRefused(f"{url} refused connection") from e
            ctx.err(f"Failed response from GET {url} - 400:{e}. Elapsed Time: {elapsed_ms} (ms)")
            raise PdfUnavailable("failed to receive PDF status response") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)

        if response.status_code != 200:
            ctx.err(f"[PDF] unexpected status code {response.status_code}")
            ctx.err(f"Failed response from GET {url} - {response.status_code}. Elapsed Time: {elapsed_ms} (ms)")
            raise PdfBadStatus(response.status_code)

        try:
            status = response.content.decode("utf-8")
        except UnicodeDecodeError as e:
            ctx.err(f"[PDF] error reading pdf status response ({e})")
            raise PdfDecodeError("error reading pdf status response") from e

        ctx.log(f"Successful PDF response from GET {url}. Elapsed Time: {elapsed_ms} (ms)")

        return status
