"""
Service context and request pipelines.

ServiceContext is built once at startup and passed to every handler; it holds
the validated configuration, resolved field specs and the shared clients.
"""
import glob
import logging
import os
import platform
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .assembler import assemble
from .config import ServiceConfig
from .context import ClientContext
from .errors import DigitalContentError, RecordNotFound
from .fields import FieldSpecSet, build_field_spec_set
from .pdf_client import PdfClient
from .solr_client import SolrClient, SolrResponse

logger = logging.getLogger(__name__)

PING_IDENTIFIER = "pingtest"


@dataclass(frozen=True)
class VersionInfo:
    build: str
    python_version: str
    git_commit: str

    def to_dict(self) -> Dict[str, str]:
        data = {"build": self.build, "python_version": self.python_version, "git_commit": self.git_commit}
        return {k: v for k, v in data.items() if v}


def load_version(directory: str = ".") -> VersionInfo:
    """Build tag comes from a single buildtag.* file, the commit from GIT_COMMIT."""
    build = "unknown"
    files = glob.glob(os.path.join(directory, "buildtag.*"))
    if len(files) == 1:
        build = os.path.basename(files[0]).replace("buildtag.", "", 1)

    version = VersionInfo(
        build=build,
        python_version=f"{platform.python_version()} {sys.platform}/{platform.machine()}",
        git_commit=os.getenv("GIT_COMMIT", ""),
    )

    logger.info(f"[SERVICE] version.build          = [{version.build}]")
    logger.info(f"[SERVICE] version.python_version = [{version.python_version}]")
    logger.info(f"[SERVICE] version.git_commit     = [{version.git_commit}]")

    return version


@dataclass(frozen=True)
class ServiceContext:
    config: ServiceConfig
    fields: FieldSpecSet
    version: VersionInfo
    solr: SolrClient
    pdf: PdfClient

    async def close(self):
        await self.solr.close()
        await self.pdf.close()


def build_service_context(
    config: ServiceConfig,
    solr: Optional[SolrClient] = None,
    pdf: Optional[PdfClient] = None
) -> ServiceContext:
    """
    Validate configuration and create the shared clients.

    Raises:
        ConfigurationError: if the configuration is invalid
    """
    fields = build_field_spec_set(config)

    return ServiceContext(
        config=config,
        fields=fields,
        version=load_version(),
        solr=solr or SolrClient(config.solr),
        pdf=pdf or PdfClient(config.pdf),
    )


async def fetch_record(svc: ServiceContext, identifier: str, ctx: ClientContext) -> SolrResponse:
    try:
        return await svc.solr.query(identifier, ctx)
    except DigitalContentError as e:
        ctx.err(f"query execution error: {e}")
        raise


async def handle_item_request(svc: ServiceContext, identifier: str, ctx: ClientContext) -> Dict[str, Any]:
    """
    fetch -> validate -> project -> derive.

    Raises:
        DigitalContentError: the first stage to fail ends the request
    """
    response = await fetch_record(svc, identifier, ctx)

    if response.num_rows == 0:
        error = RecordNotFound()
        ctx.err(str(error))
        raise error

    try:
        return await assemble(svc.fields, response.documents[0], identifier, svc.pdf, ctx)
    except DigitalContentError as e:
        ctx.err(str(e))
        raise


async def handle_ping_request(svc: ServiceContext, ctx: ClientContext) -> SolrResponse:
    """Run the Solr lookup for a synthetic identifier; any answer is healthy."""
    return await fetch_record(svc, PING_IDENTIFIER, ctx)
