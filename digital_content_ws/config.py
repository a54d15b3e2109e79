"""
Service configuration.

The configuration is JSON. It is assembled from an optional file plus any
number of DIGITAL_CONTENT_WS_JSON_* environment variables, applied in sorted
name order and deep-merged, so deployments can split it into fragments
(one for Solr, one for the field list, ...).
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "DIGITAL_CONTENT_WS"
CONFIG_FILE_ENV = f"{ENV_PREFIX}_CONFIG_FILE"
JSON_ENV_PREFIX = f"{ENV_PREFIX}_JSON_"
SOLR_HOST_ENV = f"{ENV_PREFIX}_SOLR_HOST"

MIN_TIMEOUT_SECONDS = 5


class _ConfigModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class SolrParamsConfig(_ConfigModel):
    """Fixed Solr request parameters"""
    qt: str = Field(default="", description="Solr request handler parameter")
    deftype: str = Field(default="", description="Solr query parser (defType)")
    fq: List[str] = Field(default_factory=list, description="Filter queries")
    fl: List[str] = Field(default_factory=list, description="Fields to return")


class SolrConfig(_ConfigModel):
    """Solr connection configuration"""
    host: str = Field(default="", description="Solr base URL, e.g. http://solr:8983/solr")
    core: str = Field(default="", description="Solr core/collection name")
    handler: str = Field(default="", description="Request handler path, e.g. select")
    conn_timeout: str = Field(default="", description="Connect timeout in seconds")
    read_timeout: str = Field(default="", description="Read timeout in seconds")
    params: SolrParamsConfig = Field(default_factory=SolrParamsConfig)


class PdfEndpointsConfig(_ConfigModel):
    """Paths appended to {pdf_url}/{pid}"""
    status: str = Field(default="/status", description="PDF status endpoint")
    generate: str = Field(default="", description="PDF generation endpoint")
    download: str = Field(default="/download", description="PDF download endpoint")


class PdfConfig(_ConfigModel):
    """PDF service configuration (base URLs come from each document)"""
    conn_timeout: str = Field(default="", description="Connect timeout in seconds")
    read_timeout: str = Field(default="", description="Read timeout in seconds")
    endpoints: PdfEndpointsConfig = Field(default_factory=PdfEndpointsConfig)


class IiifConfig(_ConfigModel):
    """IIIF manifest derivation"""
    manifest_url_prefix: str = Field(default="", description="Prefix joined with the part identifier")


class FieldConfig(_ConfigModel):
    """One output field"""
    name: str = Field(default="", description="Output field name")
    field: str = Field(default="", description="Source tag in the Solr document")
    required: bool = Field(default=False, description="Fail the request when the tag has no values")
    custom: bool = Field(default=False, description="Value is derived by name instead of copied")
    array: bool = Field(default=False, description="One value per part")


class ServiceConfig(_ConfigModel):
    """Complete configuration"""
    port: str = Field(default="8080", description="HTTP listen port")
    jwt_key: str = Field(default="", description="HS256 signing key for bearer tokens")
    solr: SolrConfig = Field(default_factory=SolrConfig)
    pdf: PdfConfig = Field(default_factory=PdfConfig)
    iiif: IiifConfig = Field(default_factory=IiifConfig)
    identifier_field: str = Field(default="pid", description="Output field holding each part's identifier")
    group_key: str = Field(default="parts", description="Key of the repeated group in the response")
    item_fields: List[FieldConfig] = Field(default_factory=list, description="Fields emitted once per record")
    fields: List[FieldConfig] = Field(default_factory=list, description="Fields emitted once per part")


def timeout_with_minimum(value: str, minimum: int = MIN_TIMEOUT_SECONDS) -> int:
    """Parse a timeout in whole seconds, never going below the minimum."""
    try:
        seconds = int(str(value).strip())
    except ValueError:
        return minimum
    return max(seconds, minimum)


def deep_merge(existing: dict, incoming: dict) -> dict:
    """Merge incoming into existing, preserving existing keys not in incoming."""
    result = existing.copy()
    for key, value in incoming.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def sorted_json_env_vars(environ: Dict[str, str]) -> List[str]:
    return sorted(key for key in environ if key.startswith(JSON_ENV_PREFIX))


def redacted(config: ServiceConfig) -> Dict[str, Any]:
    data = config.model_dump()
    if data.get("jwt_key"):
        data["jwt_key"] = "********"
    return data


def load_config(environ: Optional[Dict[str, str]] = None) -> ServiceConfig:
    """
    Build the service configuration from the environment.

    Args:
        environ: Mapping to read instead of os.environ (tests)

    Returns:
        Validated ServiceConfig

    Raises:
        ConfigurationError: listing every fragment that failed to decode
    """
    if environ is None:
        environ = dict(os.environ)

    problems: List[str] = []
    merged: Dict[str, Any] = {}

    config_file = environ.get(CONFIG_FILE_ENV, "")
    if config_file:
        logger.info(f"[CONFIG] loading {config_file} ...")
        try:
            with open(Path(config_file)) as f:
                data = json.load(f)
            if not isinstance(data, dict):
                problems.append(f"{config_file}: top level must be a JSON object")
            else:
                merged = deep_merge(merged, data)
        except (OSError, json.JSONDecodeError) as e:
            problems.append(f"error decoding {config_file}: {e}")

    for env in sorted_json_env_vars(environ):
        logger.info(f"[CONFIG] loading {env} ...")
        raw = environ.get(env, "")
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            problems.append(f"error decoding {env}: {e}")
            continue
        if not isinstance(data, dict):
            problems.append(f"error decoding {env}: top level must be a JSON object")
            continue
        merged = deep_merge(merged, data)

    # optional convenience override for deployment tooling
    host = environ.get(SOLR_HOST_ENV, "")
    if host:
        merged = deep_merge(merged, {"solr": {"host": host}})

    if problems:
        for problem in problems:
            logger.error(problem)
        raise ConfigurationError(problems)

    try:
        config = ServiceConfig.model_validate(merged)
    except ValidationError as e:
        details = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        for detail in details:
            logger.error(f"[CONFIG] {detail}")
        raise ConfigurationError(details) from e

    logger.info(f"[CONFIG] composite json:\n{json.dumps(redacted(config))}")

    return config
