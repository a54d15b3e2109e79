"""
Field specifications.

Turns the configured field list into immutable FieldSpecs. Custom fields are
resolved once, here, into one of a closed set of derivations; an unknown
custom name is a startup error, never a per-request one.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from .config import FieldConfig, ServiceConfig
from .errors import ConfigurationError
from .solr_document import is_known_tag

logger = logging.getLogger(__name__)

ITEM_LEVEL = "item"
PART_LEVEL = "part"

VALID_GROUP_KEYS = ("parts", "items")


@dataclass(frozen=True)
class ManifestUrl:
    """iiif_manifest_url: prefix + the part identifier"""
    prefix: str


@dataclass(frozen=True)
class PdfStatus:
    """pdf_status: {"status": <status>}"""


@dataclass(frozen=True)
class PdfDetails:
    """pdf: {"urls": {...}, "status": <status>}"""


Derivation = Union[ManifestUrl, PdfStatus, PdfDetails]

CUSTOM_FIELD_NAMES = ("iiif_manifest_url", "pdf_status", "pdf")


@dataclass(frozen=True)
class FieldSpec:
    name: str
    source_tag: str
    required: bool = False
    is_array: bool = False
    derivation: Optional[Derivation] = None

    @property
    def is_custom(self) -> bool:
        return self.derivation is not None

    @property
    def needs_pdf(self) -> bool:
        return isinstance(self.derivation, (PdfStatus, PdfDetails))


@dataclass(frozen=True)
class FieldSpecSet:
    """Item-level fields are emitted once; part-level fields once per part."""
    item_fields: Tuple[FieldSpec, ...] = ()
    part_fields: Tuple[FieldSpec, ...] = ()
    identifier_field: str = "pid"
    group_key: str = "parts"

    @property
    def indexed_part_fields(self) -> Tuple[FieldSpec, ...]:
        return tuple(f for f in self.part_fields if not f.is_custom)

    @property
    def custom_part_fields(self) -> Tuple[FieldSpec, ...]:
        return tuple(f for f in self.part_fields if f.is_custom)

    @property
    def indexed_fields(self) -> Tuple[FieldSpec, ...]:
        """Every non-custom field, item-level first, in declaration order."""
        return tuple(f for f in self.item_fields + self.part_fields if not f.is_custom)


def _resolve_derivation(field: FieldConfig, config: ServiceConfig, problems: List[str]) -> Optional[Derivation]:
    if field.name == "iiif_manifest_url":
        if not config.iiif.manifest_url_prefix:
            problems.append("missing iiif manifest url prefix for custom field iiif_manifest_url")
        return ManifestUrl(prefix=config.iiif.manifest_url_prefix)

    if field.name in ("pdf_status", "pdf"):
        if not field.field:
            problems.append(f"custom field {field.name} needs a solr field holding the pdf url")
        return PdfStatus() if field.name == "pdf_status" else PdfDetails()

    problems.append(f"unhandled custom field: [{field.name}] (expected one of {', '.join(CUSTOM_FIELD_NAMES)})")
    return None


def _build_spec(field: FieldConfig, level: str, config: ServiceConfig, problems: List[str]) -> Optional[FieldSpec]:
    if not field.name:
        problems.append("missing field name")
        return None

    derivation = None

    if field.custom:
        if level == ITEM_LEVEL:
            problems.append(f"item-level field {field.name} cannot be custom")
            return None
        derivation = _resolve_derivation(field, config, problems)
        if derivation is None:
            return None
    elif not field.field:
        problems.append(f"missing solr field for {field.name}")
        return None

    if field.array and level == ITEM_LEVEL:
        problems.append(f"item-level field {field.name} cannot be array-typed")

    if field.field and not is_known_tag(field.field):
        problems.append(f"field not found in Solr document tags: [{field.field}]")

    return FieldSpec(
        name=field.name,
        source_tag=field.field,
        required=field.required,
        is_array=field.array,
        derivation=derivation,
    )


def build_field_spec_set(config: ServiceConfig) -> FieldSpecSet:
    """
    Validate the configuration and resolve the field list.

    Every problem is logged and collected before failing, so one startup
    attempt reports the whole list.

    Raises:
        ConfigurationError: if anything is missing or unknown
    """
    problems: List[str] = []

    required_values = {
        "solr host": config.solr.host,
        "solr core": config.solr.core,
        "solr handler": config.solr.handler,
        "solr param qt": config.solr.params.qt,
        "solr param deftype": config.solr.params.deftype,
    }
    for label, value in required_values.items():
        if not value:
            problems.append(f"missing {label}")

    if config.group_key not in VALID_GROUP_KEYS:
        problems.append(f"group key must be one of {', '.join(VALID_GROUP_KEYS)}: [{config.group_key}]")

    item_fields = [_build_spec(f, ITEM_LEVEL, config, problems) for f in config.item_fields]
    part_fields = [_build_spec(f, PART_LEVEL, config, problems) for f in config.fields]

    seen: Dict[str, int] = {}
    for spec in item_fields + part_fields:
        if spec is None:
            continue
        seen[spec.name] = seen.get(spec.name, 0) + 1
    for name, count in seen.items():
        if count > 1:
            problems.append(f"duplicate field name: [{name}]")

    indexed_part_names = [s.name for s in part_fields if s is not None and not s.is_custom]
    if any(s is not None and s.is_custom for s in part_fields) and config.identifier_field not in indexed_part_names:
        problems.append(f"identifier field [{config.identifier_field}] must be a non-custom part field")

    for spec in item_fields:
        if spec is not None and spec.name in ("id", config.group_key):
            problems.append(f"item-level field name is reserved: [{spec.name}]")

    if problems:
        for problem in problems:
            logger.error(f"[VALIDATE] {problem}")
        logger.error("[VALIDATE] configuration rejected due to error(s) above")
        raise ConfigurationError(problems)

    return FieldSpecSet(
        item_fields=tuple(item_fields),
        part_fields=tuple(part_fields),
        identifier_field=config.identifier_field,
        group_key=config.group_key,
    )
