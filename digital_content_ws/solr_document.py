"""
Solr document model.

DOCUMENT_FIELDS is the fixed table of tags this service knows how to read.
Lookups go through the table, so a tag outside it is caught when the field
configuration is validated rather than per request.
"""
from typing import Any, Dict, List

STRING = "string"
STRINGS = "strings"
NUMBER = "number"

DOCUMENT_FIELDS: Dict[str, str] = {
    "alternate_id_a": STRINGS,
    "id": STRING,
    "individual_call_number_a": STRINGS,
    "pdf_url_a": STRINGS,
    "thumbnail_url_a": STRINGS,
    "title_a": STRINGS,
    "url_iiif_manifest_stored": STRING,
    "rights_wrapper_url_a": STRINGS,
    "score": NUMBER,
}


def is_known_tag(tag: str) -> bool:
    return tag in DOCUMENT_FIELDS


def _to_strings(kind: str, value: Any) -> List[str]:
    if value is None:
        return []

    if kind == STRINGS:
        if isinstance(value, list):
            return [str(v) for v in value]
        # single value where a multi-valued field was expected
        return [str(value)] if str(value) != "" else []

    if kind == NUMBER:
        try:
            return ["%0.8f" % float(value)]
        except (TypeError, ValueError):
            return []

    if isinstance(value, list):
        value = value[0] if value else ""
    value = str(value)
    return [value] if value != "" else []


class SolrDocument:
    """Read-only view over one document returned by Solr."""

    def __init__(self, values: Dict[str, List[str]]):
        self._values = values

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SolrDocument":
        """Keep the known tags of a raw Solr doc, normalized to string lists."""
        values = {
            tag: _to_strings(kind, raw.get(tag))
            for tag, kind in DOCUMENT_FIELDS.items()
            if tag in raw
        }
        return cls(values)

    def values(self, tag: str) -> List[str]:
        """All values for a tag as strings; absent or unknown tags give []."""
        return list(self._values.get(tag, []))

    def to_dict(self) -> Dict[str, List[str]]:
        return {tag: list(values) for tag, values in self._values.items()}
