"""
Field projector.

Validates one Solr document against the field specs and slices it into
per-part rows. All array-typed fields must share one length N, the number of
parts; every problem is collected before failing so a single response
reports the whole document's defects.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import EmptyRecord, StructuralInvalid, Violation
from .fields import FieldSpec, FieldSpecSet
from .solr_document import SolrDocument

logger = logging.getLogger(__name__)


def first_element_of(values: List[str]) -> str:
    return values[0] if values else ""


def value_at(values: List[str], spec: FieldSpec, index: int) -> str:
    """The value a field contributes to part `index`."""
    if not spec.is_array:
        return first_element_of(values)
    if index < len(values):
        return values[index]
    # only reachable for custom fields, which skip the length check
    return ""


@dataclass(frozen=True)
class Projection:
    """Result of projecting one document."""
    cardinality: int
    item: Dict[str, str] = field(default_factory=dict)
    rows: List[Dict[str, str]] = field(default_factory=list)
    values: Dict[str, List[str]] = field(default_factory=dict)

    def raw_value(self, spec: FieldSpec, index: int) -> str:
        return value_at(self.values.get(spec.source_tag, []), spec, index)


def check_structure(fields: FieldSpecSet, doc: SolrDocument) -> Optional[int]:
    """
    Verify required fields are present and array lengths agree.

    Returns:
        The common array length, or None when no field is array-typed

    Raises:
        StructuralInvalid: listing every violation found
    """
    violations: List[Violation] = []
    length: Optional[int] = None

    for spec in fields.indexed_fields:
        field_values = doc.values(spec.source_tag)
        field_length = len(field_values)

        if spec.required and field_length == 0:
            violations.append(Violation(kind="missing_required", field=spec.name, tag=spec.source_tag))

        if not spec.is_array:
            continue

        logger.debug(f"{field_length} = len({spec.source_tag})")

        if length is None:
            length = field_length
            continue

        if field_length != length:
            violations.append(Violation(
                kind="length_mismatch",
                field=spec.name,
                tag=spec.source_tag,
                expected=length,
                actual=field_length,
            ))

    if violations:
        raise StructuralInvalid(violations)

    return length


def project(fields: FieldSpecSet, doc: SolrDocument) -> Projection:
    """
    Validate a document and extract item values and per-part rows.

    Only non-empty values are placed in the item and row mappings, in
    configuration order. Custom fields are not projected here, but their
    raw values are kept for the assembler.

    Raises:
        StructuralInvalid: missing required fields or mismatched array lengths
        EmptyRecord: array-typed fields exist but all are empty
    """
    length = check_structure(fields, doc)

    if length == 0:
        raise EmptyRecord()

    # no array-typed fields means no parts
    cardinality = length or 0

    values: Dict[str, List[str]] = {}
    for spec in fields.item_fields + fields.part_fields:
        if spec.source_tag and spec.source_tag not in values:
            values[spec.source_tag] = doc.values(spec.source_tag)

    item: Dict[str, str] = {}
    for spec in fields.item_fields:
        value = first_element_of(values.get(spec.source_tag, []))
        if value != "":
            item[spec.name] = value

    rows: List[Dict[str, str]] = []
    for i in range(cardinality):
        row: Dict[str, str] = {}
        for spec in fields.indexed_part_fields:
            value = value_at(values.get(spec.source_tag, []), spec, i)
            if value != "":
                row[spec.name] = value
        rows.append(row)

    return Projection(cardinality=cardinality, item=item, rows=rows, values=values)
