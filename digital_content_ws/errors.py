"""
Error taxonomy for the digital content pipeline.

Every request-path failure is a DigitalContentError carrying the HTTP status
the route layer answers with. ConfigurationError is raised at startup only.
"""
from dataclasses import dataclass
from typing import List, Optional


class DigitalContentError(Exception):
    """Base class for failures that end a request."""
    status_code = 500


class IndexUnavailable(DigitalContentError):
    """Solr timed out, refused, or answered with something unusable."""


class RecordNotFound(DigitalContentError):
    """Solr returned zero documents for the identifier."""

    # 500 matches the deployed behaviour; see DESIGN.md
    status_code = 500

    def __init__(self, message: str = "item not found"):
        super().__init__(message)


@dataclass(frozen=True)
class Violation:
    """One structural problem found while scanning a document."""
    kind: str           # "missing_required" | "length_mismatch"
    field: str          # output field name
    tag: str            # source tag in the Solr document
    expected: Optional[int] = None
    actual: Optional[int] = None

    def __str__(self):
        if self.kind == "missing_required":
            return f"missing required field {self.field} ({self.tag})"
        return f"length mismatch for {self.field} ({self.tag}): expected {self.expected}, got {self.actual}"


class StructuralInvalid(DigitalContentError):
    """The document failed required-field or array-length checks."""

    def __init__(self, violations: List[Violation]):
        self.violations = list(violations)
        messages = []
        if any(v.kind == "missing_required" for v in self.violations):
            messages.append("missing required digital content field(s)")
        if any(v.kind == "length_mismatch" for v in self.violations):
            messages.append("array-type field length mismatch")
        detail = "; ".join(str(v) for v in self.violations)
        super().__init__(f"{', '.join(messages)}: {detail}")


class EmptyRecord(DigitalContentError):
    """All array-typed fields are empty, so the record has no parts."""

    def __init__(self, message: str = "no digital parts found in this item"):
        super().__init__(message)


class PdfUnavailable(DigitalContentError):
    """PDF status could not be obtained. Never fatal to a request."""


class PdfTimeout(PdfUnavailable):
    pass


class PdfConnectionRefused(PdfUnavailable):
    pass


class PdfBadStatus(PdfUnavailable):

    def __init__(self, code: int):
        self.code = code
        super().__init__(f"received PDF status response code {code}")


class PdfDecodeError(PdfUnavailable):
    pass


class ConfigurationError(Exception):
    """Invalid service configuration, collected in full before raising."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("invalid configuration: " + "; ".join(self.problems))
