"""Data models for the normalization layer.

Normalizers never raise: problems are reported as warning or error strings
alongside the normalized value so the caller decides what to persist.
"""

from dataclasses import dataclass, field
from typing import Any, List

from property_import.domain.models import ExtractedProperty


@dataclass
class FieldResult:
    """Outcome of normalizing a single field.

    Attributes:
        data: Normalized value, or None when the input was unusable/absent
        warnings: Non-blocking observations (record is still persistable)
        errors: Blocking problems (record must not be persisted)
    """

    data: Any = None
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class PropertyNormalization:
    """Aggregate outcome of normalizing a whole candidate record.

    Attributes:
        property: Normalized copy of the candidate (the input is left untouched)
        warnings: Concatenated field warnings, in field order
        errors: Concatenated field errors, in field order
    """

    property: ExtractedProperty
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def is_persistable(self) -> bool:
        """Whether the record may be written (no blocking errors)."""
        return not self.errors
