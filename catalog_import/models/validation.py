from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

"""Validation result models.

ValidationIssue is the audit unit shown to the user; ValidationResult is the
aggregate computed once per dataset. Only ERROR issues block apply.
"""

__all__ = [
    "Severity",
    "ValidationIssue",
    "DuplicateGroup",
    "KeywordConflict",
    "ValidationResult",
]


class Severity(str, Enum):
    """Issue severity. ERROR is the only level that blocks apply."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationIssue:
    row: int  # 0 = dataset-level issue
    field: str
    message: str
    severity: Severity

    @property
    def is_blocking(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "field": self.field,
            "message": self.message,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class DuplicateGroup:
    """Rows sharing one handle (exact) or title (case-insensitive)."""
    value: str
    rows: tuple[int, ...]

    @property
    def first_row(self) -> int:
        return self.rows[0]


@dataclass(frozen=True)
class KeywordConflict:
    keyword: str
    products: tuple[str, ...]  # product titles, "Row N" when the title is empty


@dataclass(frozen=True)
class ValidationResult:
    """Aggregate validation outcome for one dataset.

    `is_valid` is derived from `issues` so the gate can never disagree with
    the issue list.
    """
    total_rows: int
    valid_rows: int
    issues: tuple[ValidationIssue, ...] = ()
    duplicate_handles: tuple[DuplicateGroup, ...] = ()
    duplicate_titles: tuple[DuplicateGroup, ...] = ()
    keyword_conflicts: tuple[KeywordConflict, ...] = ()
    missing_required_fields: tuple[int, ...] = ()  # row numbers
    missing_seo_fields: tuple[int, ...] = ()  # row numbers without tags

    @property
    def is_valid(self) -> bool:
        return self.error_count == 0

    def by_severity(self, severity: Severity) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is severity]

    @property
    def error_count(self) -> int:
        return len(self.by_severity(Severity.ERROR))

    @property
    def warning_count(self) -> int:
        return len(self.by_severity(Severity.WARNING))

    @property
    def info_count(self) -> int:
        return len(self.by_severity(Severity.INFO))

    def to_dict(self) -> dict[str, Any]:
        """Plain data for a presentation layer."""
        return {
            "isValid": self.is_valid,
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "issues": [i.to_dict() for i in self.issues],
            "duplicateHandles": [
                {"handle": g.value, "rows": list(g.rows)} for g in self.duplicate_handles
            ],
            "duplicateTitles": [
                {"title": g.value, "rows": list(g.rows)} for g in self.duplicate_titles
            ],
            "keywordConflicts": [
                {"keyword": c.keyword, "products": list(c.products)} for c in self.keyword_conflicts
            ],
            "missingRequiredFields": list(self.missing_required_fields),
            "missingSeoFields": list(self.missing_seo_fields),
        }
