from __future__ import annotations

import logging
from collections.abc import Sequence

from ..models.canonical_row import CanonicalRow, sheet_row_number
from ..models.validation import (
    DuplicateGroup,
    KeywordConflict,
    Severity,
    ValidationIssue,
    ValidationResult,
)

"""Validation engine.

Independent rule passes over the full list of canonical rows. Each rule
owns its own frequency map and returns its issues; validate() concatenates
them in a fixed order so output is deterministic:

1. required fields (error)
2. SEO completeness (warning)
3. duplicate handle (error)
4. duplicate title (warning)
5. keyword over-concentration (warning)

Only error issues block apply. Validation never raises.
"""

__all__ = [
    "KEYWORD_CONFLICT_THRESHOLD",
    "MIN_DESCRIPTION_LENGTH",
    "validate",
]

logger = logging.getLogger(__name__)

KEYWORD_CONFLICT_THRESHOLD = 5  # 5 件までは許容、6 件以上で警告
MIN_DESCRIPTION_LENGTH = 50


def _format_rows(rows: Sequence[int]) -> str:
    return ", ".join(str(r) for r in rows)


def _check_required_fields(
    rows: Sequence[CanonicalRow],
) -> tuple[list[ValidationIssue], list[int]]:
    issues: list[ValidationIssue] = []
    missing_rows: list[int] = []
    for idx, row in enumerate(rows):
        missing = row.missing_required()
        if not missing:
            continue
        row_no = sheet_row_number(idx)
        missing_rows.append(row_no)
        issues.append(
            ValidationIssue(
                row=row_no,
                field=",".join(missing),
                message=f"Missing required fields: {', '.join(missing)}",
                severity=Severity.ERROR,
            )
        )
    return issues, missing_rows


def _check_seo_completeness(
    rows: Sequence[CanonicalRow],
) -> tuple[list[ValidationIssue], list[int]]:
    issues: list[ValidationIssue] = []
    missing_tags: list[int] = []
    for idx, row in enumerate(rows):
        row_no = sheet_row_number(idx)
        if not row.tags.strip():
            missing_tags.append(row_no)
        description = row.description.strip()
        # 空の説明は必須チェック側で報告済み
        if description and len(description) < MIN_DESCRIPTION_LENGTH:
            issues.append(
                ValidationIssue(
                    row=row_no,
                    field="description",
                    message=(
                        f"Description is {len(description)} characters, "
                        f"at least {MIN_DESCRIPTION_LENGTH} recommended for SEO"
                    ),
                    severity=Severity.WARNING,
                )
            )
    return issues, missing_tags


def _group_duplicates(keys: Sequence[str]) -> list[DuplicateGroup]:
    """Group row numbers by key; keep groups with more than one member."""
    groups: dict[str, list[int]] = {}
    for idx, key in enumerate(keys):
        if not key:
            continue
        groups.setdefault(key, []).append(sheet_row_number(idx))
    return [DuplicateGroup(value=k, rows=tuple(v)) for k, v in groups.items() if len(v) > 1]


def _check_duplicate_handles(
    rows: Sequence[CanonicalRow],
) -> tuple[list[ValidationIssue], list[DuplicateGroup]]:
    groups = _group_duplicates([row.handle for row in rows])
    issues = [
        ValidationIssue(
            row=g.first_row,
            field="handle",
            message=f'Duplicate handle "{g.value}" found in rows {_format_rows(g.rows)}',
            severity=Severity.ERROR,
        )
        for g in groups
    ]
    return issues, groups


def _check_duplicate_titles(
    rows: Sequence[CanonicalRow],
) -> tuple[list[ValidationIssue], list[DuplicateGroup]]:
    groups = _group_duplicates([row.title.strip().lower() for row in rows])
    issues = [
        ValidationIssue(
            row=g.first_row,
            field="title",
            message=f'Duplicate title "{g.value}" found in rows {_format_rows(g.rows)}',
            severity=Severity.WARNING,
        )
        for g in groups
    ]
    return issues, groups


def _check_keyword_conflicts(
    rows: Sequence[CanonicalRow],
) -> tuple[list[ValidationIssue], list[KeywordConflict]]:
    products_by_keyword: dict[str, list[str]] = {}
    for idx, row in enumerate(rows):
        label = row.title.strip() or f"Row {sheet_row_number(idx)}"
        for keyword in dict.fromkeys(row.keywords()):
            products_by_keyword.setdefault(keyword, []).append(label)

    issues: list[ValidationIssue] = []
    conflicts: list[KeywordConflict] = []
    for keyword, products in products_by_keyword.items():
        if len(products) <= KEYWORD_CONFLICT_THRESHOLD:
            continue
        conflicts.append(KeywordConflict(keyword=keyword, products=tuple(products)))
        issues.append(
            ValidationIssue(
                row=0,
                field="tags",
                message=(
                    f'Keyword "{keyword}" is used by {len(products)} products '
                    f"({', '.join(products)}), risking keyword cannibalization"
                ),
                severity=Severity.WARNING,
            )
        )
    return issues, conflicts


def validate(rows: Sequence[CanonicalRow]) -> ValidationResult:
    """Run every rule over `rows` and aggregate a ValidationResult."""
    total = len(rows)
    if total == 0:
        return ValidationResult(
            total_rows=0,
            valid_rows=0,
            issues=(
                ValidationIssue(
                    row=0, field="", message="File contains no product rows", severity=Severity.INFO
                ),
            ),
        )

    required_issues, missing_required = _check_required_fields(rows)
    seo_issues, missing_seo = _check_seo_completeness(rows)
    handle_issues, duplicate_handles = _check_duplicate_handles(rows)
    title_issues, duplicate_titles = _check_duplicate_titles(rows)
    keyword_issues, keyword_conflicts = _check_keyword_conflicts(rows)

    issues = required_issues + seo_issues + handle_issues + title_issues + keyword_issues
    result = ValidationResult(
        total_rows=total,
        valid_rows=total - len(missing_required),
        issues=tuple(issues),
        duplicate_handles=tuple(duplicate_handles),
        duplicate_titles=tuple(duplicate_titles),
        keyword_conflicts=tuple(keyword_conflicts),
        missing_required_fields=tuple(missing_required),
        missing_seo_fields=tuple(missing_seo),
    )
    logger.debug(
        "validated rows=%d errors=%d warnings=%d valid=%s",
        total,
        result.error_count,
        result.warning_count,
        result.is_valid,
    )
    return result
