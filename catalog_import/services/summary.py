from __future__ import annotations

from ..models.import_session import ApplyOutcome
from ..models.validation import ValidationResult

"""SUMMARY line rendering and the human readable issue report."""


def summary_status(result: ValidationResult, outcome: ApplyOutcome | None = None) -> str:
    if outcome is not None:
        return outcome.status.value
    return "valid" if result.is_valid else "blocked"


def render_summary_line(result: ValidationResult, outcome: ApplyOutcome | None = None) -> str:
    """Render the SUMMARY line.

    Format:
    SUMMARY rows={total} valid_rows={valid} errors={e} warnings={w} info={i} status={status}

    Examples:
        >>> from catalog_import.models.validation import ValidationResult
        >>> render_summary_line(ValidationResult(total_rows=3, valid_rows=3))
        'SUMMARY rows=3 valid_rows=3 errors=0 warnings=0 info=0 status=valid'
    """
    return (
        f"SUMMARY rows={result.total_rows} "
        f"valid_rows={result.valid_rows} "
        f"errors={result.error_count} "
        f"warnings={result.warning_count} "
        f"info={result.info_count} "
        f"status={summary_status(result, outcome)}"
    )


def render_issue_lines(result: ValidationResult) -> list[str]:
    """One line per issue, in report order: `[severity] row N field: message`."""
    lines = []
    for issue in result.issues:
        where = "dataset" if issue.row == 0 else f"row {issue.row}"
        field = f" {issue.field}" if issue.field else ""
        lines.append(f"[{issue.severity.value}] {where}{field}: {issue.message}")
    return lines
