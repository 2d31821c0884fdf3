"""Domain models for the bulk product importer."""

from .canonical_row import CANONICAL_FIELDS, REQUIRED_FIELDS, CanonicalRow, sheet_row_number
from .config_models import CatalogConfig, DatabaseConfig, ImportConfig
from .error_record import ErrorRecord
from .import_session import (
    ApplyOutcome,
    ImportSession,
    InvalidSessionStateError,
    SessionStatus,
    SnapshotContext,
    SnapshotHandle,
)
from .raw_table import RawTable
from .validation import (
    DuplicateGroup,
    KeywordConflict,
    Severity,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Configuration models
    "CatalogConfig",
    "DatabaseConfig",
    "ImportConfig",
    # Pipeline data
    "RawTable",
    "CanonicalRow",
    "CANONICAL_FIELDS",
    "REQUIRED_FIELDS",
    "sheet_row_number",
    "Severity",
    "ValidationIssue",
    "ValidationResult",
    "DuplicateGroup",
    "KeywordConflict",
    # Apply lifecycle
    "ImportSession",
    "SessionStatus",
    "InvalidSessionStateError",
    "SnapshotContext",
    "SnapshotHandle",
    "ApplyOutcome",
    "ErrorRecord",
]
