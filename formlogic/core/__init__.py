"""Core types, configuration, errors and schema loading."""

from .config import Settings, get_settings
from .errors import (
    IssueCategory,
    IssueCode,
    ValidationIssue,
    ValidationResult,
    FormLogicError,
    SchemaError,
    BuildCancelledError,
)

__all__ = [
    "Settings",
    "get_settings",
    "IssueCategory",
    "IssueCode",
    "ValidationIssue",
    "ValidationResult",
    "FormLogicError",
    "SchemaError",
    "BuildCancelledError",
]
