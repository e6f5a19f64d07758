"""Exception hierarchy and validation issue models.

Build-time problems are collected as ``ValidationIssue`` records inside a
``ValidationResult`` rather than raised, so an editor can render a broken
draft. Exceptions are reserved for direct parsing calls and cancellation.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# Issue Taxonomy
# =============================================================================


class IssueCategory(str, Enum):
    """Broad family an issue belongs to."""

    SCHEMA = "schema"
    STRUCTURAL = "structural"
    RESOLUTION = "resolution"
    PUBLISH = "publish"


class IssueCode(str, Enum):
    """Machine-readable issue codes."""

    # Schema
    DUPLICATE_FIELD_ID = "duplicate_field_id"
    INVALID_FIELD = "invalid_field"
    INVALID_CONDITION = "invalid_condition"
    INVALID_RULE = "invalid_rule"

    # Structural
    DANGLING_PARENT = "dangling_parent"
    CYCLE = "cycle"
    UNKNOWN_RULE_TARGET = "unknown_rule_target"

    # Resolution
    CODE_SET_NOT_FOUND = "code_set_not_found"
    CODE_SET_FETCH_FAILED = "code_set_fetch_failed"
    CODE_SET_PROVIDER_MISSING = "code_set_provider_missing"

    # Publish
    NO_FIELDS = "no_fields"
    UNKNOWN_CONDITION_FIELD = "unknown_condition_field"
    MISSING_OPTIONS = "missing_options"
    MISSING_TYPE_CONFIG = "missing_type_config"
    MISSING_ALLOWED_EXTENSIONS = "missing_allowed_extensions"
    MISSING_MODAL_FIELDS = "missing_modal_fields"
    MISSING_LABEL = "missing_label"


class ValidationIssue(BaseModel):
    """A single error or warning found while loading or building a schema."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    code: IssueCode
    category: IssueCategory
    message: str
    field_id: str | None = None

    def __str__(self) -> str:
        if self.field_id:
            return f"[{self.code.value}] {self.field_id}: {self.message}"
        return f"[{self.code.value}] {self.message}"


class ValidationResult(BaseModel):
    """Errors and warnings collected during a load, build or publish check."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True when no errors were recorded (warnings are allowed)."""
        return not self.errors

    def add_error(
        self,
        code: IssueCode,
        category: IssueCategory,
        message: str,
        field_id: str | None = None,
    ) -> ValidationIssue:
        issue = ValidationIssue(
            code=code, category=category, message=message, field_id=field_id
        )
        self.errors.append(issue)
        return issue

    def add_warning(
        self,
        code: IssueCode,
        category: IssueCategory,
        message: str,
        field_id: str | None = None,
    ) -> ValidationIssue:
        issue = ValidationIssue(
            code=code, category=category, message=message, field_id=field_id
        )
        self.warnings.append(issue)
        return issue

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Append another result's issues to this one and return self."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self

    def issues_for(self, field_id: str) -> list[ValidationIssue]:
        """All errors and warnings attached to one field."""
        return [
            issue
            for issue in (*self.errors, *self.warnings)
            if issue.field_id == field_id
        ]


# =============================================================================
# Exceptions
# =============================================================================


class FormLogicError(Exception):
    """Base class for all formlogic exceptions."""


class SchemaError(FormLogicError, ValueError):
    """A field, condition or rule document does not match its wire shape."""

    def __init__(self, message: str, issues: list[ValidationIssue] | None = None):
        super().__init__(message)
        self.issues = issues or []


class BuildCancelledError(FormLogicError):
    """A hierarchy build was cancelled before it produced a result."""
