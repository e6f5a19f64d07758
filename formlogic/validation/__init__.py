"""Field value validation and publish readiness checks."""

from .publish import check_publish_readiness
from .rules import (
    BUILT_IN_RULES,
    EMAIL_PATTERN,
    EmailRule,
    FieldErrorCode,
    FieldValidationError,
    FieldValidationResult,
    LengthRule,
    PatternRule,
    RequiredRule,
    ValidationRule,
)
from .service import FormValidationService

__all__ = [
    "check_publish_readiness",
    "BUILT_IN_RULES",
    "EMAIL_PATTERN",
    "EmailRule",
    "FieldErrorCode",
    "FieldValidationError",
    "FieldValidationResult",
    "LengthRule",
    "PatternRule",
    "RequiredRule",
    "ValidationRule",
    "FormValidationService",
]
