"""Built-in field value validation rules with English and French messages."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from formlogic.conditions import is_empty
from formlogic.core.ontology import FieldDefinition

logger = logging.getLogger(__name__)


# =============================================================================
# Result Models
# =============================================================================


class FieldErrorCode:
    REQUIRED = "REQUIRED"
    MIN_LENGTH = "MIN_LENGTH"
    MAX_LENGTH = "MAX_LENGTH"
    PATTERN_MISMATCH = "PATTERN_MISMATCH"
    INVALID_EMAIL = "INVALID_EMAIL"


class FieldValidationError(BaseModel):
    """One failed check on a field value."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    field_id: str
    code: str
    message_en: str
    message_fr: str | None = None


class FieldValidationResult(BaseModel):
    """Outcome of validating one field or a whole module."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    errors: list[FieldValidationError] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def for_field(self, field_id: str) -> list[FieldValidationError]:
        return [error for error in self.errors if error.field_id == field_id]


# =============================================================================
# Rules
# =============================================================================


@runtime_checkable
class ValidationRule(Protocol):
    """A named check that can be listed in a field's ``validationRules``."""

    rule_id: str

    def validate(
        self, field: FieldDefinition, value: Any, values: Mapping[str, Any]
    ) -> list[FieldValidationError]:
        ...


def _label_en(field: FieldDefinition) -> str:
    return field.label_en or field.id


def _label_fr(field: FieldDefinition) -> str:
    return field.label_fr or field.label_en or field.id


class RequiredRule:
    """Value must be present and not blank."""

    rule_id = "required"

    def validate(
        self, field: FieldDefinition, value: Any, values: Mapping[str, Any]
    ) -> list[FieldValidationError]:
        if not is_empty(value):
            return []
        return [FieldValidationError(
            field_id=field.id,
            code=FieldErrorCode.REQUIRED,
            message_en=f"{_label_en(field)} is required",
            message_fr=f"{_label_fr(field)} est requis",
        )]


class LengthRule:
    """Text length within the field's minLength/maxLength."""

    rule_id = "length"

    def validate(
        self, field: FieldDefinition, value: Any, values: Mapping[str, Any]
    ) -> list[FieldValidationError]:
        if value is None:
            return []
        length = len(str(value))
        errors = []
        if field.min_length is not None and length < field.min_length:
            errors.append(FieldValidationError(
                field_id=field.id,
                code=FieldErrorCode.MIN_LENGTH,
                message_en=f"{_label_en(field)} must be at least {field.min_length} characters",
                message_fr=f"{_label_fr(field)} doit contenir au moins {field.min_length} caractères",
            ))
        if field.max_length is not None and length > field.max_length:
            errors.append(FieldValidationError(
                field_id=field.id,
                code=FieldErrorCode.MAX_LENGTH,
                message_en=f"{_label_en(field)} must not exceed {field.max_length} characters",
                message_fr=f"{_label_fr(field)} ne doit pas dépasser {field.max_length} caractères",
            ))
        return errors


class PatternRule:
    """Value matches the field's regular expression.

    A pattern that does not compile is logged and the value passes.
    """

    rule_id = "pattern"

    def validate(
        self, field: FieldDefinition, value: Any, values: Mapping[str, Any]
    ) -> list[FieldValidationError]:
        if value is None or not field.pattern or not field.pattern.strip():
            return []
        try:
            regex = re.compile(field.pattern)
        except re.error as e:
            logger.warning("Invalid pattern on field '%s': %s", field.id, e)
            return []
        if regex.search(str(value)):
            return []
        return [FieldValidationError(
            field_id=field.id,
            code=FieldErrorCode.PATTERN_MISMATCH,
            message_en=f"{_label_en(field)} format is invalid",
            message_fr=f"Le format de {_label_fr(field)} est invalide",
        )]


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class EmailRule:
    """Value looks like an email address."""

    rule_id = "email"

    def validate(
        self, field: FieldDefinition, value: Any, values: Mapping[str, Any]
    ) -> list[FieldValidationError]:
        if is_empty(value) or EMAIL_PATTERN.match(str(value)):
            return []
        return [FieldValidationError(
            field_id=field.id,
            code=FieldErrorCode.INVALID_EMAIL,
            message_en=f"{_label_en(field)} must be a valid email address",
            message_fr=f"{_label_fr(field)} doit être une adresse courriel valide",
        )]


BUILT_IN_RULES: tuple[type, ...] = (RequiredRule, LengthRule, PatternRule, EmailRule)
