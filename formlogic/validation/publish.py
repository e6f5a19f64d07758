"""Publish readiness checks for a module schema."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence

from formlogic.conditions import parse_field_reference
from formlogic.core.errors import IssueCategory, IssueCode, ValidationResult
from formlogic.core.ontology import (
    FieldDefinition,
    FieldType,
    FileUploadConfig,
    ModalTableConfig,
    ModuleDefinition,
    iter_simple_conditions,
)
from formlogic.hierarchy import find_cyclic_fields

logger = logging.getLogger(__name__)


def check_publish_readiness(
    module_or_fields: ModuleDefinition | Sequence[FieldDefinition],
) -> ValidationResult:
    """Check that a module schema can be published.

    Unlike a build, every structural problem is an error here: a published
    schema must not rely on the builder's auto-fix.
    """
    if isinstance(module_or_fields, ModuleDefinition):
        fields = list(module_or_fields.fields)
        module_key: str | None = module_or_fields.key
    else:
        fields = list(module_or_fields)
        module_key = None

    result = ValidationResult()

    if not fields:
        result.add_error(
            IssueCode.NO_FIELDS, IssueCategory.PUBLISH, "Module must contain at least one field"
        )
        return result

    for field_id, count in Counter(field.id for field in fields).items():
        if count > 1:
            result.add_error(
                IssueCode.DUPLICATE_FIELD_ID,
                IssueCategory.PUBLISH,
                f"Duplicate field id '{field_id}' ({count} occurrences)",
                field_id=field_id,
            )

    for field_id in find_cyclic_fields(fields):
        result.add_error(
            IssueCode.CYCLE,
            IssueCategory.PUBLISH,
            "Field has a circular parent reference",
            field_id=field_id,
        )

    by_id = {field.id: field for field in fields}
    for field in fields:
        if field.parent_id is not None and field.parent_id not in by_id:
            result.add_error(
                IssueCode.DANGLING_PARENT,
                IssueCategory.PUBLISH,
                f"References non-existent parent '{field.parent_id}'",
                field_id=field.id,
            )

    for field in fields:
        _check_rules(field, by_id, module_key, result)
        _check_data_source(field, result)
        _check_type_config(field, result)

        if field.is_required and not (field.label_en and field.label_en.strip()):
            result.add_warning(
                IssueCode.MISSING_LABEL,
                IssueCategory.PUBLISH,
                "Required field has no English label",
                field_id=field.id,
            )

    logger.info(
        "Publish check for %s: %d error(s), %d warning(s)",
        module_key or f"{len(fields)} fields",
        len(result.errors),
        len(result.warnings),
    )
    return result


def _check_rules(
    field: FieldDefinition,
    by_id: dict[str, FieldDefinition],
    module_key: str | None,
    result: ValidationResult,
) -> None:
    for rule in field.conditional_rules:
        if rule.is_field_rule and rule.target_field_id not in by_id:
            result.add_error(
                IssueCode.UNKNOWN_RULE_TARGET,
                IssueCategory.PUBLISH,
                f"Rule '{rule.id}' targets non-existent field '{rule.target_field_id}'",
                field_id=field.id,
            )

        for leaf in iter_simple_conditions(rule.condition):
            reference = parse_field_reference(leaf.field)
            if reference is None:
                result.add_error(
                    IssueCode.UNKNOWN_CONDITION_FIELD,
                    IssueCategory.PUBLISH,
                    f"Rule '{rule.id}' has an invalid field reference '{leaf.field}'",
                    field_id=field.id,
                )
                continue
            # Cross-module references cannot be checked against one module
            if reference.is_qualified and reference.module != module_key:
                continue
            if reference.field not in by_id:
                result.add_error(
                    IssueCode.UNKNOWN_CONDITION_FIELD,
                    IssueCategory.PUBLISH,
                    f"Rule '{rule.id}' references non-existent field '{leaf.field}'",
                    field_id=field.id,
                )


def _check_data_source(field: FieldDefinition, result: ValidationResult) -> None:
    if field.supports_options and not field.options and field.code_set_id is None:
        result.add_error(
            IssueCode.MISSING_OPTIONS,
            IssueCategory.PUBLISH,
            f"{field.field_type} needs inline options or a code set",
            field_id=field.id,
        )


def _check_type_config(field: FieldDefinition, result: ValidationResult) -> None:
    config = field.type_config

    if field.field_type == FieldType.FILE_UPLOAD:
        if not isinstance(config, FileUploadConfig):
            result.add_error(
                IssueCode.MISSING_TYPE_CONFIG,
                IssueCategory.PUBLISH,
                "FileUpload needs a fileUpload type config",
                field_id=field.id,
            )
        elif not config.allowed_extensions:
            result.add_error(
                IssueCode.MISSING_ALLOWED_EXTENSIONS,
                IssueCategory.PUBLISH,
                "FileUpload must list allowed extensions",
                field_id=field.id,
            )

    elif field.field_type == FieldType.MODAL_TABLE:
        if not isinstance(config, ModalTableConfig):
            result.add_error(
                IssueCode.MISSING_TYPE_CONFIG,
                IssueCategory.PUBLISH,
                "ModalTable needs a modalTable type config",
                field_id=field.id,
            )
        elif not config.modal_fields:
            result.add_error(
                IssueCode.MISSING_MODAL_FIELDS,
                IssueCategory.PUBLISH,
                "ModalTable must define at least one modal field",
                field_id=field.id,
            )
