"""
Form validation service.

Checks entered values against each field's constraints: required first
(a failure short-circuits), then length, pattern, and any named rules
listed in ``validationRules``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from formlogic.conditions import is_empty
from formlogic.core.config import Settings, get_settings
from formlogic.core.ontology import MISSING, FieldDefinition
from formlogic.hierarchy import FieldNode, ModuleTree
from formlogic.rules import ModuleState

from .rules import BUILT_IN_RULES, FieldValidationResult, ValidationRule

logger = logging.getLogger(__name__)


class FormValidationService:
    """Validates field values with built-in and registered rules.

    Usage:
        service = FormValidationService()
        result = service.validate_module(tree, {"email": "a@b.c"}, state)
        for error in result.errors:
            print(error.message_en)
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._rules: dict[str, ValidationRule] = {}
        for rule_class in BUILT_IN_RULES:
            self.register_rule(rule_class())

    def register_rule(self, rule: ValidationRule) -> None:
        """Register (or replace) a rule under its ``rule_id``."""
        self._rules[rule.rule_id] = rule
        logger.debug("Registered validation rule: %s", rule.rule_id)

    def get_rule(self, rule_id: str) -> ValidationRule | None:
        return self._rules.get(rule_id)

    @property
    def rule_ids(self) -> list[str]:
        return list(self._rules)

    def validate_field(
        self,
        field: FieldNode | FieldDefinition,
        value: Any,
        values: Mapping[str, Any] | None = None,
        *,
        required: bool | None = None,
    ) -> FieldValidationResult:
        """Validate one value.

        Args:
            field: The field (node or definition)
            value: The entered value
            values: All values of the module, for cross-field rules
            required: Overrides the schema's ``isRequired`` when not None
        """
        definition = field.definition if isinstance(field, FieldNode) else field
        values = values if values is not None else {}
        is_required = definition.is_required if required is None else required
        result = FieldValidationResult()

        if is_required:
            errors = self._rules["required"].validate(definition, value, values)
            if errors:
                result.errors.extend(errors)
                return result

        if is_empty(value):
            return result

        if definition.min_length is not None or definition.max_length is not None:
            result.errors.extend(self._rules["length"].validate(definition, value, values))

        if definition.pattern and definition.pattern.strip():
            result.errors.extend(self._rules["pattern"].validate(definition, value, values))

        for rule_id in definition.validation_rules:
            rule = self._rules.get(rule_id)
            if rule is None:
                logger.warning(
                    "Validation rule '%s' not found for field '%s'", rule_id, definition.id
                )
                continue
            result.errors.extend(rule.validate(definition, value, values))

        return result

    def validate_module(
        self,
        tree: ModuleTree,
        values: Mapping[str, Any],
        state: ModuleState | None = None,
    ) -> FieldValidationResult:
        """Validate every visible field of a tree in pre-order.

        With a resolved ``state``, hidden fields are skipped and a
        rule-decided ``required`` overrides the schema flag.
        """
        result = FieldValidationResult()

        for node in tree.fields_in_order():
            field_state = state.get(node.id) if state is not None else None
            if field_state is not None and not field_state.visible:
                continue
            required = field_state.required if field_state is not None else None
            value = values.get(node.id, MISSING)
            result.errors.extend(
                self.validate_field(node, value, values, required=required).errors
            )

        if result.errors:
            logger.info(
                "Module %s failed validation with %d error(s)",
                tree.module_key or "",
                len(result.errors),
            )
        return result
