"""
Rule Action Resolver - turns conditional rules into field state and
workflow branch candidates.

Rules are grouped into families (show/hide, enable/disable,
setRequired/setOptional). Within a family, rules are scanned by priority
descending, ties in declaration order; the first rule whose condition is
true decides the property. Every call recomputes from scratch.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from formlogic.conditions import EvaluationDiagnostics, evaluate
from formlogic.core.config import Settings, get_settings
from formlogic.core.ontology import (
    ConditionalRule,
    FieldAction,
    FieldDefinition,
    WorkflowAction,
    WorkflowFormData,
)
from formlogic.hierarchy import ModuleTree

logger = logging.getLogger(__name__)


# =============================================================================
# Result Models
# =============================================================================


class FieldState(BaseModel):
    """Effective state of one field. ``required=None`` means unspecified."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    visible: bool = True
    enabled: bool = True
    required: bool | None = None

    @classmethod
    def baseline(cls, field: FieldDefinition | None) -> FieldState:
        """Schema-declared state of a field, or the defaults."""
        if field is None:
            return cls()
        return cls(
            visible=field.is_visible,
            enabled=not field.is_read_only,
            required=field.is_required,
        )


class WorkflowActionCandidate(BaseModel):
    """A workflow rule whose condition currently holds."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    action: WorkflowAction
    target: int | str | None = None
    rule_id: str
    priority: int = 0


class ModuleState(BaseModel):
    """Field states for every field of a module tree."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    module_key: str
    fields: dict[str, FieldState] = Field(default_factory=dict)

    def get(self, field_id: str) -> FieldState | None:
        return self.fields.get(field_id)

    def visible_field_ids(self) -> list[str]:
        return [field_id for field_id, state in self.fields.items() if state.visible]


# =============================================================================
# Resolution
# =============================================================================


_FAMILIES: dict[str, dict[FieldAction, bool]] = {
    "visible": {FieldAction.SHOW: True, FieldAction.HIDE: False},
    "enabled": {FieldAction.ENABLE: True, FieldAction.DISABLE: False},
    "required": {FieldAction.SET_REQUIRED: True, FieldAction.SET_OPTIONAL: False},
}


def _by_priority(rules: Iterable[ConditionalRule]) -> list[ConditionalRule]:
    # sorted() is stable, so equal priorities keep declaration order
    return sorted(rules, key=lambda rule: -rule.priority)


def resolve_field_state(
    rules: Iterable[ConditionalRule],
    data: WorkflowFormData | Mapping[str, Mapping[str, Any]] | None,
    module_key: str = "current",
    *,
    field: FieldDefinition | None = None,
    diagnostics: EvaluationDiagnostics | None = None,
) -> FieldState:
    """Compute the effective state of one field from the rules targeting it.

    Args:
        rules: Rules that target the field; inactive and workflow rules are
            ignored
        data: Workflow form data snapshot
        module_key: Module unqualified references read from
        field: Optional definition supplying the baseline state
        diagnostics: Optional collector for evaluation fallbacks

    Returns:
        The baseline state overridden by the winning rule of each family
    """
    snapshot = WorkflowFormData.coerce(data)
    baseline = FieldState.baseline(field)
    field_rules = _by_priority(
        rule for rule in rules if rule.is_active and rule.is_field_rule
    )

    decided: dict[str, bool] = {}
    for name, actions in _FAMILIES.items():
        for rule in field_rules:
            if rule.action not in actions:
                continue
            if evaluate(rule.condition, snapshot, module_key, diagnostics):
                decided[name] = actions[rule.action]
                logger.debug(
                    "Rule %s sets %s=%s on %s",
                    rule.id,
                    name,
                    decided[name],
                    rule.target_field_id,
                )
                break

    return baseline.model_copy(update=decided)


def resolve_workflow_actions(
    rules: Iterable[ConditionalRule],
    data: WorkflowFormData | Mapping[str, Mapping[str, Any]] | None,
    module_key: str = "current",
    diagnostics: EvaluationDiagnostics | None = None,
) -> list[WorkflowActionCandidate]:
    """All active workflow rules whose condition holds.

    Sorted by priority descending, ties in declaration order. Choosing
    among the candidates is the workflow runner's job.
    """
    snapshot = WorkflowFormData.coerce(data)
    return [
        WorkflowActionCandidate(
            action=rule.workflow_action,
            target=rule.target_step,
            rule_id=rule.id,
            priority=rule.priority,
        )
        for rule in _by_priority(
            rule for rule in rules if rule.is_active and rule.is_workflow_rule
        )
        if evaluate(rule.condition, snapshot, module_key, diagnostics)
    ]


def resolve_module_state(
    tree: ModuleTree,
    data: WorkflowFormData | Mapping[str, Mapping[str, Any]] | None,
    module_key: str | None = None,
    *,
    settings: Settings | None = None,
    diagnostics: EvaluationDiagnostics | None = None,
) -> ModuleState:
    """Resolve the state of every field in a tree.

    Rules may be declared on any field; they are grouped by the field they
    target. With ``cascade_container_visibility`` a hidden or disabled
    ancestor hides or disables all of its descendants.
    """
    settings = settings or get_settings()
    module_key = module_key or tree.module_key or settings.default_module_key
    snapshot = WorkflowFormData.coerce(data)

    rules_by_target: dict[str, list[ConditionalRule]] = {}
    for _, rule in tree.rules():
        if rule.is_field_rule:
            rules_by_target.setdefault(rule.target_field_id, []).append(rule)

    states: dict[str, FieldState] = {}
    for node in tree.fields_in_order():
        state = resolve_field_state(
            rules_by_target.get(node.id, ()),
            snapshot,
            module_key,
            field=node.definition,
            diagnostics=diagnostics,
        )
        if settings.cascade_container_visibility and node.parent_id is not None:
            # Pre-order guarantees the parent is already resolved
            parent = states[node.parent_id]
            update: dict[str, bool] = {}
            if not parent.visible:
                update["visible"] = False
            if not parent.enabled:
                update["enabled"] = False
            if update:
                state = state.model_copy(update=update)
        states[node.id] = state

    return ModuleState(module_key=module_key, fields=states)
