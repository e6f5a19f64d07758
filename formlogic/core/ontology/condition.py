"""Condition and conditional rule models.

A condition is a closed variant discriminated by shape:

    Simple:  {"field": "age", "operator": "gt", "value": 18}
    Complex: {"logicalOp": "And", "conditions": [...]}

A document carrying both shapes, or neither, is rejected at construction.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Union

from pydantic import ConfigDict, Discriminator, Field, Tag, model_validator

from .base import WireModel


# =============================================================================
# Operators
# =============================================================================


class _CaseInsensitiveEnum(str, Enum):
    """String enum whose lookup ignores case ("and" -> And)."""

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if isinstance(value, str):
            folded = value.strip().casefold()
            for member in cls:
                if member.value.casefold() == folded:
                    return member
        return None


class LogicalOperator(_CaseInsensitiveEnum):
    """Logical operators combining sub-conditions."""

    AND = "And"
    OR = "Or"
    NOT = "Not"


class ConditionOperator(_CaseInsensitiveEnum):
    """Canonical comparison operators for simple conditions."""

    EQ = "eq"
    NEQ = "neq"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    IN = "in"
    NOT_IN = "notIn"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"
    IS_NULL = "isNull"
    IS_NOT_NULL = "isNotNull"


# Symbolic and legacy spellings, keyed by casefolded text
OPERATOR_ALIASES: dict[str, ConditionOperator] = {
    "==": ConditionOperator.EQ,
    "equals": ConditionOperator.EQ,
    "!=": ConditionOperator.NEQ,
    "ne": ConditionOperator.NEQ,
    "notequals": ConditionOperator.NEQ,
    "<": ConditionOperator.LT,
    "lessthan": ConditionOperator.LT,
    "<=": ConditionOperator.LTE,
    ">": ConditionOperator.GT,
    "greaterthan": ConditionOperator.GT,
    ">=": ConditionOperator.GTE,
    "not_in": ConditionOperator.NOT_IN,
}

_OPERATOR_LOOKUP: dict[str, ConditionOperator] = {
    **{op.value.casefold(): op for op in ConditionOperator},
    **OPERATOR_ALIASES,
}


def normalize_operator(operator: str | ConditionOperator | None) -> ConditionOperator | None:
    """Map an operator spelling to its canonical member, or None if unknown."""
    if isinstance(operator, ConditionOperator):
        return operator
    if not isinstance(operator, str):
        return None
    return _OPERATOR_LOOKUP.get(operator.strip().casefold())


# =============================================================================
# Conditions
# =============================================================================


class SimpleCondition(WireModel):
    """Leaf comparison of one field reference against a value.

    ``operator`` stays a plain string: unknown operators are accepted here and
    evaluate to false, so a stale schema never breaks a running form.
    """

    model_config = ConfigDict(extra="forbid")

    field: str = Field(..., min_length=1, description="Field reference, e.g. 'Step1.amount'")
    operator: str = Field(..., min_length=1, description="Comparison operator")
    value: Any = Field(None, description="Expected value (list for in/notIn)")

    @property
    def canonical_operator(self) -> ConditionOperator | None:
        return normalize_operator(self.operator)


class ComplexCondition(WireModel):
    """And/Or/Not combination of sub-conditions."""

    model_config = ConfigDict(extra="forbid")

    logical_op: LogicalOperator
    conditions: tuple[Condition, ...]

    @model_validator(mode="after")
    def _check_not_arity(self) -> ComplexCondition:
        if self.logical_op is LogicalOperator.NOT and len(self.conditions) != 1:
            raise ValueError(
                f"Not requires exactly one sub-condition, got {len(self.conditions)}"
            )
        return self


def _condition_shape(value: Any) -> str | None:
    """Pick the variant tag for raw input or an already-built condition."""
    if isinstance(value, ComplexCondition):
        return "complex"
    if isinstance(value, SimpleCondition):
        return "simple"
    if isinstance(value, dict):
        if any(key in value for key in ("logicalOp", "logical_op", "conditions")):
            return "complex"
        return "simple"
    return None


Condition = Annotated[
    Union[
        Annotated[SimpleCondition, Tag("simple")],
        Annotated[ComplexCondition, Tag("complex")],
    ],
    Discriminator(_condition_shape),
]

ComplexCondition.model_rebuild()


def iter_simple_conditions(condition: SimpleCondition | ComplexCondition):
    """Yield every leaf of a condition tree, depth-first, left to right."""
    stack = [condition]
    while stack:
        current = stack.pop()
        if isinstance(current, SimpleCondition):
            yield current
        else:
            stack.extend(reversed(current.conditions))


# =============================================================================
# Conditional Rules
# =============================================================================


class FieldAction(_CaseInsensitiveEnum):
    """Actions a rule can apply to a target field."""

    SHOW = "show"
    HIDE = "hide"
    ENABLE = "enable"
    DISABLE = "disable"
    SET_REQUIRED = "setRequired"
    SET_OPTIONAL = "setOptional"

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if isinstance(value, str) and value.strip().casefold() == "require":
            return cls.SET_REQUIRED
        return super()._missing_(value)


class WorkflowAction(_CaseInsensitiveEnum):
    """Branch instructions handed to the workflow runner."""

    SKIP_STEP = "skipStep"
    GO_TO_STEP = "goToStep"
    COMPLETE_WORKFLOW = "completeWorkflow"


class ConditionalRule(WireModel):
    """Binds a condition to exactly one field target or workflow target."""

    id: str = Field(..., min_length=1)
    description: str | None = None
    priority: int = Field(0, description="Higher priorities are evaluated first")
    is_active: bool = True
    condition: Condition

    # Field target
    target_field_id: str | None = None
    action: FieldAction | None = None

    # Workflow target
    workflow_action: WorkflowAction | None = None
    target_step: int | str | None = None

    @model_validator(mode="after")
    def _check_single_target(self) -> ConditionalRule:
        has_field = self.target_field_id is not None or self.action is not None
        has_workflow = self.workflow_action is not None or self.target_step is not None

        if has_field and has_workflow:
            raise ValueError(f"Rule '{self.id}' has both a field target and a workflow target")
        if not has_field and not has_workflow:
            raise ValueError(f"Rule '{self.id}' has no target")

        if has_field and (self.target_field_id is None or self.action is None):
            raise ValueError(f"Rule '{self.id}' field target needs both targetFieldId and action")

        if has_workflow:
            if self.workflow_action is None:
                raise ValueError(f"Rule '{self.id}' workflow target needs a workflowAction")
            if (
                self.workflow_action is not WorkflowAction.COMPLETE_WORKFLOW
                and self.target_step is None
            ):
                raise ValueError(
                    f"Rule '{self.id}' action {self.workflow_action.value} needs a targetStep"
                )
        return self

    @property
    def is_field_rule(self) -> bool:
        return self.target_field_id is not None

    @property
    def is_workflow_rule(self) -> bool:
        return self.workflow_action is not None
