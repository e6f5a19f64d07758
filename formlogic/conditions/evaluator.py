"""
Condition Evaluator - decides whether a condition holds against form data.

Evaluation is pure and total: malformed conditions, unknown operators,
unresolvable references and type mismatches all evaluate to ``False``.
Nothing is raised to the caller; details are reported through an optional
``EvaluationDiagnostics`` and the module logger.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from formlogic.core.config import Settings, get_settings
from formlogic.core.errors import SchemaError
from formlogic.core.loader import parse_condition
from formlogic.core.ontology import (
    ComplexCondition,
    MISSING,
    LogicalOperator,
    SimpleCondition,
    WorkflowFormData,
)

from .operators import OPERATORS, ComparisonError
from .references import parse_field_reference, resolve_reference

logger = logging.getLogger(__name__)

ConditionLike = Union[SimpleCondition, ComplexCondition, Mapping[str, Any]]
FormDataLike = Union[WorkflowFormData, Mapping[str, Mapping[str, Any]], None]


# =============================================================================
# Diagnostics
# =============================================================================


class EvaluationWarningCode:
    """Codes for evaluation fallbacks. None of these are ever raised."""

    UNKNOWN_OPERATOR = "unknown_operator"
    INVALID_CONDITION = "invalid_condition"
    INVALID_REFERENCE = "invalid_reference"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    TYPE_MISMATCH = "type_mismatch"
    EVALUATION_ERROR = "evaluation_error"


@dataclass
class EvaluationWarning:
    code: str
    message: str
    field: str | None = None


@dataclass
class TraceEntry:
    """One evaluated leaf."""

    field: str
    operator: str
    expected: Any
    actual: Any
    result: bool


@dataclass
class EvaluationDiagnostics:
    """Collects fallbacks (and optionally a leaf trace) during evaluation."""

    warnings: list[EvaluationWarning] = field(default_factory=list)
    trace: list[TraceEntry] | None = None

    @classmethod
    def with_trace(cls) -> EvaluationDiagnostics:
        return cls(trace=[])

    def warn(self, code: str, message: str, field: str | None = None) -> None:
        self.warnings.append(EvaluationWarning(code=code, message=message, field=field))

    def record(self, entry: TraceEntry) -> None:
        if self.trace is not None:
            self.trace.append(entry)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def codes(self) -> list[str]:
        return [warning.code for warning in self.warnings]


# =============================================================================
# Evaluation
# =============================================================================


def evaluate(
    condition: ConditionLike,
    data: FormDataLike,
    current_module_key: str = "current",
    diagnostics: EvaluationDiagnostics | None = None,
) -> bool:
    """Evaluate a condition against a workflow data snapshot.

    Args:
        condition: Parsed condition or its wire mapping
        data: Module key -> {field id -> value}
        current_module_key: Module that unqualified references read from
        diagnostics: Optional collector for fallbacks and the leaf trace

    Returns:
        True if the condition holds, False otherwise (including on any error)
    """
    diagnostics = diagnostics if diagnostics is not None else EvaluationDiagnostics()

    if not isinstance(condition, (SimpleCondition, ComplexCondition)):
        try:
            condition = parse_condition(condition)
        except SchemaError as e:
            logger.warning("Invalid condition evaluated as false: %s", e)
            diagnostics.warn(EvaluationWarningCode.INVALID_CONDITION, str(e))
            return False

    try:
        snapshot = WorkflowFormData.coerce(data)
        return _evaluate_node(condition, snapshot, current_module_key, diagnostics)
    except Exception as e:
        # Includes RecursionError from pathologically deep trees
        logger.warning("Condition evaluation failed: %s: %s", type(e).__name__, e)
        diagnostics.warn(
            EvaluationWarningCode.EVALUATION_ERROR, f"{type(e).__name__}: {e}"
        )
        return False


def _evaluate_node(
    condition: SimpleCondition | ComplexCondition,
    data: WorkflowFormData,
    module_key: str,
    diagnostics: EvaluationDiagnostics,
) -> bool:
    if isinstance(condition, SimpleCondition):
        return _evaluate_simple(condition, data, module_key, diagnostics)

    if condition.logical_op is LogicalOperator.AND:
        return all(
            _evaluate_node(sub, data, module_key, diagnostics)
            for sub in condition.conditions
        )
    if condition.logical_op is LogicalOperator.OR:
        return any(
            _evaluate_node(sub, data, module_key, diagnostics)
            for sub in condition.conditions
        )
    # Not: arity is enforced when the condition is built
    return not _evaluate_node(condition.conditions[0], data, module_key, diagnostics)


def _evaluate_simple(
    condition: SimpleCondition,
    data: WorkflowFormData,
    module_key: str,
    diagnostics: EvaluationDiagnostics,
) -> bool:
    operator = condition.canonical_operator
    if operator is None:
        logger.warning(
            "Unknown operator '%s' on field '%s'; condition is false",
            condition.operator,
            condition.field,
        )
        diagnostics.warn(
            EvaluationWarningCode.UNKNOWN_OPERATOR,
            f"Unknown operator '{condition.operator}'",
            condition.field,
        )
        return False

    reference = parse_field_reference(condition.field)
    if reference is None:
        diagnostics.warn(
            EvaluationWarningCode.INVALID_REFERENCE,
            f"'{condition.field}' is not a valid field reference",
            condition.field,
        )
        actual: Any = MISSING
    else:
        resolved = resolve_reference(reference, data, module_key)
        actual = resolved.value
        if resolved.is_missing and reference.is_qualified and not resolved.cross_module:
            diagnostics.warn(
                EvaluationWarningCode.UNRESOLVED_REFERENCE,
                f"No module '{reference.module}' and no field '{reference.raw}' in '{module_key}'",
                condition.field,
            )

    try:
        result = OPERATORS[operator](actual, condition.value)
    except ComparisonError as e:
        diagnostics.warn(EvaluationWarningCode.TYPE_MISMATCH, str(e), condition.field)
        result = False

    logger.debug(
        "%s %s %r (actual=%r) -> %s",
        condition.field,
        operator.value,
        condition.value,
        actual,
        result,
    )
    diagnostics.record(TraceEntry(
        field=condition.field,
        operator=operator.value,
        expected=condition.value,
        actual=actual,
        result=result,
    ))
    return result


class ConditionEvaluator:
    """Evaluator bound to a Settings instance.

    Usage:
        evaluator = ConditionEvaluator()
        if evaluator.evaluate(rule.condition, form_data, "Budget"):
            ...
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def evaluate(
        self,
        condition: ConditionLike,
        data: FormDataLike,
        current_module_key: str | None = None,
        diagnostics: EvaluationDiagnostics | None = None,
    ) -> bool:
        module_key = current_module_key or self.settings.default_module_key
        return evaluate(condition, data, module_key, diagnostics)
