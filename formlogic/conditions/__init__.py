"""Condition evaluation against workflow form data."""

from .evaluator import (
    ConditionEvaluator,
    EvaluationDiagnostics,
    EvaluationWarning,
    EvaluationWarningCode,
    TraceEntry,
    evaluate,
)
from .operators import OPERATORS, ComparisonError, compare_values, is_empty, values_equal
from .references import (
    FIELD_REFERENCE_PATTERN,
    FieldReference,
    ResolvedValue,
    parse_field_reference,
    resolve_reference,
)

__all__ = [
    "ConditionEvaluator",
    "EvaluationDiagnostics",
    "EvaluationWarning",
    "EvaluationWarningCode",
    "TraceEntry",
    "evaluate",
    "OPERATORS",
    "ComparisonError",
    "compare_values",
    "is_empty",
    "values_equal",
    "FIELD_REFERENCE_PATTERN",
    "FieldReference",
    "ResolvedValue",
    "parse_field_reference",
    "resolve_reference",
]
