"""
Comparison operator implementations.

Each operator takes ``(actual, expected)`` and returns a bool. Values are
compared numerically when both sides parse as numbers, then as date/times,
then as strings (case-insensitive for equality, ordinal for ordering).
An operator that cannot apply to its operands raises ``ComparisonError``;
the evaluator turns that into ``False``.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from formlogic.core.ontology import MISSING, ConditionOperator


class ComparisonError(TypeError):
    """Operands cannot be compared by the requested operator."""


_DATE_FORMATS = ("%Y/%m/%d", "%m/%d/%Y", "%Y-%m-%d %H:%M:%S")


# =============================================================================
# Coercion helpers
# =============================================================================


def _is_null(value: Any) -> bool:
    return value is None or value is MISSING


def _is_multi(value: Any) -> bool:
    """Multi-value field values (checkbox lists and the like)."""
    return isinstance(value, (list, tuple, set, frozenset))


def _to_number(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


def _normalize_datetime(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _to_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return _normalize_datetime(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if len(text) < 8:
        return None
    try:
        return _normalize_datetime(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _as_text(value: Any) -> str:
    if _is_null(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


# =============================================================================
# Equality and ordering
# =============================================================================


def values_equal(actual: Any, expected: Any) -> bool:
    """Loose equality used by eq/neq and by membership tests."""
    if _is_null(actual) or _is_null(expected):
        return _is_null(actual) and _is_null(expected)

    if _is_multi(actual) or _is_multi(expected):
        if not (_is_multi(actual) and _is_multi(expected)):
            return False
        left, right = list(actual), list(expected)
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )

    left_number, right_number = _to_number(actual), _to_number(expected)
    if left_number is not None and right_number is not None:
        return left_number == right_number

    left_date, right_date = _to_datetime(actual), _to_datetime(expected)
    if left_date is not None and right_date is not None:
        return left_date == right_date

    return _as_text(actual).casefold() == _as_text(expected).casefold()


def compare_values(actual: Any, expected: Any) -> int:
    """Three-way comparison of two non-null scalars.

    Raises:
        ComparisonError: If either side is a multi-value
    """
    if _is_multi(actual) or _is_multi(expected):
        raise ComparisonError(
            f"cannot order {type(actual).__name__} against {type(expected).__name__}"
        )

    left: Any
    right: Any
    left, right = _to_number(actual), _to_number(expected)
    if left is None or right is None:
        left, right = _to_datetime(actual), _to_datetime(expected)
        if left is None or right is None:
            left, right = _as_text(actual), _as_text(expected)

    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def _ordering(predicate: Callable[[int], bool]) -> Callable[[Any, Any], bool]:
    def check(actual: Any, expected: Any) -> bool:
        if _is_null(actual) or _is_null(expected):
            return False
        return predicate(compare_values(actual, expected))

    return check


# =============================================================================
# Operator implementations
# =============================================================================


def _eval_eq(actual: Any, expected: Any) -> bool:
    return values_equal(actual, expected)


def _eval_neq(actual: Any, expected: Any) -> bool:
    return not values_equal(actual, expected)


def _eval_in(actual: Any, expected: Any) -> bool:
    """Member of the rule's list; a multi-value field matches on any overlap."""
    if not _is_multi(expected):
        raise ComparisonError(
            f"'in' needs a list of values, got {type(expected).__name__}"
        )
    candidates = list(actual) if _is_multi(actual) else [actual]
    return any(
        values_equal(candidate, member)
        for candidate in candidates
        for member in expected
    )


def _eval_not_in(actual: Any, expected: Any) -> bool:
    return not _eval_in(actual, expected)


def _eval_contains(actual: Any, expected: Any) -> bool:
    if _is_null(actual) or _is_null(expected):
        return False
    if _is_multi(actual):
        return any(values_equal(item, expected) for item in actual)
    return _as_text(expected).casefold() in _as_text(actual).casefold()


def _eval_not_contains(actual: Any, expected: Any) -> bool:
    return not _eval_contains(actual, expected)


def _text_operand(actual: Any, operator: str) -> str | None:
    if _is_null(actual):
        return None
    if _is_multi(actual):
        raise ComparisonError(f"'{operator}' does not apply to a multi-value field")
    return _as_text(actual).casefold()


def _eval_starts_with(actual: Any, expected: Any) -> bool:
    if _is_null(expected):
        return False
    text = _text_operand(actual, "startsWith")
    return text is not None and text.startswith(_as_text(expected).casefold())


def _eval_ends_with(actual: Any, expected: Any) -> bool:
    if _is_null(expected):
        return False
    text = _text_operand(actual, "endsWith")
    return text is not None and text.endswith(_as_text(expected).casefold())


def is_empty(value: Any) -> bool:
    """Missing, null, blank text or an empty collection."""
    if _is_null(value):
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


def _eval_is_empty(actual: Any, expected: Any) -> bool:
    return is_empty(actual)


def _eval_is_not_empty(actual: Any, expected: Any) -> bool:
    return not is_empty(actual)


def _eval_is_null(actual: Any, expected: Any) -> bool:
    return _is_null(actual)


def _eval_is_not_null(actual: Any, expected: Any) -> bool:
    return not _is_null(actual)


OPERATORS: dict[ConditionOperator, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQ: _eval_eq,
    ConditionOperator.NEQ: _eval_neq,
    ConditionOperator.LT: _ordering(lambda c: c < 0),
    ConditionOperator.LTE: _ordering(lambda c: c <= 0),
    ConditionOperator.GT: _ordering(lambda c: c > 0),
    ConditionOperator.GTE: _ordering(lambda c: c >= 0),
    ConditionOperator.IN: _eval_in,
    ConditionOperator.NOT_IN: _eval_not_in,
    ConditionOperator.CONTAINS: _eval_contains,
    ConditionOperator.NOT_CONTAINS: _eval_not_contains,
    ConditionOperator.STARTS_WITH: _eval_starts_with,
    ConditionOperator.ENDS_WITH: _eval_ends_with,
    ConditionOperator.IS_EMPTY: _eval_is_empty,
    ConditionOperator.IS_NOT_EMPTY: _eval_is_not_empty,
    ConditionOperator.IS_NULL: _eval_is_null,
    ConditionOperator.IS_NOT_NULL: _eval_is_not_null,
}
