"""
Condition evaluation for workflow rules.

Each condition resolves a dot-path field from the trigger payload and
applies one operator against the condition's string-encoded value.
Results are combined strictly left to right: the logical operator stored
on condition ``i`` joins the aggregate of conditions ``0..i-1`` with the
result of condition ``i``. There is no precedence, so ``A OR B AND C``
evaluates as ``(A OR B) AND C``.

Evaluation is fail-closed. An unknown operator or an error while applying
an operator yields ``False`` for that condition and a diagnostic message on
its result; nothing is raised to the caller.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, Sequence

from ..core.errors import EvaluationError
from ..schemas.enums import LogicalOperator, Operator
from .payload import FieldValue, ValueKind, parse_datetime, parse_decimal, resolve_path

_logger = logging.getLogger("workflow_conditions")


@dataclass
class ConditionResult:
    condition_id: Optional[str]
    condition_type: str
    field_name: str
    operator: str
    logical_operator: str
    matched: bool
    actual_value: Optional[str] = None
    expected_value: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class EvaluationResult:
    matched: bool
    condition_results: list[ConditionResult] = field(default_factory=list)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _attr(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        value = obj.get(name, default)
    else:
        value = getattr(obj, name, default)
    # Unwrap enum members to their stored string.
    return getattr(value, "value", value)


def _cmp(left: Any, right: Any) -> int:
    return (left > right) - (left < right)


def _split_list(expected: Optional[str]) -> list[str]:
    if expected is None:
        return []
    return [part.strip() for part in expected.split(",") if part.strip()]


def _tokens(actual: FieldValue) -> list[str]:
    if actual.kind is ValueKind.LIST:
        return [item.as_text() or "" for item in actual.items()]
    text = actual.as_text()
    return _split_list(text)


def compare_values(actual: FieldValue, expected: Optional[str]) -> Optional[int]:
    """
    Order the field value against the literal: decimal first, then
    date-time, then ordinal string comparison. Returns None for null.
    """
    if actual.is_null or expected is None:
        return None
    left_num = actual.as_decimal()
    right_num = parse_decimal(expected)
    if left_num is not None and right_num is not None:
        return _cmp(left_num, right_num)
    left_dt = actual.as_datetime()
    right_dt = parse_datetime(expected)
    if left_dt is not None and right_dt is not None:
        return _cmp(left_dt, right_dt)
    text = actual.as_text()
    if text is None:
        return None
    return _cmp(text, expected)


def _is_equal(actual: FieldValue, expected: Optional[str]) -> bool:
    if actual.is_null or expected is None:
        return False
    if actual.kind is ValueKind.BOOL:
        # Boolean literals match regardless of case.
        return actual.as_text() == expected.strip().lower()
    return actual.as_text() == expected


def _contains(actual: FieldValue, expected: Optional[str]) -> bool:
    if actual.is_null or expected is None:
        return False
    if actual.kind is ValueKind.LIST:
        wanted = set(_split_list(expected)) or {expected}
        return any(token in wanted for token in _tokens(actual))
    return expected in (actual.as_text() or "")


def _contains_all(actual: FieldValue, expected: Optional[str]) -> bool:
    if actual.is_null or expected is None:
        return False
    present = set(_tokens(actual))
    return all(token in present for token in _split_list(expected))


def _starts_with(actual: FieldValue, expected: Optional[str]) -> bool:
    if actual.is_null or expected is None:
        return False
    return (actual.as_text() or "").startswith(expected)


def _ends_with(actual: FieldValue, expected: Optional[str]) -> bool:
    if actual.is_null or expected is None:
        return False
    return (actual.as_text() or "").endswith(expected)


def _ordered(predicate: Callable[[int], bool]) -> Callable[[FieldValue, Optional[str]], bool]:
    def _apply(actual: FieldValue, expected: Optional[str]) -> bool:
        result = compare_values(actual, expected)
        return result is not None and predicate(result)

    return _apply


def _date_compare(predicate: Callable[[int], bool]) -> Callable[[FieldValue, Optional[str]], bool]:
    def _apply(actual: FieldValue, expected: Optional[str]) -> bool:
        left = actual.as_datetime()
        right = parse_datetime(expected)
        if left is None or right is None:
            return False
        return predicate(_cmp(left, right))

    return _apply


def _between(actual: FieldValue, expected: Optional[str]) -> bool:
    bounds = [part.strip() for part in (expected or "").split(",")]
    if len(bounds) != 2 or not all(bounds):
        raise EvaluationError(f"between expects 'low,high', got {expected!r}")
    low = compare_values(actual, bounds[0])
    high = compare_values(actual, bounds[1])
    return low is not None and high is not None and low >= 0 and high <= 0


def _relative_day(offset_days: int) -> Callable[[FieldValue, Optional[str]], bool]:
    def _apply(actual: FieldValue, expected: Optional[str]) -> bool:
        value = actual.as_datetime()
        if value is None:
            return False
        today = _utc_now().date()
        return (today - value.astimezone(timezone.utc).date()).days == offset_days

    return _apply


def _this_week(actual: FieldValue, expected: Optional[str]) -> bool:
    value = actual.as_datetime()
    if value is None:
        return False
    return value.astimezone(timezone.utc).isocalendar()[:2] == _utc_now().isocalendar()[:2]


def _this_month(actual: FieldValue, expected: Optional[str]) -> bool:
    value = actual.as_datetime()
    if value is None:
        return False
    value = value.astimezone(timezone.utc)
    now = _utc_now()
    return (value.year, value.month) == (now.year, now.month)


def _in_list(actual: FieldValue, expected: Optional[str]) -> bool:
    if actual.is_null:
        return False
    allowed = set(_split_list(expected))
    if actual.kind is ValueKind.LIST:
        return any(token in allowed for token in _tokens(actual))
    return (actual.as_text() or "") in allowed


def _matches(actual: FieldValue, expected: Optional[str]) -> bool:
    if actual.is_null or expected is None:
        return False
    try:
        return re.search(expected, actual.as_text() or "") is not None
    except re.error as exc:
        raise EvaluationError(f"Invalid pattern {expected!r}: {exc}") from exc


def _length(actual: FieldValue, expected: Optional[str]) -> bool:
    if actual.is_null:
        return False
    try:
        wanted = int((expected or "").strip())
    except ValueError as exc:
        raise EvaluationError(f"length expects an integer, got {expected!r}") from exc
    if actual.kind is ValueKind.LIST:
        return len(actual.raw) == wanted
    return len(actual.as_text() or "") == wanted


def _is_empty(actual: FieldValue, expected: Optional[str]) -> bool:
    if actual.is_null:
        return True
    if actual.kind in {ValueKind.LIST, ValueKind.MAP}:
        return len(actual.raw) == 0
    return not (actual.as_text() or "").strip()


_OPERATORS: dict[Operator, Callable[[FieldValue, Optional[str]], bool]] = {
    Operator.EQUALS: _is_equal,
    Operator.NOT_EQUALS: lambda actual, expected: not _is_equal(actual, expected),
    Operator.CONTAINS: _contains,
    Operator.STARTS_WITH: _starts_with,
    Operator.ENDS_WITH: _ends_with,
    Operator.GREATER_THAN: _ordered(lambda c: c > 0),
    Operator.LESS_THAN: _ordered(lambda c: c < 0),
    Operator.GREATER_THAN_OR_EQUAL: _ordered(lambda c: c >= 0),
    Operator.LESS_THAN_OR_EQUAL: _ordered(lambda c: c <= 0),
    Operator.IS_NULL: lambda actual, expected: actual.is_null,
    Operator.IS_NOT_NULL: lambda actual, expected: not actual.is_null,
    Operator.BEFORE: _date_compare(lambda c: c < 0),
    Operator.AFTER: _date_compare(lambda c: c > 0),
    Operator.BETWEEN: _between,
    Operator.TODAY: _relative_day(0),
    Operator.YESTERDAY: _relative_day(1),
    Operator.THIS_WEEK: _this_week,
    Operator.THIS_MONTH: _this_month,
    Operator.IN: _in_list,
    Operator.NOT_IN: lambda actual, expected: not _in_list(actual, expected),
    Operator.CONTAINS_ALL: _contains_all,
    Operator.MATCHES: _matches,
    Operator.LENGTH: _length,
    Operator.EMPTY: _is_empty,
}


def apply_operator(operator: Any, actual: FieldValue, expected: Optional[str]) -> bool:
    """Apply one operator. Unknown operators are a non-match."""
    op = Operator.parse(operator)
    if op is None:
        return False
    return bool(_OPERATORS[op](actual, expected))


def evaluate_condition(condition: Any, payload: Any) -> ConditionResult:
    raw_operator = _attr(condition, "operator") or ""
    expected = _attr(condition, "value")
    result = ConditionResult(
        condition_id=_attr(condition, "id"),
        condition_type=str(_attr(condition, "condition_type") or ""),
        field_name=str(_attr(condition, "field_name") or ""),
        operator=str(raw_operator),
        logical_operator=LogicalOperator.parse(_attr(condition, "logical_operator")).value,
        matched=False,
        expected_value=expected,
    )
    op = Operator.parse(raw_operator)
    if op is None:
        result.error_message = f"Unsupported operator '{raw_operator}'"
        return result
    try:
        actual = resolve_path(payload, result.field_name)
        result.actual_value = actual.as_text()
        result.matched = bool(_OPERATORS[op](actual, expected))
    except Exception as exc:
        _logger.warning(
            "Condition evaluation failed field=%s operator=%s: %s",
            result.field_name,
            result.operator,
            exc,
        )
        result.matched = False
        result.error_message = f"Error evaluating condition: {exc}"
    return result


def fold_results(results: Sequence[tuple[Any, bool]]) -> bool:
    """
    Left fold of ``(logical_operator, matched)`` pairs.

    The first pair's operator is ignored. Any operator other than OR acts
    as AND. An empty sequence is a vacuous match.
    """
    if not results:
        return True
    aggregate = bool(results[0][1])
    for logical, matched in results[1:]:
        if LogicalOperator.parse(logical) is LogicalOperator.OR:
            aggregate = aggregate or bool(matched)
        else:
            aggregate = aggregate and bool(matched)
    return aggregate


def ordered_conditions(conditions: Iterable[Any]) -> list[Any]:
    return sorted(conditions or [], key=lambda c: _attr(c, "order", 0) or 0)


def evaluate_conditions(conditions: Iterable[Any], payload: Any) -> EvaluationResult:
    """Evaluate every condition in ascending order and fold the results."""
    results = [evaluate_condition(condition, payload) for condition in ordered_conditions(conditions)]
    matched = fold_results([(r.logical_operator, r.matched) for r in results])
    return EvaluationResult(matched=matched, condition_results=results)
