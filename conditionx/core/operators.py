"""
ConditionX Operator Table

Dispatch table mapping each comparison operator to `fn(actual, expected) -> bool`.
Built once per evaluator; date operators are bound to an injectable clock.

Coercion rules:
- Missing / null / falsy field values read as "" for string operators
- Numeric operators accept numbers, bools and numeric strings; anything
  else raises OperatorCoercionError
- Unparseable dates make date comparisons False
"""

from __future__ import annotations
from typing import Dict, Any, Callable, Optional, Tuple, FrozenSet
from datetime import date, datetime, time, timedelta
import json
import math
import re

from ..schemas.context import MISSING
from ..schemas.operators import ComparisonOperator as Op
from .accessor import split_path, walk
from .errors import OperatorCoercionError, UnknownOperatorError, UnsupportedFilterOperatorError


OperatorFn = Callable[[Any, Any], bool]
Clock = Callable[[], datetime]


# =============================================================================
# Coercion Helpers
# =============================================================================

def stringify(value: Any) -> str:
    """Render a value as text the way the workflow builder displays it."""
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None or v is MISSING else stringify(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, default=str)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def as_text(value: Any) -> str:
    """Falsy scalars (missing, null, False, 0, "") read as the empty string."""
    if value is MISSING or value is None or value is False:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0:
        return ""
    return stringify(value)


def to_number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            pass
    raise OperatorCoercionError(f"Cannot compare non-numeric value: {stringify(value)}")


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without cross-type coercion (True never equals 1)."""
    if left is MISSING or right is MISSING or left is None or right is None:
        return left is right
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def is_empty(value: Any) -> bool:
    if value is MISSING or value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


def as_pair(value: Any) -> Optional[Tuple[Any, Any]]:
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return value[0], value[1]
    return None


def to_datetime(value: Any) -> Optional[datetime]:
    """Parse a date-like value into a naive local datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if is_number(value):
        try:
            return datetime.fromtimestamp(value / 1000.0)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return to_datetime(parsed)
    return None


def to_time_of_day(value: Any) -> Optional[time]:
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        try:
            return time.fromisoformat(value.strip())
        except ValueError:
            pass
    parsed = to_datetime(value)
    return parsed.time() if parsed else None


def sunday_weekday(moment: datetime) -> int:
    """Weekday with Sunday=0 ... Saturday=6."""
    return (moment.weekday() + 1) % 7


# =============================================================================
# Similarity
# =============================================================================

def levenshtein_distance(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Normalized Levenshtein similarity in [0, 1]."""
    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    if not longer:
        return 1.0
    return (len(longer) - levenshtein_distance(longer, shorter)) / len(longer)


# =============================================================================
# Static Operators
# =============================================================================

def _between(actual: Any, expected: Any) -> bool:
    pair = as_pair(expected)
    if pair is None:
        return False
    number = to_number(actual)
    return to_number(pair[0]) <= number <= to_number(pair[1])


def _not_between(actual: Any, expected: Any) -> bool:
    if as_pair(expected) is None:
        return True
    return not _between(actual, expected)


def _in(actual: Any, expected: Any) -> bool:
    return isinstance(expected, (list, tuple)) and any(strict_equals(actual, e) for e in expected)


def _includes(actual: Any, expected: Any, require_all: bool) -> bool:
    if not isinstance(actual, (list, tuple)) or not isinstance(expected, (list, tuple)):
        return False
    check = all if require_all else any
    return check(any(strict_equals(a, e) for a in actual) for e in expected)


def _array_length(compare: Callable[[float, float], bool]) -> OperatorFn:
    def op(actual: Any, expected: Any) -> bool:
        return isinstance(actual, (list, tuple)) and compare(len(actual), to_number(expected))
    return op


def _matches_regex(actual: Any, expected: Any) -> bool:
    # re.error propagates as an evaluation fault
    return re.search(stringify(expected), stringify(actual)) is not None


def _json_path_exists(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, str):
        raise OperatorCoercionError("json_path_exists requires a path string")
    return walk(actual, split_path(expected)) is not MISSING


def _json_path_equals(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, dict) or "path" not in expected:
        raise OperatorCoercionError("json_path_equals requires {path, expected}")
    found = walk(actual, split_path(str(expected["path"])))
    return found is not MISSING and strict_equals(found, expected.get("expected"))


def _date_compare(compare: Callable[[datetime, datetime], bool]) -> OperatorFn:
    def op(actual: Any, expected: Any) -> bool:
        left, right = to_datetime(actual), to_datetime(expected)
        if left is None or right is None:
            return False
        return compare(left, right)
    return op


def _date_between(actual: Any, expected: Any) -> bool:
    pair = as_pair(expected)
    moment = to_datetime(actual)
    if pair is None or moment is None:
        return False
    start, end = to_datetime(pair[0]), to_datetime(pair[1])
    if start is None or end is None:
        return False
    return start <= moment <= end


def _time_between(actual: Any, expected: Any) -> bool:
    pair = as_pair(expected)
    moment = to_time_of_day(actual)
    if pair is None or moment is None:
        return False
    start, end = to_time_of_day(pair[0]), to_time_of_day(pair[1])
    if start is None or end is None:
        return False
    if start <= end:
        return start <= moment <= end
    # Window wraps past midnight (e.g. 22:00 - 06:00)
    return moment >= start or moment <= end


def _matches_int(actual_value: int, expected: Any) -> bool:
    if isinstance(expected, (list, tuple)):
        return any(actual_value == int(to_number(e)) for e in expected)
    return actual_value == int(to_number(expected))


def _day_of_week(actual: Any, expected: Any) -> bool:
    moment = to_datetime(actual)
    return moment is not None and _matches_int(sunday_weekday(moment), expected)


def _hour_of_day(actual: Any, expected: Any) -> bool:
    moment = to_datetime(actual)
    return moment is not None and _matches_int(moment.hour, expected)


STATIC_OPERATORS: Dict[Op, OperatorFn] = {
    # Basic
    Op.EQUALS: strict_equals,
    Op.NOT_EQUALS: lambda a, e: not strict_equals(a, e),
    Op.CONTAINS: lambda a, e: stringify(e) in as_text(a),
    Op.NOT_CONTAINS: lambda a, e: stringify(e) not in as_text(a),
    Op.STARTS_WITH: lambda a, e: as_text(a).startswith(stringify(e)),
    Op.ENDS_WITH: lambda a, e: as_text(a).endswith(stringify(e)),
    Op.MATCHES_REGEX: _matches_regex,

    # Numeric
    Op.GREATER_THAN: lambda a, e: to_number(a) > to_number(e),
    Op.GREATER_THAN_OR_EQUAL: lambda a, e: to_number(a) >= to_number(e),
    Op.LESS_THAN: lambda a, e: to_number(a) < to_number(e),
    Op.LESS_THAN_OR_EQUAL: lambda a, e: to_number(a) <= to_number(e),
    Op.BETWEEN: _between,
    Op.NOT_BETWEEN: _not_between,

    # Array
    Op.IN: _in,
    Op.NOT_IN: lambda a, e: not _in(a, e),
    Op.INCLUDES_ANY: lambda a, e: _includes(a, e, require_all=False),
    Op.INCLUDES_ALL: lambda a, e: _includes(a, e, require_all=True),
    Op.ARRAY_LENGTH_EQUALS: _array_length(lambda n, e: n == e),
    Op.ARRAY_LENGTH_GREATER_THAN: _array_length(lambda n, e: n > e),
    Op.ARRAY_LENGTH_LESS_THAN: _array_length(lambda n, e: n < e),

    # Existence
    Op.EXISTS: lambda a, _: a is not MISSING and a is not None,
    Op.NOT_EXISTS: lambda a, _: a is MISSING or a is None,
    Op.IS_NULL: lambda a, _: a is None,
    Op.IS_NOT_NULL: lambda a, _: a is not None,
    Op.IS_EMPTY: lambda a, _: is_empty(a),
    Op.IS_NOT_EMPTY: lambda a, _: not is_empty(a),

    # Type
    Op.IS_STRING: lambda a, _: isinstance(a, str),
    Op.IS_NUMBER: lambda a, _: is_number(a),
    Op.IS_BOOLEAN: lambda a, _: isinstance(a, bool),
    Op.IS_ARRAY: lambda a, _: isinstance(a, (list, tuple)),
    Op.IS_OBJECT: lambda a, _: isinstance(a, dict),

    # Absolute dates
    Op.DATE_EQUALS: _date_compare(lambda l, r: l == r),
    Op.DATE_AFTER: _date_compare(lambda l, r: l > r),
    Op.DATE_BEFORE: _date_compare(lambda l, r: l < r),
    Op.DATE_BETWEEN: _date_between,
    Op.TIME_BETWEEN: _time_between,
    Op.DAY_OF_WEEK: _day_of_week,
    Op.HOUR_OF_DAY: _hour_of_day,

    # JSON path
    Op.JSON_PATH_EXISTS: _json_path_exists,
    Op.JSON_PATH_EQUALS: _json_path_equals,
}


# Operators shared with the filter engine
FILTER_OPERATORS: FrozenSet[Op] = frozenset({
    Op.EQUALS, Op.NOT_EQUALS, Op.CONTAINS, Op.NOT_CONTAINS,
    Op.STARTS_WITH, Op.ENDS_WITH, Op.MATCHES_REGEX,
    Op.GREATER_THAN, Op.GREATER_THAN_OR_EQUAL, Op.LESS_THAN, Op.LESS_THAN_OR_EQUAL,
    Op.BETWEEN, Op.NOT_BETWEEN,
    Op.IN, Op.NOT_IN,
    Op.EXISTS, Op.NOT_EXISTS, Op.IS_EMPTY, Op.IS_NOT_EMPTY,
    Op.ARRAY_LENGTH_EQUALS, Op.ARRAY_LENGTH_GREATER_THAN, Op.ARRAY_LENGTH_LESS_THAN,
    Op.DATE_EQUALS, Op.DATE_AFTER, Op.DATE_BEFORE, Op.DATE_BETWEEN,
})


# =============================================================================
# Operator Table
# =============================================================================

class OperatorTable:
    """
    Operator dispatch table.

    Relative date operators and similarity thresholds depend on
    per-evaluator settings, so they are bound here rather than at
    module level.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        fuzzy_threshold: float = 0.8,
    ):
        self.clock: Clock = clock or datetime.now
        self.fuzzy_threshold = fuzzy_threshold

        self._table: Dict[Op, OperatorFn] = dict(STATIC_OPERATORS)
        self._table.update({
            Op.DATE_IS_TODAY: self._is_today,
            Op.DATE_IS_YESTERDAY: self._is_yesterday,
            Op.DATE_IS_THIS_WEEK: self._is_this_week,
            Op.DATE_IS_THIS_MONTH: self._is_this_month,
            Op.DATE_IS_THIS_YEAR: self._is_this_year,
            Op.FUZZY_MATCH: self._fuzzy_match,
            Op.SIMILARITY_SCORE: self._fuzzy_match,
        })

    def __contains__(self, operator: Op) -> bool:
        return operator in self._table

    def operators(self) -> FrozenSet[Op]:
        return frozenset(self._table)

    def apply(self, operator: Op, actual: Any, expected: Any) -> bool:
        """Apply an operator; raises UnknownOperatorError if it has no entry."""
        fn = self._table.get(operator)
        if fn is None:
            raise UnknownOperatorError(getattr(operator, "value", str(operator)))
        return bool(fn(actual, expected))

    def apply_filter(self, operator: Op, actual: Any, expected: Any) -> bool:
        """Apply an operator restricted to the filter subset."""
        if operator not in FILTER_OPERATORS:
            raise UnsupportedFilterOperatorError(getattr(operator, "value", str(operator)))
        return self.apply(operator, actual, expected)

    # -------------------------------------------------------------------------
    # Relative dates
    # -------------------------------------------------------------------------

    def _is_today(self, actual: Any, _: Any) -> bool:
        moment = to_datetime(actual)
        return moment is not None and moment.date() == self.clock().date()

    def _is_yesterday(self, actual: Any, _: Any) -> bool:
        moment = to_datetime(actual)
        return moment is not None and moment.date() == self.clock().date() - timedelta(days=1)

    def _is_this_week(self, actual: Any, _: Any) -> bool:
        moment = to_datetime(actual)
        if moment is None:
            return False
        now = self.clock()
        start = datetime.combine(now.date() - timedelta(days=sunday_weekday(now)), time())
        return start <= moment < start + timedelta(days=7)

    def _is_this_month(self, actual: Any, _: Any) -> bool:
        moment = to_datetime(actual)
        now = self.clock()
        return moment is not None and (moment.year, moment.month) == (now.year, now.month)

    def _is_this_year(self, actual: Any, _: Any) -> bool:
        moment = to_datetime(actual)
        return moment is not None and moment.year == self.clock().year

    # -------------------------------------------------------------------------
    # Similarity
    # -------------------------------------------------------------------------

    def similarity_arguments(self, expected: Any) -> Tuple[str, float]:
        """Split `expected` into (text, threshold)."""
        threshold = self.fuzzy_threshold
        if isinstance(expected, dict):
            text = expected.get("value", expected.get("text", ""))
            if expected.get("threshold") is not None:
                threshold = to_number(expected["threshold"])
        else:
            text = expected
        return as_text(text), threshold

    def _fuzzy_match(self, actual: Any, expected: Any) -> bool:
        text, threshold = self.similarity_arguments(expected)
        return similarity(as_text(actual), text) >= threshold
