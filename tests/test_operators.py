"""
ConditionX Operator Table Tests

Semantics of every operator family, coercion rules and the filter subset.
"""

import pytest
import re
from datetime import datetime, timezone

from conditionx.core.errors import (
    OperatorCoercionError,
    UnknownOperatorError,
    UnsupportedFilterOperatorError,
)
from conditionx.core.operators import (
    FILTER_OPERATORS,
    OperatorTable,
    similarity,
    stringify,
    to_datetime,
)
from conditionx.schemas.context import MISSING
from conditionx.schemas.operators import ComparisonOperator as Op


# Wednesday
FIXED_NOW = datetime(2024, 3, 13, 10, 30)


@pytest.fixture
def table():
    return OperatorTable(clock=lambda: FIXED_NOW)


class TestBasicOperators:
    """Test equality and string operators."""

    def test_equals_is_strict(self, table):
        assert table.apply(Op.EQUALS, "a", "a")
        assert table.apply(Op.EQUALS, 1, 1.0)
        assert not table.apply(Op.EQUALS, True, 1)
        assert not table.apply(Op.EQUALS, "1", 1)
        assert not table.apply(Op.EQUALS, MISSING, None)
        assert table.apply(Op.EQUALS, None, None)

    def test_not_equals(self, table):
        assert table.apply(Op.NOT_EQUALS, "a", "b")
        assert table.apply(Op.NOT_EQUALS, False, 0)
        assert not table.apply(Op.NOT_EQUALS, "a", "a")

    def test_contains_and_affixes(self, table):
        assert table.apply(Op.CONTAINS, "hello world", "lo w")
        assert table.apply(Op.NOT_CONTAINS, "hello", "x")
        assert table.apply(Op.STARTS_WITH, "hello", "he")
        assert table.apply(Op.ENDS_WITH, "hello", "lo")
        assert table.apply(Op.CONTAINS, 12345, 234)

    def test_falsy_field_reads_as_empty_string(self, table):
        assert not table.apply(Op.CONTAINS, MISSING, "a")
        assert not table.apply(Op.CONTAINS, None, "null")
        assert table.apply(Op.NOT_CONTAINS, None, "a")
        assert not table.apply(Op.STARTS_WITH, 0, "0")

    def test_matches_regex_is_unanchored(self, table):
        assert table.apply(Op.MATCHES_REGEX, "order-123", r"\d+")
        assert not table.apply(Op.MATCHES_REGEX, "order", r"^\d+$")

    def test_malformed_regex_raises(self, table):
        with pytest.raises(re.error):
            table.apply(Op.MATCHES_REGEX, "abc", "(")


class TestNumericOperators:
    """Test numeric comparisons and coercion."""

    def test_comparisons(self, table):
        assert table.apply(Op.GREATER_THAN, 10, 5)
        assert table.apply(Op.GREATER_THAN_OR_EQUAL, 5, 5)
        assert table.apply(Op.LESS_THAN, 1.5, 2)
        assert table.apply(Op.LESS_THAN_OR_EQUAL, 2, 2)

    def test_numeric_strings_are_coerced(self, table):
        assert table.apply(Op.GREATER_THAN, "10", 5)
        assert table.apply(Op.LESS_THAN, " 3 ", "4")

    def test_non_numeric_raises(self, table):
        with pytest.raises(OperatorCoercionError):
            table.apply(Op.GREATER_THAN, "abc", 5)
        with pytest.raises(OperatorCoercionError):
            table.apply(Op.LESS_THAN, MISSING, 5)

    @pytest.mark.parametrize("value", [-1, 0, 1, 5, 9.99, 10, 10.01, 11])
    def test_between_is_inclusive(self, table, value):
        lo, hi = 0, 10
        inside = lo <= value <= hi
        assert table.apply(Op.BETWEEN, value, [lo, hi]) == inside
        assert table.apply(Op.NOT_BETWEEN, value, [lo, hi]) == (not inside)

    def test_between_malformed_pair(self, table):
        assert not table.apply(Op.BETWEEN, 5, [1])
        assert not table.apply(Op.BETWEEN, 5, "1,10")
        assert table.apply(Op.NOT_BETWEEN, 5, [1, 2, 3])
        assert table.apply(Op.NOT_BETWEEN, 5, None)


class TestArrayOperators:
    """Test membership and array length operators."""

    def test_in_and_not_in(self, table):
        assert table.apply(Op.IN, "b", ["a", "b"])
        assert not table.apply(Op.IN, 1, [True])
        assert not table.apply(Op.IN, "a", "abc")
        assert table.apply(Op.NOT_IN, "c", ["a", "b"])
        assert table.apply(Op.NOT_IN, "a", None)

    def test_includes(self, table):
        assert table.apply(Op.INCLUDES_ANY, ["a", "b"], ["b", "z"])
        assert not table.apply(Op.INCLUDES_ANY, ["a"], ["z"])
        assert table.apply(Op.INCLUDES_ALL, ["a", "b", "c"], ["a", "c"])
        assert not table.apply(Op.INCLUDES_ALL, ["a"], ["a", "c"])
        assert not table.apply(Op.INCLUDES_ANY, "ab", ["a"])

    def test_array_length(self, table):
        assert table.apply(Op.ARRAY_LENGTH_EQUALS, [1, 2], 2)
        assert table.apply(Op.ARRAY_LENGTH_GREATER_THAN, [1, 2, 3], "2")
        assert table.apply(Op.ARRAY_LENGTH_LESS_THAN, [], 1)
        assert not table.apply(Op.ARRAY_LENGTH_EQUALS, "ab", 2)
        assert not table.apply(Op.ARRAY_LENGTH_GREATER_THAN, MISSING, 0)


class TestExistenceAndTypeOperators:
    """Test existence, emptiness and type checks."""

    def test_exists(self, table):
        assert table.apply(Op.EXISTS, 0, None)
        assert table.apply(Op.EXISTS, "", None)
        assert not table.apply(Op.EXISTS, None, None)
        assert not table.apply(Op.EXISTS, MISSING, None)
        assert table.apply(Op.NOT_EXISTS, MISSING, None)

    def test_null_vs_missing(self, table):
        assert table.apply(Op.IS_NULL, None, None)
        assert not table.apply(Op.IS_NULL, MISSING, None)
        assert table.apply(Op.IS_NOT_NULL, MISSING, None)
        assert not table.apply(Op.IS_NOT_NULL, None, None)

    @pytest.mark.parametrize("value", ["", [], {}, None, MISSING])
    def test_is_empty_true(self, table, value):
        assert table.apply(Op.IS_EMPTY, value, None)
        assert not table.apply(Op.IS_NOT_EMPTY, value, None)

    @pytest.mark.parametrize("value", [0, False, " ", [0], {"a": 1}])
    def test_is_empty_false(self, table, value):
        assert not table.apply(Op.IS_EMPTY, value, None)
        assert table.apply(Op.IS_NOT_EMPTY, value, None)

    def test_type_checks(self, table):
        assert table.apply(Op.IS_STRING, "x", None)
        assert table.apply(Op.IS_NUMBER, 3, None)
        assert table.apply(Op.IS_NUMBER, 2.5, None)
        assert not table.apply(Op.IS_NUMBER, float("nan"), None)
        assert not table.apply(Op.IS_NUMBER, True, None)
        assert not table.apply(Op.IS_NUMBER, "3", None)
        assert table.apply(Op.IS_BOOLEAN, False, None)
        assert table.apply(Op.IS_ARRAY, [], None)
        assert table.apply(Op.IS_OBJECT, {}, None)
        assert not table.apply(Op.IS_OBJECT, [], None)


class TestDateOperators:
    """Test absolute and relative date operators against a fixed clock."""

    def test_absolute_comparisons(self, table):
        assert table.apply(Op.DATE_AFTER, "2024-03-13T10:00:00", "2024-03-12")
        assert table.apply(Op.DATE_BEFORE, "2024-03-11", "2024-03-12T00:00:00")
        assert table.apply(Op.DATE_EQUALS, "2024-03-12", datetime(2024, 3, 12))
        assert table.apply(
            Op.DATE_BETWEEN, "2024-03-13", ["2024-03-01", "2024-03-31"]
        )
        assert not table.apply(
            Op.DATE_BETWEEN, "2024-04-01", ["2024-03-01", "2024-03-31"]
        )

    def test_unparseable_dates_are_false(self, table):
        assert not table.apply(Op.DATE_AFTER, "not a date", "2024-01-01")
        assert not table.apply(Op.DATE_BEFORE, "2024-01-01", MISSING)
        assert not table.apply(Op.DATE_IS_TODAY, None, None)

    def test_parse_formats(self):
        assert to_datetime("2024-03-13T10:00:00") == datetime(2024, 3, 13, 10, 0)
        expected = datetime(2024, 3, 13, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert to_datetime("2024-03-13T10:00:00Z") == expected
        assert to_datetime(1710324000000) == datetime.fromtimestamp(1710324000)
        assert to_datetime(True) is None

    def test_today_and_yesterday(self, table):
        assert table.apply(Op.DATE_IS_TODAY, "2024-03-13T23:59:00", None)
        assert not table.apply(Op.DATE_IS_TODAY, "2024-03-12T23:59:00", None)
        assert table.apply(Op.DATE_IS_YESTERDAY, "2024-03-12T08:00:00", None)

    def test_this_week_starts_sunday(self, table):
        assert table.apply(Op.DATE_IS_THIS_WEEK, "2024-03-10T00:00:00", None)
        assert table.apply(Op.DATE_IS_THIS_WEEK, "2024-03-16T23:59:59", None)
        assert not table.apply(Op.DATE_IS_THIS_WEEK, "2024-03-09T23:59:59", None)
        assert not table.apply(Op.DATE_IS_THIS_WEEK, "2024-03-17T00:00:00", None)

    def test_this_month_and_year(self, table):
        assert table.apply(Op.DATE_IS_THIS_MONTH, "2024-03-01", None)
        assert not table.apply(Op.DATE_IS_THIS_MONTH, "2023-03-13", None)
        assert table.apply(Op.DATE_IS_THIS_YEAR, "2024-12-31", None)
        assert not table.apply(Op.DATE_IS_THIS_YEAR, "2023-12-31", None)

    def test_time_between(self, table):
        assert table.apply(Op.TIME_BETWEEN, "2024-03-13T10:30:00", ["09:00", "17:00"])
        assert not table.apply(Op.TIME_BETWEEN, "18:00", ["09:00", "17:00"])
        assert table.apply(Op.TIME_BETWEEN, "23:30", ["22:00", "06:00"])
        assert table.apply(Op.TIME_BETWEEN, "05:59", ["22:00", "06:00"])
        assert not table.apply(Op.TIME_BETWEEN, "12:00", ["22:00", "06:00"])

    def test_day_of_week_sunday_is_zero(self, table):
        assert table.apply(Op.DAY_OF_WEEK, "2024-03-13", 3)
        assert table.apply(Op.DAY_OF_WEEK, "2024-03-10", 0)
        assert table.apply(Op.DAY_OF_WEEK, "2024-03-13", [1, 2, 3, 4, 5])
        assert not table.apply(Op.DAY_OF_WEEK, "2024-03-16", [1, 2, 3, 4, 5])

    def test_hour_of_day(self, table):
        assert table.apply(Op.HOUR_OF_DAY, "2024-03-13T10:30:00", 10)
        assert not table.apply(Op.HOUR_OF_DAY, "2024-03-13T10:30:00", [9, 11])


class TestAdvancedOperators:
    """Test similarity and JSON path operators."""

    def test_similarity(self):
        assert similarity("color", "colour") == pytest.approx(5 / 6)
        assert similarity("", "") == 1.0
        assert similarity("abc", "abc") == 1.0
        assert similarity("abc", "") == 0.0

    def test_fuzzy_match_thresholds(self, table):
        assert table.apply(Op.FUZZY_MATCH, "color", "colour")
        assert table.apply(Op.FUZZY_MATCH, "color", {"value": "colour", "threshold": 0.8})
        assert not table.apply(Op.FUZZY_MATCH, "color", {"value": "colour", "threshold": 0.9})
        assert table.apply(Op.SIMILARITY_SCORE, "kitten", {"text": "sitting", "threshold": 0.5})

    def test_fuzzy_threshold_from_table(self):
        strict = OperatorTable(fuzzy_threshold=0.95)
        assert not strict.apply(Op.FUZZY_MATCH, "color", "colour")

    def test_json_path_exists(self, table):
        data = {"a": {"b": [{"c": 1}]}}
        assert table.apply(Op.JSON_PATH_EXISTS, data, "a.b[0].c")
        assert table.apply(Op.JSON_PATH_EXISTS, data, "a.b.0")
        assert not table.apply(Op.JSON_PATH_EXISTS, data, "a.x")

    def test_json_path_equals(self, table):
        data = {"a": {"b": [{"c": 1}]}}
        assert table.apply(Op.JSON_PATH_EQUALS, data, {"path": "a.b[0].c", "expected": 1})
        assert not table.apply(Op.JSON_PATH_EQUALS, data, {"path": "a.b[0].c", "expected": "1"})
        assert not table.apply(Op.JSON_PATH_EQUALS, data, {"path": "a.z", "expected": None})

    def test_json_path_argument_shape(self, table):
        with pytest.raises(OperatorCoercionError):
            table.apply(Op.JSON_PATH_EQUALS, {}, "a.b")
        with pytest.raises(OperatorCoercionError):
            table.apply(Op.JSON_PATH_EXISTS, {}, 5)


class TestDispatch:
    """Test the dispatch table itself."""

    def test_every_operator_has_an_entry(self, table):
        assert table.operators() == frozenset(Op)

    def test_unknown_operator(self, table):
        with pytest.raises(UnknownOperatorError, match="Unknown operator: sentiment_analysis"):
            table.apply("sentiment_analysis", "a", "b")

    def test_filter_subset(self, table):
        assert Op.EQUALS in FILTER_OPERATORS
        assert Op.DATE_BETWEEN in FILTER_OPERATORS
        assert table.apply_filter(Op.EQUALS, "a", "a")
        with pytest.raises(UnsupportedFilterOperatorError, match="fuzzy_match"):
            table.apply_filter(Op.FUZZY_MATCH, "a", "a")

    def test_stringify(self):
        assert stringify(MISSING) == "undefined"
        assert stringify(None) == "null"
        assert stringify(True) == "true"
        assert stringify(2.0) == "2"
        assert stringify([1, None, "a"]) == "1,,a"
