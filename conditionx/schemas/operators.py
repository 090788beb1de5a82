"""
ConditionX Operator Enums

Each condition kind is typed to its own operator family, so an
illegal (kind, operator) pair cannot be constructed.
"""

from enum import Enum


class ComparisonOperator(str, Enum):
    """Operators legal on simple conditions and filters."""
    # Basic
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    MATCHES_REGEX = "matches_regex"

    # Numeric
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    BETWEEN = "between"
    NOT_BETWEEN = "not_between"

    # Array
    IN = "in"
    NOT_IN = "not_in"
    INCLUDES_ANY = "includes_any"
    INCLUDES_ALL = "includes_all"
    ARRAY_LENGTH_EQUALS = "array_length_equals"
    ARRAY_LENGTH_GREATER_THAN = "array_length_greater_than"
    ARRAY_LENGTH_LESS_THAN = "array_length_less_than"

    # Existence
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"

    # Type
    IS_STRING = "is_string"
    IS_NUMBER = "is_number"
    IS_BOOLEAN = "is_boolean"
    IS_ARRAY = "is_array"
    IS_OBJECT = "is_object"

    # Date / time
    DATE_EQUALS = "date_equals"
    DATE_AFTER = "date_after"
    DATE_BEFORE = "date_before"
    DATE_BETWEEN = "date_between"
    DATE_IS_TODAY = "date_is_today"
    DATE_IS_YESTERDAY = "date_is_yesterday"
    DATE_IS_THIS_WEEK = "date_is_this_week"
    DATE_IS_THIS_MONTH = "date_is_this_month"
    DATE_IS_THIS_YEAR = "date_is_this_year"
    TIME_BETWEEN = "time_between"
    DAY_OF_WEEK = "day_of_week"
    HOUR_OF_DAY = "hour_of_day"

    # Advanced
    FUZZY_MATCH = "fuzzy_match"
    SIMILARITY_SCORE = "similarity_score"
    JSON_PATH_EXISTS = "json_path_exists"
    JSON_PATH_EQUALS = "json_path_equals"


class LogicalOperator(str, Enum):
    """Operators legal on complex conditions."""
    AND = "and"
    OR = "or"
    NOT = "not"
    XOR = "xor"


class GroupOperator(str, Enum):
    """Combination rule of a filter group."""
    AND = "and"
    OR = "or"
