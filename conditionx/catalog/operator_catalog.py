"""
ConditionX Operator Catalog

Operator descriptions grouped by category, as shown in the workflow
builder's operator picker.
"""

from typing import Dict, List


OperatorEntry = Dict[str, str]


def _entry(value: str, label: str, description: str, example: str) -> OperatorEntry:
    return {"value": value, "label": label, "description": description, "example": example}


OPERATOR_CATALOG: Dict[str, List[OperatorEntry]] = {
    "basic": [
        _entry("equals", "Equals", "Check if values are exactly equal", 'field equals "value"'),
        _entry("not_equals", "Not Equals", "Check if values are not equal", 'field not_equals "value"'),
        _entry("contains", "Contains", "Check if string contains substring", 'field contains "substring"'),
        _entry("not_contains", "Not Contains", "Check if string does not contain substring",
               'field not_contains "substring"'),
        _entry("starts_with", "Starts With", "Check if string starts with prefix", 'field starts_with "prefix"'),
        _entry("ends_with", "Ends With", "Check if string ends with suffix", 'field ends_with "suffix"'),
        _entry("matches_regex", "Matches Regex", "Check if string matches regular expression",
               'field matches_regex "^[A-Z]+"'),
    ],
    "numeric": [
        _entry("greater_than", "Greater Than", "Check if number is greater than value", "field > 10"),
        _entry("greater_than_or_equal", "Greater Than or Equal",
               "Check if number is greater than or equal to value", "field >= 10"),
        _entry("less_than", "Less Than", "Check if number is less than value", "field < 10"),
        _entry("less_than_or_equal", "Less Than or Equal",
               "Check if number is less than or equal to value", "field <= 10"),
        _entry("between", "Between", "Check if number is between two values (inclusive)", "field between [1, 10]"),
        _entry("not_between", "Not Between", "Check if number is not between two values",
               "field not_between [1, 10]"),
    ],
    "array": [
        _entry("in", "In Array", "Check if value exists in array", 'field in ["a", "b", "c"]'),
        _entry("not_in", "Not In Array", "Check if value does not exist in array", 'field not_in ["a", "b", "c"]'),
        _entry("includes_any", "Includes Any", "Check if array includes any of the values",
               'field includes_any ["a", "b"]'),
        _entry("includes_all", "Includes All", "Check if array includes all of the values",
               'field includes_all ["a", "b"]'),
        _entry("array_length_equals", "Array Length Equals", "Check if array length equals value",
               "field.length == 5"),
        _entry("array_length_greater_than", "Array Length Greater Than",
               "Check if array length is greater than value", "field.length > 5"),
        _entry("array_length_less_than", "Array Length Less Than",
               "Check if array length is less than value", "field.length < 5"),
    ],
    "existence": [
        _entry("exists", "Exists", "Check if field exists and is not null", "field exists"),
        _entry("not_exists", "Not Exists", "Check if field does not exist or is null", "field not_exists"),
        _entry("is_null", "Is Null", "Check if field is null", "field is null"),
        _entry("is_not_null", "Is Not Null", "Check if field is not null", "field is not null"),
        _entry("is_empty", "Is Empty", "Check if field is empty (string, array, or object)", "field is empty"),
        _entry("is_not_empty", "Is Not Empty", "Check if field is not empty", "field is not empty"),
    ],
    "type": [
        _entry("is_string", "Is String", "Check if field is a string", "field is string"),
        _entry("is_number", "Is Number", "Check if field is a number (not NaN, not boolean)", "field is number"),
        _entry("is_boolean", "Is Boolean", "Check if field is a boolean", "field is boolean"),
        _entry("is_array", "Is Array", "Check if field is an array", "field is array"),
        _entry("is_object", "Is Object", "Check if field is an object", "field is object"),
    ],
    "date": [
        _entry("date_equals", "Date Equals", "Check if dates are equal", 'field date_equals "2024-01-01"'),
        _entry("date_after", "Date After", "Check if date is after specified date", 'field date_after "2024-01-01"'),
        _entry("date_before", "Date Before", "Check if date is before specified date",
               'field date_before "2024-01-01"'),
        _entry("date_between", "Date Between", "Check if date is between two dates",
               'field date_between ["2024-01-01", "2024-12-31"]'),
        _entry("date_is_today", "Is Today", "Check if date is today", "field is today"),
        _entry("date_is_yesterday", "Is Yesterday", "Check if date is yesterday", "field is yesterday"),
        _entry("date_is_this_week", "Is This Week", "Check if date is in current week (from Sunday)",
               "field is this week"),
        _entry("date_is_this_month", "Is This Month", "Check if date is in current month", "field is this month"),
        _entry("date_is_this_year", "Is This Year", "Check if date is in current year", "field is this year"),
        _entry("time_between", "Time Between", "Check if time of day is within a window",
               'field time_between ["09:00", "17:00"]'),
        _entry("day_of_week", "Day of Week", "Check the weekday (Sunday = 0)", "field day_of_week [1, 2, 3, 4, 5]"),
        _entry("hour_of_day", "Hour of Day", "Check the hour (0-23)", "field hour_of_day [9, 10, 11]"),
    ],
    "logical": [
        _entry("and", "AND", "All conditions must be true", "condition1 AND condition2"),
        _entry("or", "OR", "At least one condition must be true", "condition1 OR condition2"),
        _entry("not", "NOT", "Condition must be false", "NOT condition1"),
        _entry("xor", "XOR", "Exactly one condition must be true", "condition1 XOR condition2"),
    ],
    "advanced": [
        _entry("fuzzy_match", "Fuzzy Match", "Check similarity between strings", 'field fuzzy_match "similar text"'),
        _entry("similarity_score", "Similarity Score", "Check if similarity score meets threshold",
               'field similarity_score {"value": "text", "threshold": 0.8}'),
        _entry("json_path_exists", "JSON Path Exists", "Check if JSON path exists", 'field json_path_exists "a.b[0]"'),
        _entry("json_path_equals", "JSON Path Equals", "Check if JSON path value equals expected",
               'field json_path_equals {"path": "a.b", "expected": 1}'),
    ],
}


def list_operators() -> Dict[str, List[OperatorEntry]]:
    """Get the operator catalog grouped by category."""
    return {category: [dict(e) for e in entries] for category, entries in OPERATOR_CATALOG.items()}


def total_operators() -> int:
    """Total number of catalogued operators."""
    return sum(len(entries) for entries in OPERATOR_CATALOG.values())
