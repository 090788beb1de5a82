"""
ConditionX Filter Engine

Evaluates declarative filter groups against an execution context.

Per-filter pipeline:
1. Resolve the field value
2. Validate it (required, data type, length, pattern, custom validator)
3. Transform it (the expected value is never transformed)
4. Resolve the expected value (`{{ path }}` templating)
5. Compare through the shared filter operator subset
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional, Union
from dataclasses import dataclass
from datetime import date, datetime
import logging
import re
import time
import unicodedata

from ..schemas.context import MISSING, WorkflowExecutionContext
from ..schemas.filters import (
    DataType,
    Filter,
    FilterGroup,
    FilterTransformation,
    FilterValidation,
    TransformationType,
)
from ..schemas.operators import ComparisonOperator, GroupOperator
from ..schemas.results import FilterExecutionDetail, FilterResult
from .accessor import resolve_field, resolve_value
from .builtins import (
    TransformationFunction,
    ValidationFunction,
    ValidationOutcome,
    default_transformations,
    default_validators,
)
from .errors import TransformationNotFoundError
from .operators import OperatorTable, is_number, stringify, to_datetime


logger = logging.getLogger(__name__)


@dataclass
class FilterOptions:
    """Options for a filter group evaluation."""
    stop_on_first_failure: bool = False
    include_details: bool = True


@dataclass
class _Trace:
    """Accumulates per-filter outcomes across a group tree."""
    details: List[FilterExecutionDetail]
    matched: List[str]
    failed: List[str]
    errors: List[str]


def _by_priority(items: List[Any]) -> List[Any]:
    # sorted() is stable, so equal priorities keep their authored order
    return sorted(items, key=lambda item: -(item.priority or 0))


class FilterEngine:
    """
    Evaluates filter groups.

    Transformation and validation functions are registered Python
    callables looked up by name.
    """

    def __init__(self, operator_table: Optional[OperatorTable] = None):
        self._operators = operator_table or OperatorTable()
        self._transformations: Dict[str, TransformationFunction] = default_transformations()
        self._validators: Dict[str, ValidationFunction] = default_validators()

    # =========================================================================
    # Registration
    # =========================================================================

    def register_transformation_function(self, name: str, fn: TransformationFunction) -> None:
        """Register a transformation `fn(value, params) -> value`."""
        self._transformations[name] = fn

    def register_validation_function(self, name: str, fn: ValidationFunction) -> None:
        """Register a validator `fn(value) -> ValidationOutcome | bool`."""
        self._validators[name] = fn

    # =========================================================================
    # Evaluation
    # =========================================================================

    async def evaluate_group(
        self,
        group: FilterGroup,
        context: WorkflowExecutionContext,
        options: Optional[FilterOptions] = None,
    ) -> FilterResult:
        """
        Evaluate a filter group tree.

        Args:
            group: Root filter group
            context: Execution context
            options: Evaluation options

        Returns:
            FilterResult (never raises)
        """
        options = options or FilterOptions()
        started = time.perf_counter()
        trace = _Trace(details=[], matched=[], failed=[], errors=[])

        try:
            passed = self._evaluate_group(group, context, trace, options)
        except Exception as e:
            logger.exception(f"Filter group evaluation failed: {group.id}")
            passed = False
            trace.errors.append(str(e))
            trace.details.append(FilterExecutionDetail(
                filter_id=group.id,
                filter_name=group.name,
                field="",
                operator=ComparisonOperator.EQUALS.value,
                expected_value=None,
                actual_value=None,
                passed=False,
                error=str(e),
            ))

        return FilterResult(
            passed=passed,
            matched_filters=trace.matched,
            failed_filters=trace.failed,
            execution_time_ms=(time.perf_counter() - started) * 1000,
            details=trace.details if options.include_details else [],
            errors=trace.errors,
        )

    def _evaluate_group(
        self,
        group: FilterGroup,
        context: WorkflowExecutionContext,
        trace: _Trace,
        options: FilterOptions,
    ) -> bool:
        if not group.enabled:
            return True

        outcomes: List[bool] = []

        for item in _by_priority(group.filters):
            if not item.enabled:
                continue

            passed = self._evaluate_filter(item, context, trace)
            outcomes.append(passed)

            if passed:
                trace.matched.append(item.id)
            else:
                trace.failed.append(item.id)
                if options.stop_on_first_failure and group.operator == GroupOperator.AND:
                    return False

        for sub_group in _by_priority(group.sub_groups):
            if not sub_group.enabled:
                continue
            outcomes.append(self._evaluate_group(sub_group, context, trace, options))

        if group.operator == GroupOperator.AND:
            return all(outcomes)
        return any(outcomes)

    def _evaluate_filter(
        self,
        item: Filter,
        context: WorkflowExecutionContext,
        trace: _Trace,
    ) -> bool:
        """Run one filter through the pipeline and record its detail."""
        actual: Any = MISSING
        try:
            actual = resolve_field(item.field, context)

            if item.validation:
                problems = self.validate(actual, item.validation)
                if problems:
                    trace.details.append(FilterExecutionDetail(
                        filter_id=item.id,
                        filter_name=item.name,
                        field=item.field,
                        operator=item.operator.value,
                        expected_value=item.value,
                        actual_value=actual,
                        passed=False,
                        error=f"Validation failed: {', '.join(problems)}",
                    ))
                    return False

            value = actual
            if item.transformation:
                value = self.transform(actual, item.transformation)

            expected = resolve_value(item.value, context)
            passed = self._operators.apply_filter(item.operator, value, expected)

            trace.details.append(FilterExecutionDetail(
                filter_id=item.id,
                filter_name=item.name,
                field=item.field,
                operator=item.operator.value,
                expected_value=expected,
                actual_value=value,
                passed=passed,
                transformed_value=value if item.transformation else None,
            ))
            return passed

        except Exception as e:
            logger.debug(f"Filter {item.id} failed with error: {e}")
            trace.errors.append(f"{item.id}: {e}")
            trace.details.append(FilterExecutionDetail(
                filter_id=item.id,
                filter_name=item.name,
                field=item.field,
                operator=item.operator.value,
                expected_value=item.value,
                actual_value=actual,
                passed=False,
                error=str(e),
            ))
            return False

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self, value: Any, validation: FilterValidation) -> List[str]:
        """
        Check a field value against validation rules.

        Returns:
            List of problems (empty when valid)
        """
        errors: List[str] = []
        present = value is not MISSING and value is not None

        if validation.required and (not present or value == ""):
            errors.append("Field is required")

        if present and validation.data_type:
            problem = _data_type_problem(value, validation.data_type)
            if problem:
                errors.append(problem)

        if value and isinstance(value, (str, list, tuple)):
            if validation.min_length is not None and len(value) < validation.min_length:
                errors.append(
                    f"Field must be at least {validation.min_length} characters/items long"
                )
            if validation.max_length is not None and len(value) > validation.max_length:
                errors.append(
                    f"Field must be no more than {validation.max_length} characters/items long"
                )

        if validation.pattern and isinstance(value, str):
            if re.search(validation.pattern, value) is None:
                errors.append("Field does not match required pattern")

        if validation.custom_validator:
            validator = self._validators.get(validation.custom_validator)
            if validator is None:
                errors.append(f"Validation function not found: {validation.custom_validator}")
            else:
                outcome = validator(value)
                if isinstance(outcome, ValidationOutcome):
                    if not outcome.is_valid:
                        errors.extend(outcome.errors or [f"{validation.custom_validator} failed"])
                elif not outcome:
                    errors.append(f"{validation.custom_validator} failed")

        return errors

    # =========================================================================
    # Transformation
    # =========================================================================

    def transform(self, value: Any, transformation: FilterTransformation) -> Any:
        """Transform a field value; missing and null values pass through."""
        if value is MISSING or value is None:
            return value

        kind = transformation.type
        if kind == TransformationType.LOWERCASE:
            return stringify(value).lower()
        if kind == TransformationType.UPPERCASE:
            return stringify(value).upper()
        if kind == TransformationType.TRIM:
            return stringify(value).strip()
        if kind == TransformationType.NORMALIZE:
            return unicodedata.normalize("NFC", stringify(value)).strip().lower()

        name = transformation.custom_function or ""
        fn = self._transformations.get(name)
        if fn is None:
            raise TransformationNotFoundError(name)
        return fn(value, dict(transformation.params or {}))


def _data_type_problem(value: Any, data_type: DataType) -> Optional[str]:
    if data_type == DataType.STRING and not isinstance(value, str):
        return "Field must be a string"
    if data_type == DataType.NUMBER and not is_number(value):
        return "Field must be a valid number"
    if data_type == DataType.BOOLEAN and not isinstance(value, bool):
        return "Field must be a boolean"
    if data_type == DataType.DATE and to_datetime(value) is None:
        return "Field must be a valid date"
    if data_type == DataType.ARRAY and not isinstance(value, (list, tuple)):
        return "Field must be an array"
    if data_type == DataType.OBJECT and not isinstance(value, dict):
        return "Field must be an object"
    return None


# =============================================================================
# Builders
# =============================================================================

def create_filter(
    name: str,
    field: str,
    operator: Union[ComparisonOperator, str],
    value: Any = None,
    enabled: bool = True,
    priority: int = 0,
    validation: Optional[FilterValidation] = None,
    transformation: Optional[FilterTransformation] = None,
) -> Filter:
    """Build a filter."""
    return Filter(
        name=name,
        field=field,
        operator=ComparisonOperator(operator),
        value=value,
        enabled=enabled,
        priority=priority,
        validation=validation,
        transformation=transformation,
    )


def create_filter_group(
    name: str,
    operator: Union[GroupOperator, str],
    filters: List[Filter],
    description: Optional[str] = None,
    enabled: bool = True,
    priority: int = 0,
    sub_groups: Optional[List[FilterGroup]] = None,
) -> FilterGroup:
    """Build a filter group."""
    return FilterGroup(
        name=name,
        operator=GroupOperator(operator),
        filters=filters,
        description=description,
        enabled=enabled,
        priority=priority,
        sub_groups=sub_groups or [],
    )


def create_email_filter(field: str, domains: Optional[List[str]] = None) -> Union[Filter, FilterGroup]:
    """
    Email filter, optionally restricted to a domain whitelist.

    With domains, returns an AND group of the format filter and a domain
    filter comparing the extracted domain (without "@") to the whitelist.
    """
    email = create_filter(
        "Email Validation",
        field,
        ComparisonOperator.MATCHES_REGEX,
        r"^[^\s@]+@[^\s@]+\.[^\s@]+",
        validation=FilterValidation(
            required=True,
            data_type=DataType.STRING,
            custom_validator="isValidEmail",
        ),
        transformation=FilterTransformation(type=TransformationType.NORMALIZE),
    )

    if not domains:
        return email

    domain = create_filter(
        "Domain Whitelist",
        field,
        ComparisonOperator.IN,
        [d.lstrip("@").lower() for d in domains],
        transformation=FilterTransformation(
            type=TransformationType.CUSTOM,
            custom_function="extractDomain",
        ),
    )
    return create_filter_group("Email with Domain Check", GroupOperator.AND, [email, domain])


def create_date_range_filter(
    field: str,
    start: Union[date, datetime],
    end: Union[date, datetime],
) -> Filter:
    """Filter passing when the field date lies within [start, end]."""
    return create_filter(
        "Date Range Filter",
        field,
        ComparisonOperator.DATE_BETWEEN,
        [start.isoformat(), end.isoformat()],
        validation=FilterValidation(required=True, data_type=DataType.DATE),
    )


def create_numeric_range_filter(field: str, minimum: float, maximum: float) -> Filter:
    """Filter passing when the field number lies within [minimum, maximum]."""
    return create_filter(
        "Numeric Range Filter",
        field,
        ComparisonOperator.BETWEEN,
        [minimum, maximum],
        validation=FilterValidation(required=True, data_type=DataType.NUMBER),
    )


def create_text_length_filter(field: str, min_length: int, max_length: int) -> Filter:
    """Filter passing when the field is a string of bounded length."""
    return create_filter(
        "Text Length Filter",
        field,
        ComparisonOperator.EXISTS,
        True,
        validation=FilterValidation(
            required=True,
            data_type=DataType.STRING,
            min_length=min_length,
            max_length=max_length,
        ),
    )


def create_array_size_filter(field: str, min_size: int, max_size: Optional[int] = None) -> FilterGroup:
    """Group passing when the field array has between min_size and max_size items."""
    filters = [
        create_filter(
            "Array Min Size",
            field,
            ComparisonOperator.ARRAY_LENGTH_GREATER_THAN,
            min_size - 1,
        ),
    ]
    if max_size is not None:
        filters.append(create_filter(
            "Array Max Size",
            field,
            ComparisonOperator.ARRAY_LENGTH_LESS_THAN,
            max_size + 1,
        ))
    return create_filter_group("Array Size Filter", GroupOperator.AND, filters)
