"""
ConditionX Condition Evaluator

Recursive interpreter over condition trees.

Node kinds:
- simple:  operator table dispatch on (field value, expected value)
- complex: and / or short-circuit, not negates, xor evaluates all children
- filter:  delegates to the FilterEngine
- custom:  registered (sync or async) predicate

Faults never escape: every node returns a ConditionalResult and a fault
is reported as `success=False` with its error messages.
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional, Union
from dataclasses import dataclass
import inspect
import logging
import time

from ..config import get_config
from ..schemas.conditions import (
    Condition,
    ComplexCondition,
    ConditionMetadata,
    CustomCondition,
    FilterCondition,
    SimpleCondition,
)
from ..schemas.context import WorkflowExecutionContext
from ..schemas.filters import FilterGroup
from ..schemas.operators import ComparisonOperator, LogicalOperator
from ..schemas.results import ConditionalResult, ConditionMetadataResult
from .accessor import resolve_field, resolve_value
from .builtins import CustomFunction, engine_custom_functions
from .cache import CacheStats, ResultCache, cache_key
from .errors import CustomFunctionNotFoundError, EvaluationError
from .filter_engine import FilterEngine, FilterOptions
from .operators import Clock, OperatorTable


logger = logging.getLogger(__name__)


@dataclass
class EvaluationOptions:
    """
    Options for a single evaluation.

    `timeout_ms` is carried for callers but not enforced here;
    deadlines are imposed by the caller (see ConditionalStepHandler).
    """
    use_cache: bool = False
    timeout_ms: Optional[int] = None
    debug: bool = False


class ConditionEvaluator:
    """
    Evaluates condition trees against an execution context.

    Usage:
        evaluator = ConditionEvaluator()
        result = await evaluator.evaluate(condition, context)
        if result.passed:
            ...
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        filter_engine: Optional[FilterEngine] = None,
        cache: Optional[ResultCache] = None,
        fuzzy_threshold: Optional[float] = None,
    ):
        config = get_config()
        threshold = config.fuzzy_threshold if fuzzy_threshold is None else fuzzy_threshold

        self.operators = OperatorTable(clock=clock, fuzzy_threshold=threshold)
        self.filter_engine = filter_engine or FilterEngine(self.operators)
        self._cache = cache if cache is not None else ResultCache(config.cache.max_entries)
        self._custom_functions: Dict[str, CustomFunction] = engine_custom_functions(self.operators.clock)

    # =========================================================================
    # Registration / Cache
    # =========================================================================

    def register_custom_function(self, name: str, fn: CustomFunction) -> None:
        """Register a custom predicate `fn(context, params) -> bool | Awaitable[bool]`."""
        self._custom_functions[name] = fn

    def custom_function_names(self) -> List[str]:
        return sorted(self._custom_functions)

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return self._cache.stats()

    # =========================================================================
    # Evaluation
    # =========================================================================

    async def evaluate(
        self,
        condition: Condition,
        context: WorkflowExecutionContext,
        options: Optional[EvaluationOptions] = None,
    ) -> ConditionalResult:
        """
        Evaluate a condition tree.

        Args:
            condition: Root condition node
            context: Execution context (never mutated)
            options: Evaluation options

        Returns:
            ConditionalResult; `success=False` on an evaluation fault
        """
        options = options or EvaluationOptions()

        key = cache_key(condition.id, context) if options.use_cache else None
        if key is not None:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        result = await self._evaluate_node(condition, context, options)

        if key is not None and result.success:
            self._cache.set(key, result)

        return result

    async def _evaluate_node(
        self,
        condition: Condition,
        context: WorkflowExecutionContext,
        options: EvaluationOptions,
    ) -> ConditionalResult:
        started = time.perf_counter()
        metadata = ConditionMetadataResult(
            condition_id=condition.id,
            kind=condition.kind,
            operator=condition.operator_name,
            field=getattr(condition, "field", None),
        )

        try:
            if isinstance(condition, SimpleCondition):
                outcome = self._evaluate_simple(condition, context, metadata)
            elif isinstance(condition, ComplexCondition):
                outcome = await self._evaluate_complex(condition, context, options, metadata)
            elif isinstance(condition, FilterCondition):
                outcome = await self._evaluate_filter(condition.group, context)
            elif isinstance(condition, CustomCondition):
                outcome = await self._evaluate_custom(condition, context)
            else:
                raise EvaluationError(f"Unknown condition kind: {getattr(condition, 'kind', None)}")

        except _ChildFault as fault:
            return ConditionalResult(
                success=False,
                result=False,
                execution_time_ms=_elapsed_ms(started),
                metadata=metadata,
                errors=fault.errors,
            )
        except Exception as e:
            logger.debug(f"Condition {condition.id} faulted: {e}")
            return ConditionalResult(
                success=False,
                result=False,
                execution_time_ms=_elapsed_ms(started),
                metadata=metadata,
                errors=[str(e)],
            )

        if options.debug:
            logger.debug(
                f"Condition {condition.id} ({metadata.operator}) -> {outcome} "
                f"[actual={metadata.actual_value!r}, expected={metadata.evaluated_value!r}]"
            )

        return ConditionalResult(
            success=True,
            result=outcome,
            execution_time_ms=_elapsed_ms(started),
            metadata=metadata,
        )

    def _evaluate_simple(
        self,
        condition: SimpleCondition,
        context: WorkflowExecutionContext,
        metadata: ConditionMetadataResult,
    ) -> bool:
        actual = resolve_field(condition.field, context)
        expected = resolve_value(condition.value, context)
        metadata.actual_value = actual
        metadata.evaluated_value = expected
        return self.operators.apply(condition.operator, actual, expected)

    async def _evaluate_complex(
        self,
        condition: ComplexCondition,
        context: WorkflowExecutionContext,
        options: EvaluationOptions,
        metadata: ConditionMetadataResult,
    ) -> bool:
        operator = condition.operator
        sub_results = metadata.sub_results

        async def child(node: Condition) -> bool:
            result = await self._evaluate_node(node, context, options)
            sub_results.append(result)
            if not result.success:
                raise _ChildFault(result.errors)
            return result.result

        if operator == LogicalOperator.AND:
            for node in condition.children:
                if not await child(node):
                    return False
            return True

        if operator == LogicalOperator.OR:
            for node in condition.children:
                if await child(node):
                    return True
            return False

        if operator == LogicalOperator.NOT:
            return not await child(condition.children[0])

        # XOR: exactly one child true, all children evaluated
        true_count = 0
        for node in condition.children:
            if await child(node):
                true_count += 1
        return true_count == 1

    async def _evaluate_filter(self, group: FilterGroup, context: WorkflowExecutionContext) -> bool:
        result = await self.filter_engine.evaluate_group(
            group, context, FilterOptions(include_details=False)
        )
        return result.passed

    async def _evaluate_custom(self, condition: CustomCondition, context: WorkflowExecutionContext) -> bool:
        fn = self._custom_functions.get(condition.function_name)
        if fn is None:
            raise CustomFunctionNotFoundError(condition.function_name)

        outcome = fn(context, condition.value)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return bool(outcome)


class _ChildFault(Exception):
    """Carries a faulted child's errors up to its parent."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = list(errors)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


# =============================================================================
# Builders
# =============================================================================

def _metadata(metadata: Optional[Union[ConditionMetadata, Dict[str, Any]]]) -> ConditionMetadata:
    if metadata is None:
        return ConditionMetadata()
    if isinstance(metadata, ConditionMetadata):
        return metadata
    return ConditionMetadata.model_validate(metadata)


def create_simple_condition(
    field: str,
    operator: Union[ComparisonOperator, str],
    value: Any = None,
    metadata: Optional[Union[ConditionMetadata, Dict[str, Any]]] = None,
) -> SimpleCondition:
    """Build a `field <operator> value` condition."""
    return SimpleCondition(
        field=field,
        operator=ComparisonOperator(operator),
        value=value,
        metadata=_metadata(metadata),
    )


def create_complex_condition(
    operator: Union[LogicalOperator, str],
    children: List[Condition],
    metadata: Optional[Union[ConditionMetadata, Dict[str, Any]]] = None,
) -> ComplexCondition:
    """Build a logical combination of conditions."""
    return ComplexCondition(
        operator=LogicalOperator(operator),
        children=children,
        metadata=_metadata(metadata),
    )


def create_filter_condition(
    group: FilterGroup,
    metadata: Optional[Union[ConditionMetadata, Dict[str, Any]]] = None,
) -> FilterCondition:
    """Build a condition that passes when the filter group passes."""
    return FilterCondition(group=group, metadata=_metadata(metadata))


def create_custom_condition(
    function_name: str,
    params: Any = None,
    metadata: Optional[Union[ConditionMetadata, Dict[str, Any]]] = None,
) -> CustomCondition:
    """Build a condition invoking a registered custom function."""
    return CustomCondition(
        function_name=function_name,
        value=params,
        metadata=_metadata(metadata),
    )
