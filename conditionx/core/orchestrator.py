"""
ConditionX Conditional Orchestrator

Runs a conditional action for one workflow step:

1. Validate the configuration
2. Evaluate conditions per evaluation mode (all / any / sequential)
3. Evaluate filter groups
4. Select the branch and build the new variable map
5. Write the audit record

Never raises: configuration problems and unexpected failures select
the onError branch.
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional, Union
from datetime import datetime, timedelta
import logging
import time

from pydantic import ValidationError

from ..config import get_config
from ..schemas.actions import (
    Branch,
    BranchName,
    ConditionalActionConfig,
    ConditionalOptions,
    EvaluationMode,
    LogLevel,
)
from ..schemas.conditions import Condition
from ..schemas.context import WorkflowExecutionContext
from ..schemas.operators import ComparisonOperator, LogicalOperator
from ..schemas.results import (
    ConditionalExecutionResult,
    ConditionalResult,
    ExecutionMetadata,
    FilterResult,
)
from ..validation import ConfigValidator
from .audit_log import AuditLogStorage, AuditRecord, get_audit_storage
from .builtins import CustomFunction, TransformationFunction, ValidationFunction, workflow_custom_functions
from .cache import CacheStats
from .evaluator import (
    ConditionEvaluator,
    EvaluationOptions,
    create_complex_condition,
    create_simple_condition,
)
from .filter_engine import FilterEngine, FilterOptions
from .operators import Clock


logger = logging.getLogger(__name__)


ConfigInput = Union[ConditionalActionConfig, Dict[str, Any]]


class ConditionalOrchestrator:
    """
    Executes conditional actions.

    Usage:
        orchestrator = ConditionalOrchestrator()
        result = await orchestrator.execute_conditional_action(config, context)
        dispatch(result.next_action_ids, result.variables)
    """

    def __init__(
        self,
        evaluator: Optional[ConditionEvaluator] = None,
        audit_storage: Optional[AuditLogStorage] = None,
        validator: Optional[ConfigValidator] = None,
        clock: Optional[Clock] = None,
    ):
        self.evaluator = evaluator or ConditionEvaluator(clock=clock)
        self.clock: Clock = clock or self.evaluator.operators.clock
        self.audit_storage = audit_storage if audit_storage is not None else get_audit_storage()
        self.validator = validator or ConfigValidator()
        self.debug = get_config().debug

        for name, fn in workflow_custom_functions(self.clock).items():
            self.evaluator.register_custom_function(name, fn)

    @property
    def filter_engine(self) -> FilterEngine:
        return self.evaluator.filter_engine

    # =========================================================================
    # Extensibility
    # =========================================================================

    def register_custom_function(self, name: str, fn: CustomFunction) -> None:
        """Register a custom condition function."""
        self.evaluator.register_custom_function(name, fn)

    def register_transformation_function(self, name: str, fn: TransformationFunction) -> None:
        """Register a filter transformation function."""
        self.filter_engine.register_transformation_function(name, fn)

    def register_validation_function(self, name: str, fn: ValidationFunction) -> None:
        """Register a filter validation function."""
        self.filter_engine.register_validation_function(name, fn)

    def clear_cache(self) -> None:
        self.evaluator.clear_cache()

    def get_cache_stats(self) -> CacheStats:
        return self.evaluator.get_cache_stats()

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute_conditional_action(
        self,
        config: ConfigInput,
        context: WorkflowExecutionContext,
    ) -> ConditionalExecutionResult:
        """
        Execute a conditional action.

        Args:
            config: Parsed configuration or raw (camelCase) mapping
            context: Execution context (never mutated)

        Returns:
            ConditionalExecutionResult with the selected branch
        """
        started = time.perf_counter()

        if not isinstance(config, ConditionalActionConfig):
            parsed, validation = self.validator.parse(config)
            if parsed is None:
                logger.warning(f"Invalid conditional action config: {validation.messages()}")
                return self.error_result(
                    None,
                    context,
                    validation.messages(),
                    started,
                    on_error=raw_error_branch(config),
                )
            config = parsed

        try:
            validation = self.validator.validate(
                config,
                known_functions=self.evaluator.custom_function_names(),
            )
            for warning in validation.warnings:
                logger.debug(f"{config.id}: {warning.code} {warning.message}")

            if validation.has_blocking():
                logger.warning(f"Conditional action {config.id} failed validation: {validation.messages()}")
                result = self.error_result(config, context, validation.messages(), started)
            else:
                result = await self._execute(config, context, started)

        except Exception as e:
            logger.exception(f"Conditional action failed: {config.id}")
            result = self.error_result(config, context, [str(e)], started)

        if config.options.log_level != LogLevel.NONE:
            try:
                await self._write_audit(config, result, context)
            except Exception as e:
                logger.exception(f"Audit write failed: {config.id}")
                result.errors.append(f"Audit write failed: {e}")

        timeout_ms = config.options.timeout_ms
        if timeout_ms and result.execution_time_ms > timeout_ms:
            logger.warning(
                f"Conditional action {config.id} took {result.execution_time_ms:.1f}ms "
                f"(timeout: {timeout_ms}ms)"
            )

        return result

    async def _execute(
        self,
        config: ConditionalActionConfig,
        context: WorkflowExecutionContext,
        started: float,
    ) -> ConditionalExecutionResult:
        options = config.options

        condition_results = await self._evaluate_conditions(config, context)
        conditions_passed = _combine(condition_results, options.evaluation_mode)

        filter_results: List[FilterResult] = []
        for group in config.filters:
            filter_results.append(await self.filter_engine.evaluate_group(
                group,
                context,
                FilterOptions(stop_on_first_failure=False, include_details=True),
            ))
        filters_passed = all(r.passed for r in filter_results)

        if conditions_passed and filters_passed:
            branch = BranchName.ON_TRUE
        elif config.on_false is not None:
            branch = BranchName.ON_FALSE
        else:
            branch = BranchName.ON_ERROR

        errors: List[str] = []
        for r in condition_results:
            if not r.success:
                errors.extend(f"{r.metadata.condition_id}: {e}" for e in r.errors)
        for r in filter_results:
            errors.extend(r.errors)

        passed_conditions = sum(1 for r in condition_results if r.passed)
        metadata = ExecutionMetadata(
            evaluation_mode=options.evaluation_mode.value,
            total_conditions=len(config.conditions),
            evaluated_conditions=len(condition_results),
            passed_conditions=passed_conditions,
            failed_conditions=len(condition_results) - passed_conditions,
            total_filters=sum(g.enabled_filter_count() for g in config.filters),
            passed_filters=sum(len(r.matched_filters) for r in filter_results),
        )

        branch_config = config.branch_config(branch)
        return ConditionalExecutionResult(
            success=True,
            conditions_passed=conditions_passed,
            filters_passed=filters_passed,
            branch=branch,
            execution_time_ms=_elapsed_ms(started),
            next_action_ids=list(branch_config.action_ids),
            continue_workflow=branch_config.continue_workflow,
            variables=self._merge_variables(
                context, branch_config, conditions_passed, filters_passed, branch
            ),
            metadata=metadata,
            condition_results=condition_results,
            filter_results=filter_results,
            errors=errors,
        )

    async def _evaluate_conditions(
        self,
        config: ConditionalActionConfig,
        context: WorkflowExecutionContext,
    ) -> List[ConditionalResult]:
        """Evaluate conditions in order, stopping early per evaluation mode."""
        options = config.options
        eval_options = EvaluationOptions(
            use_cache=options.cache_results,
            timeout_ms=options.timeout_ms,
            debug=self.debug,
        )

        results: List[ConditionalResult] = []
        for condition in config.conditions:
            result = await self.evaluator.evaluate(condition, context, eval_options)
            results.append(result)

            if options.evaluation_mode == EvaluationMode.ANY and result.passed:
                break
            if (
                options.evaluation_mode == EvaluationMode.SEQUENTIAL
                and options.stop_on_first_failure
                and not result.passed
            ):
                break

        return results

    def _merge_variables(
        self,
        context: WorkflowExecutionContext,
        branch_config: Branch,
        conditions_passed: bool,
        filters_passed: bool,
        branch: BranchName,
    ) -> Dict[str, Any]:
        """New variable map: context variables, branch variables, `_conditional`."""
        return {
            **context.variables,
            **branch_config.set_variables,
            "_conditional": {
                "conditionsPassed": conditions_passed,
                "filtersPassed": filters_passed,
                "branch": branch.value,
                "executionId": context.execution_id,
                "timestamp": self.clock().isoformat(),
            },
        }

    def error_result(
        self,
        config: Optional[ConditionalActionConfig],
        context: WorkflowExecutionContext,
        errors: List[str],
        started: Optional[float] = None,
        on_error: Optional[Branch] = None,
    ) -> ConditionalExecutionResult:
        """Result selecting onError (configuration problems, timeouts, unexpected failures)."""
        if started is None:
            started = time.perf_counter()
        if config is not None:
            branch_config = config.branch_config(BranchName.ON_ERROR)
            options = config.options
            total = len(config.conditions)
        else:
            branch_config = on_error or Branch()
            options = ConditionalOptions()
            total = 0

        return ConditionalExecutionResult(
            success=False,
            conditions_passed=False,
            filters_passed=False,
            branch=BranchName.ON_ERROR,
            execution_time_ms=_elapsed_ms(started),
            next_action_ids=list(branch_config.action_ids),
            continue_workflow=branch_config.continue_workflow,
            variables=self._merge_variables(
                context, branch_config, False, False, BranchName.ON_ERROR
            ),
            metadata=ExecutionMetadata(
                evaluation_mode=options.evaluation_mode.value,
                total_conditions=total,
            ),
            errors=list(errors),
        )

    async def _write_audit(
        self,
        config: ConditionalActionConfig,
        result: ConditionalExecutionResult,
        context: WorkflowExecutionContext,
    ) -> None:
        details = None
        if config.options.log_level == LogLevel.DETAILED:
            full = result.to_dict()
            details = {
                "conditionResults": full["conditionResults"],
                "filterResults": full["filterResults"],
                "metadata": full["metadata"],
            }

        record = AuditRecord(
            action_id=config.id,
            action_name=config.name,
            execution_id=context.execution_id,
            workflow_id=context.workflow_id,
            user_id=context.user_id,
            branch=result.branch.value,
            conditions_passed=result.conditions_passed,
            filters_passed=result.filters_passed,
            execution_time_ms=result.execution_time_ms,
            log_level=config.options.log_level.value,
            errors=list(result.errors),
            details=details,
        )

        logger.info(
            f"Conditional action {config.id} ({config.name}) -> {record.branch} "
            f"[conditions={record.conditions_passed}, filters={record.filters_passed}, "
            f"{record.execution_time_ms:.1f}ms]"
        )
        await self.audit_storage.save_record(record)


def _combine(results: List[ConditionalResult], mode: EvaluationMode) -> bool:
    if not results:
        return False
    if mode == EvaluationMode.ANY:
        return any(r.passed for r in results)
    return all(r.passed for r in results)


def raw_error_branch(data: Any) -> Optional[Branch]:
    """Best-effort onError branch from a config that failed to parse."""
    if not isinstance(data, dict):
        return None
    raw = data.get("onError", data.get("on_error"))
    if raw is None:
        return None
    try:
        return Branch.model_validate(raw)
    except ValidationError:
        return None


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


# =============================================================================
# Scenario Builders
# =============================================================================

def create_email_validation_condition(field_path: str) -> Condition:
    """Condition checking that a field holds a well-formed email."""
    return create_simple_condition(
        field_path,
        ComparisonOperator.MATCHES_REGEX,
        r"^[^\s@]+@[^\s@]+\.[^\s@]+",
        {
            "name": "Email Validation",
            "description": f"Validate email format for {field_path}",
            "tags": ["validation", "email"],
        },
    )


def create_date_range_condition(field_path: str, start: datetime, end: datetime) -> Condition:
    """Condition checking that a field date lies within [start, end]."""
    return create_simple_condition(
        field_path,
        ComparisonOperator.DATE_BETWEEN,
        [start.isoformat(), end.isoformat()],
        {
            "name": "Date Range Check",
            "description": f"Check if {field_path} is between {start.date()} and {end.date()}",
            "tags": ["date", "range"],
        },
    )


def create_business_logic_condition(
    conditions: List[Condition],
    operator: Union[LogicalOperator, str] = LogicalOperator.AND,
) -> Condition:
    """Combine conditions under AND / OR."""
    operator = LogicalOperator(operator)
    return create_complex_condition(
        operator,
        conditions,
        {
            "name": "Business Logic",
            "description": f"Complex business logic using {operator.value.upper()} operator",
            "tags": ["business", "logic", "complex"],
        },
    )


def create_user_permission_check(
    user_role: str,
    required_permissions: List[str],
) -> ConditionalActionConfig:
    """Gate on `user.role` and, optionally, `user.permissions`."""
    conditions = [
        create_simple_condition("user.role", ComparisonOperator.EQUALS, user_role, {"name": "Role Check"}),
    ]
    if required_permissions:
        conditions.append(create_simple_condition(
            "user.permissions",
            ComparisonOperator.INCLUDES_ALL,
            list(required_permissions),
            {"name": "Permission Check"},
        ))

    return ConditionalActionConfig(
        id=f"permission_check_{int(time.time() * 1000)}",
        name="User Permission Check",
        description=f"Check if user has role '{user_role}' and required permissions",
        conditions=conditions,
        on_true=Branch(action_ids=["continue_workflow"], continue_workflow=True),
        on_false=Branch(
            action_ids=["access_denied"],
            continue_workflow=False,
            set_variables={"error": "Insufficient permissions", "errorCode": "ACCESS_DENIED"},
        ),
        options=ConditionalOptions(
            evaluation_mode=EvaluationMode.ALL,
            stop_on_first_failure=True,
            timeout_ms=5000,
            cache_results=True,
            log_level=LogLevel.BASIC,
        ),
    )


def create_data_validation_check(rules: List[Dict[str, Any]]) -> ConditionalActionConfig:
    """
    Validate input data against rules.

    Each rule is `{field, operator, value, message?}`.
    """
    conditions = [
        create_simple_condition(
            rule["field"],
            rule["operator"],
            rule.get("value"),
            {
                "name": f"Validate {rule['field']}",
                "description": rule.get("message") or f"Validation for {rule['field']}",
            },
        )
        for rule in rules
    ]

    return ConditionalActionConfig(
        id=f"data_validation_{int(time.time() * 1000)}",
        name="Data Validation",
        description="Validate input data according to business rules",
        conditions=conditions,
        on_true=Branch(
            action_ids=["process_data"],
            continue_workflow=True,
            set_variables={"validationStatus": "passed"},
        ),
        on_false=Branch(
            action_ids=["validation_failed"],
            continue_workflow=False,
            set_variables={"validationStatus": "failed", "error": "Data validation failed"},
        ),
        options=ConditionalOptions(
            evaluation_mode=EvaluationMode.ALL,
            stop_on_first_failure=False,
            timeout_ms=10000,
            cache_results=False,
            log_level=LogLevel.DETAILED,
        ),
    )


def create_approval_workflow(
    approval_field: str,
    required_approvers: int,
    timeout_hours: float = 24,
    now: Optional[datetime] = None,
) -> ConditionalActionConfig:
    """Gate on approval status, approver count and submission age."""
    now = now or datetime.now()
    conditions = [
        create_simple_condition(
            f"{approval_field}.status",
            ComparisonOperator.EQUALS,
            "approved",
            {"name": "Approval Status Check"},
        ),
        create_simple_condition(
            f"{approval_field}.approvers",
            ComparisonOperator.ARRAY_LENGTH_GREATER_THAN,
            required_approvers - 1,
            {"name": "Minimum Approvers Check"},
        ),
        create_simple_condition(
            f"{approval_field}.submittedAt",
            ComparisonOperator.DATE_AFTER,
            (now - timedelta(hours=timeout_hours)).isoformat(),
            {"name": "Timeout Check"},
        ),
    ]

    return ConditionalActionConfig(
        id=f"approval_workflow_{int(time.time() * 1000)}",
        name="Approval Workflow",
        description=f"Check approval status with {required_approvers} required approvers",
        conditions=conditions,
        on_true=Branch(
            action_ids=["execute_approved_action"],
            continue_workflow=True,
            set_variables={"approvalResult": "approved", "approvedAt": now.isoformat()},
        ),
        on_false=Branch(
            action_ids=["handle_pending_approval"],
            continue_workflow=False,
            set_variables={
                "approvalResult": "pending",
                "reason": "Insufficient approvals or timeout",
            },
        ),
        options=ConditionalOptions(
            evaluation_mode=EvaluationMode.ALL,
            stop_on_first_failure=False,
            timeout_ms=15000,
            cache_results=True,
            log_level=LogLevel.DETAILED,
        ),
    )
