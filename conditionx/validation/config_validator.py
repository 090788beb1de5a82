"""
ConditionX Configuration Validator

Validates conditional action configurations before evaluation.
Blocking issues route the action to its onError branch.

Codes:
    E_SCHEMA              Raw configuration failed to parse
    E_MISSING_ID          Action, condition, filter or group without an id
    E_NO_CONDITIONS       No conditions configured
    E_MISSING_ON_TRUE     No onTrue branch
    E_MISSING_FIELD       Simple condition without a field
    E_NO_CHILDREN         Complex condition without children
    E_NOT_ARITY           'not' condition without exactly one child
    E_MISSING_FUNCTION    Custom condition without a function name
    E_INVALID_TIMEOUT     timeoutMs is not positive
    E_TOO_MANY_CONDITIONS Condition node count over the configured limit
    E_DEPTH               Condition tree deeper than the configured limit
    E_TOO_MANY_FILTERS    Filter group over the configured filter limit
    W_DUPLICATE_ID        Condition id used more than once
    W_EMPTY_GROUP         Filter group with no enabled filters
    W_NO_FALSE_BRANCH     A false outcome will select onError
    W_UNKNOWN_FUNCTION    Custom function not registered (faults at runtime)
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional, Set, Tuple, Iterable
from pydantic import ValidationError

from ..config import EngineLimits, get_config
from ..schemas.actions import ConditionalActionConfig
from ..schemas.conditions import (
    Condition,
    ComplexCondition,
    CustomCondition,
    FilterCondition,
    SimpleCondition,
)
from ..schemas.filters import FilterGroup
from ..schemas.operators import LogicalOperator
from .issues import ValidationIssue, ValidationResult, ValidationSeverity


class ConfigValidator:
    """
    Validates ConditionalActionConfig instances.

    Limits default to the engine limits from configuration.
    """

    def __init__(self, limits: Optional[EngineLimits] = None):
        self.limits = limits or get_config().limits

    def parse(
        self,
        data: Dict[str, Any],
    ) -> Tuple[Optional[ConditionalActionConfig], ValidationResult]:
        """
        Parse a raw configuration mapping.

        Returns:
            (config or None, validation result)
        """
        try:
            config = ConditionalActionConfig.model_validate(data)
        except ValidationError as e:
            errors = [
                ValidationIssue(
                    code="E_SCHEMA",
                    severity=ValidationSeverity.BLOCKING,
                    message=f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}",
                )
                for err in e.errors()
            ]
            return None, ValidationResult(valid=False, errors=errors)

        return config, self.validate(config)

    def validate(
        self,
        config: ConditionalActionConfig,
        known_functions: Optional[Iterable[str]] = None,
    ) -> ValidationResult:
        """
        Validate a parsed configuration.

        Args:
            config: Conditional action configuration
            known_functions: Registered custom function names (optional);
                unknown names are reported as warnings

        Returns:
            ValidationResult with blocking errors and warnings
        """
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        if not config.id:
            errors.append(ValidationIssue(
                code="E_MISSING_ID",
                severity=ValidationSeverity.BLOCKING,
                message="Conditional action missing required 'id'",
            ))

        if not config.conditions:
            errors.append(ValidationIssue(
                code="E_NO_CONDITIONS",
                severity=ValidationSeverity.BLOCKING,
                message="At least one condition is required",
            ))

        if config.on_true is None:
            errors.append(ValidationIssue(
                code="E_MISSING_ON_TRUE",
                severity=ValidationSeverity.BLOCKING,
                message="onTrue branch is required",
            ))

        if config.on_false is None and config.conditions:
            warnings.append(ValidationIssue(
                code="W_NO_FALSE_BRANCH",
                severity=ValidationSeverity.WARNING,
                message="No onFalse branch; a false outcome selects onError",
            ))

        timeout_ms = config.options.timeout_ms
        if timeout_ms is not None and timeout_ms <= 0:
            errors.append(ValidationIssue(
                code="E_INVALID_TIMEOUT",
                severity=ValidationSeverity.BLOCKING,
                message=f"timeoutMs must be positive (got {timeout_ms})",
            ))

        # Condition trees
        known = set(known_functions) if known_functions is not None else None
        seen: Set[str] = set()
        node_count = 0
        for condition in config.conditions:
            node_count += self._check_condition(condition, 1, seen, known, errors, warnings)

        if node_count > self.limits.max_conditions:
            errors.append(ValidationIssue(
                code="E_TOO_MANY_CONDITIONS",
                severity=ValidationSeverity.BLOCKING,
                message=(
                    f"Too many conditions: {node_count} "
                    f"(max: {self.limits.max_conditions})"
                ),
            ))

        for group in config.filters:
            self._check_group(group, errors, warnings)

        return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)

    def _check_condition(
        self,
        condition: Condition,
        depth: int,
        seen: Set[str],
        known: Optional[Set[str]],
        errors: List[ValidationIssue],
        warnings: List[ValidationIssue],
    ) -> int:
        """Check one node and its descendants; returns the node count."""
        if not condition.id:
            errors.append(ValidationIssue(
                code="E_MISSING_ID",
                severity=ValidationSeverity.BLOCKING,
                message="Condition missing required 'id'",
            ))
        elif condition.id in seen:
            warnings.append(ValidationIssue(
                code="W_DUPLICATE_ID",
                severity=ValidationSeverity.WARNING,
                message=f"Duplicate condition id: {condition.id}",
                conditions=[condition.id],
            ))
        seen.add(condition.id)

        if depth > self.limits.max_condition_depth:
            errors.append(ValidationIssue(
                code="E_DEPTH",
                severity=ValidationSeverity.BLOCKING,
                message=(
                    f"Condition tree too deep at {condition.id} "
                    f"(max depth: {self.limits.max_condition_depth})"
                ),
                conditions=[condition.id],
            ))
            return 1

        if isinstance(condition, SimpleCondition):
            if not condition.field:
                errors.append(ValidationIssue(
                    code="E_MISSING_FIELD",
                    severity=ValidationSeverity.BLOCKING,
                    message=f"Simple condition {condition.id} requires a field",
                    conditions=[condition.id],
                ))
            return 1

        if isinstance(condition, CustomCondition):
            if not condition.function_name:
                errors.append(ValidationIssue(
                    code="E_MISSING_FUNCTION",
                    severity=ValidationSeverity.BLOCKING,
                    message=f"Custom condition {condition.id} requires a function name",
                    conditions=[condition.id],
                ))
            elif known is not None and condition.function_name not in known:
                warnings.append(ValidationIssue(
                    code="W_UNKNOWN_FUNCTION",
                    severity=ValidationSeverity.WARNING,
                    message=f"Custom function not registered: {condition.function_name}",
                    conditions=[condition.id],
                ))
            return 1

        if isinstance(condition, FilterCondition):
            self._check_group(condition.group, errors, warnings)
            return 1

        if isinstance(condition, ComplexCondition):
            children = condition.children or []
            if not children:
                errors.append(ValidationIssue(
                    code="E_NO_CHILDREN",
                    severity=ValidationSeverity.BLOCKING,
                    message=f"Complex condition {condition.id} requires child conditions",
                    conditions=[condition.id],
                ))
            elif condition.operator == LogicalOperator.NOT and len(children) != 1:
                errors.append(ValidationIssue(
                    code="E_NOT_ARITY",
                    severity=ValidationSeverity.BLOCKING,
                    message=f"'not' condition {condition.id} requires exactly one child",
                    conditions=[condition.id],
                ))

            count = 1
            for child in children:
                count += self._check_condition(child, depth + 1, seen, known, errors, warnings)
            return count

        return 1

    def _check_group(
        self,
        group: FilterGroup,
        errors: List[ValidationIssue],
        warnings: List[ValidationIssue],
    ) -> None:
        if not group.id:
            errors.append(ValidationIssue(
                code="E_MISSING_ID",
                severity=ValidationSeverity.BLOCKING,
                message="Filter group missing required 'id'",
            ))

        if len(group.filters) > self.limits.max_filters_per_group:
            errors.append(ValidationIssue(
                code="E_TOO_MANY_FILTERS",
                severity=ValidationSeverity.BLOCKING,
                message=(
                    f"Filter group {group.id} has {len(group.filters)} filters "
                    f"(max: {self.limits.max_filters_per_group})"
                ),
                filters=[group.id],
            ))

        for item in group.filters:
            if not item.id:
                errors.append(ValidationIssue(
                    code="E_MISSING_ID",
                    severity=ValidationSeverity.BLOCKING,
                    message=f"Filter on field '{item.field}' missing required 'id'",
                ))

        if group.enabled and group.enabled_filter_count() == 0:
            warnings.append(ValidationIssue(
                code="W_EMPTY_GROUP",
                severity=ValidationSeverity.WARNING,
                message=f"Filter group {group.id} has no enabled filters",
                filters=[group.id],
            ))

        for sub_group in group.sub_groups:
            self._check_group(sub_group, errors, warnings)
