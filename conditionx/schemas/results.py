"""
ConditionX Result Types

Evaluation results with timing and diagnostic metadata.
All results serialize to plain JSON-friendly dicts for execution logs.
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from .actions import BranchName
from .context import MISSING


def to_jsonable(value: Any) -> Any:
    """Convert evaluation values into JSON-friendly structures."""
    if value is MISSING:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value


# =============================================================================
# Condition Result
# =============================================================================

@dataclass
class ConditionMetadataResult:
    """Diagnostics for a single evaluated node."""
    condition_id: str
    kind: str
    operator: str
    sub_results: List["ConditionalResult"] = field(default_factory=list)
    # declared after sub_results: this attribute shadows dataclasses.field
    field: Optional[str] = None
    evaluated_value: Any = None
    actual_value: Any = None


@dataclass
class ConditionalResult:
    """
    Result of evaluating one condition node.

    `success=False` signals an evaluation fault, which is distinct from a
    condition that evaluated to False.
    """
    success: bool
    result: bool
    execution_time_ms: float
    metadata: ConditionMetadataResult
    errors: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.success and self.result

    def to_dict(self) -> Dict[str, Any]:
        meta = self.metadata
        data: Dict[str, Any] = {
            "success": self.success,
            "result": self.result,
            "executionTimeMs": self.execution_time_ms,
            "metadata": {
                "conditionId": meta.condition_id,
                "kind": meta.kind,
                "operator": meta.operator,
                "field": meta.field,
                "evaluatedValue": to_jsonable(meta.evaluated_value),
                "actualValue": to_jsonable(meta.actual_value),
            },
        }
        if meta.sub_results:
            data["metadata"]["subResults"] = [r.to_dict() for r in meta.sub_results]
        if self.errors:
            data["errors"] = list(self.errors)
        return data


# =============================================================================
# Filter Results
# =============================================================================

@dataclass
class FilterExecutionDetail:
    """Per-filter trace entry."""
    filter_id: str
    filter_name: str
    field: str
    operator: str
    expected_value: Any
    actual_value: Any
    passed: bool
    error: Optional[str] = None
    transformed_value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filterId": self.filter_id,
            "filterName": self.filter_name,
            "field": self.field,
            "operator": self.operator,
            "expectedValue": to_jsonable(self.expected_value),
            "actualValue": to_jsonable(self.actual_value),
            "passed": self.passed,
            "error": self.error,
            "transformedValue": to_jsonable(self.transformed_value),
        }


@dataclass
class FilterResult:
    """Result of evaluating a filter group tree."""
    passed: bool
    matched_filters: List[str] = field(default_factory=list)
    failed_filters: List[str] = field(default_factory=list)
    execution_time_ms: float = 0.0
    details: List[FilterExecutionDetail] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "matchedFilters": list(self.matched_filters),
            "failedFilters": list(self.failed_filters),
            "executionTimeMs": self.execution_time_ms,
            "details": [d.to_dict() for d in self.details],
            "errors": list(self.errors),
        }


# =============================================================================
# Conditional Execution Result
# =============================================================================

@dataclass
class ExecutionMetadata:
    """Aggregate counts for a conditional action run."""
    evaluation_mode: str
    total_conditions: int = 0
    evaluated_conditions: int = 0
    passed_conditions: int = 0
    failed_conditions: int = 0
    total_filters: int = 0
    passed_filters: int = 0


@dataclass
class ConditionalExecutionResult:
    """
    Branching decision handed to the runtime's action dispatcher.

    This is the API response format for a conditional step.
    """
    success: bool
    conditions_passed: bool
    filters_passed: bool
    branch: BranchName
    execution_time_ms: float
    next_action_ids: List[str]
    continue_workflow: bool
    variables: Dict[str, Any]
    metadata: ExecutionMetadata
    condition_results: List[ConditionalResult] = field(default_factory=list)
    filter_results: List[FilterResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    completed_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for execution logs."""
        return {
            "success": self.success,
            "conditionsPassed": self.conditions_passed,
            "filtersPassed": self.filters_passed,
            "branch": self.branch.value,
            "executionTimeMs": self.execution_time_ms,
            "nextActionIds": list(self.next_action_ids),
            "continueWorkflow": self.continue_workflow,
            "variables": to_jsonable(self.variables),
            "conditionResults": [r.to_dict() for r in self.condition_results],
            "filterResults": [r.to_dict() for r in self.filter_results],
            "errors": list(self.errors),
            "metadata": {
                "evaluationMode": self.metadata.evaluation_mode,
                "totalConditions": self.metadata.total_conditions,
                "evaluatedConditions": self.metadata.evaluated_conditions,
                "passedConditions": self.metadata.passed_conditions,
                "failedConditions": self.metadata.failed_conditions,
                "totalFilters": self.metadata.total_filters,
                "passedFilters": self.metadata.passed_filters,
            },
            "completedAt": self.completed_at.isoformat(),
        }
