"""ConditionX Schemas Package - Condition, filter, action and result schemas."""

from .operators import (
    ComparisonOperator,
    LogicalOperator,
    GroupOperator,
)
from .filters import (
    DataType,
    TransformationType,
    FilterValidation,
    FilterTransformation,
    Filter,
    FilterGroup,
)
from .conditions import (
    Condition,
    ConditionMetadata,
    SimpleCondition,
    ComplexCondition,
    FilterCondition,
    CustomCondition,
)
from .actions import (
    Branch,
    BranchName,
    ConditionalActionConfig,
    ConditionalOptions,
    EvaluationMode,
    LogLevel,
)
from .context import WorkflowExecutionContext, MISSING, is_missing
from .results import (
    ConditionalResult,
    ConditionMetadataResult,
    FilterResult,
    FilterExecutionDetail,
    ConditionalExecutionResult,
    ExecutionMetadata,
)

__all__ = [
    # Operators
    "ComparisonOperator",
    "LogicalOperator",
    "GroupOperator",
    # Filters
    "DataType",
    "TransformationType",
    "FilterValidation",
    "FilterTransformation",
    "Filter",
    "FilterGroup",
    # Conditions
    "Condition",
    "ConditionMetadata",
    "SimpleCondition",
    "ComplexCondition",
    "FilterCondition",
    "CustomCondition",
    # Actions
    "Branch",
    "BranchName",
    "ConditionalActionConfig",
    "ConditionalOptions",
    "EvaluationMode",
    "LogLevel",
    # Context
    "WorkflowExecutionContext",
    "MISSING",
    "is_missing",
    # Results
    "ConditionalResult",
    "ConditionMetadataResult",
    "FilterResult",
    "FilterExecutionDetail",
    "ConditionalExecutionResult",
    "ExecutionMetadata",
]
