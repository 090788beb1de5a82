"""
ConditionX Engine - Condition and Filter Evaluation for Workflow Steps

ConditionX decides the branching and gating of a workflow step:
- Evaluating condition trees (simple, complex, filter, custom)
- Evaluating filter groups with validation and transformation
- Selecting the onTrue / onFalse / onError branch
- Producing the next action ids and the new variable map

ConditionX does NOT:
- Persist workflow definitions
- Schedule or dispatch actions
- Expose a network API
- Execute caller-supplied source code
"""

__version__ = "0.1.0"

from .core.evaluator import (
    ConditionEvaluator,
    EvaluationOptions,
    create_simple_condition,
    create_complex_condition,
    create_filter_condition,
    create_custom_condition,
)
from .core.filter_engine import (
    FilterEngine,
    FilterOptions,
    create_filter,
    create_filter_group,
)
from .core.orchestrator import ConditionalOrchestrator
from .core.step_handler import ConditionalStepHandler, StepResult
from .schemas.context import WorkflowExecutionContext, MISSING
from .schemas.conditions import (
    Condition,
    SimpleCondition,
    ComplexCondition,
    FilterCondition,
    CustomCondition,
)
from .schemas.filters import Filter, FilterGroup
from .schemas.actions import Branch, BranchName, ConditionalActionConfig, ConditionalOptions
from .schemas.results import ConditionalResult, FilterResult, ConditionalExecutionResult
from .schemas.operators import ComparisonOperator, LogicalOperator, GroupOperator

__all__ = [
    # Engine
    "ConditionEvaluator",
    "EvaluationOptions",
    "FilterEngine",
    "FilterOptions",
    "ConditionalOrchestrator",
    "ConditionalStepHandler",
    "StepResult",
    # Builders
    "create_simple_condition",
    "create_complex_condition",
    "create_filter_condition",
    "create_custom_condition",
    "create_filter",
    "create_filter_group",
    # Context
    "WorkflowExecutionContext",
    "MISSING",
    # Conditions
    "Condition",
    "SimpleCondition",
    "ComplexCondition",
    "FilterCondition",
    "CustomCondition",
    # Filters
    "Filter",
    "FilterGroup",
    # Actions
    "Branch",
    "BranchName",
    "ConditionalActionConfig",
    "ConditionalOptions",
    # Results
    "ConditionalResult",
    "FilterResult",
    "ConditionalExecutionResult",
    # Operators
    "ComparisonOperator",
    "LogicalOperator",
    "GroupOperator",
]
