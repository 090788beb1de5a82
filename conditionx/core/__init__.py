"""ConditionX Core Module - Evaluation engine components."""

from .evaluator import ConditionEvaluator, EvaluationOptions
from .filter_engine import FilterEngine, FilterOptions
from .orchestrator import ConditionalOrchestrator
from .operators import OperatorTable, FILTER_OPERATORS
from .cache import ResultCache, CacheStats
from .audit_log import AuditRecord, AuditLogStorage, InMemoryAuditStorage, NullAuditStorage
from .step_handler import ConditionalStepHandler, StepResult
from .errors import (
    EvaluationError,
    UnknownOperatorError,
    UnsupportedFilterOperatorError,
    OperatorCoercionError,
    CustomFunctionNotFoundError,
    TransformationNotFoundError,
)

__all__ = [
    "ConditionEvaluator",
    "EvaluationOptions",
    "FilterEngine",
    "FilterOptions",
    "ConditionalOrchestrator",
    "OperatorTable",
    "FILTER_OPERATORS",
    "ResultCache",
    "CacheStats",
    "AuditRecord",
    "AuditLogStorage",
    "InMemoryAuditStorage",
    "NullAuditStorage",
    "ConditionalStepHandler",
    "StepResult",
    "EvaluationError",
    "UnknownOperatorError",
    "UnsupportedFilterOperatorError",
    "OperatorCoercionError",
    "CustomFunctionNotFoundError",
    "TransformationNotFoundError",
]
