"""
ConditionX Evaluation Errors

Faults raised while evaluating a node. They are caught per node and
reported as `success=False` results, never raised to the caller.
"""


class EvaluationError(Exception):
    """Base class for evaluation faults."""
    pass


class UnknownOperatorError(EvaluationError):
    """Operator has no implementation in the dispatch table."""

    def __init__(self, operator: str):
        super().__init__(f"Unknown operator: {operator}")
        self.operator = operator


class UnsupportedFilterOperatorError(EvaluationError):
    """Operator is outside the subset shared with the filter engine."""

    def __init__(self, operator: str):
        super().__init__(f"Unsupported filter operator: {operator}")
        self.operator = operator


class OperatorCoercionError(EvaluationError):
    """Operand cannot be coerced to the type the operator needs."""
    pass


class CustomFunctionNotFoundError(EvaluationError):
    """Custom condition references an unregistered function."""

    def __init__(self, name: str):
        super().__init__(f"Custom function not found: {name}")
        self.name = name


class TransformationNotFoundError(EvaluationError):
    """Filter transformation references an unregistered function."""

    def __init__(self, name: str):
        super().__init__(f"Transformation function not found: {name}")
        self.name = name
