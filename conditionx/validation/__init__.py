"""ConditionX Validation Module - Conditional action configuration checks."""

from .config_validator import ConfigValidator
from .issues import ValidationIssue, ValidationResult, ValidationSeverity

__all__ = [
    "ConfigValidator",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSeverity",
]
