"""
ConditionX Validation Issues

Structures reported by the configuration validator.
"""

from __future__ import annotations
from typing import List, Optional
from dataclasses import dataclass, field
from enum import Enum


class ValidationSeverity(str, Enum):
    """Severity of validation issues."""
    BLOCKING = "blocking"
    WARNING = "warning"


@dataclass
class ValidationIssue:
    """A single validation issue."""
    code: str
    severity: ValidationSeverity
    message: str
    conditions: Optional[List[str]] = None
    filters: Optional[List[str]] = None


@dataclass
class ValidationResult:
    """Result of conditional action validation."""
    valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    def has_blocking(self) -> bool:
        """Check if there are blocking errors."""
        return any(e.severity == ValidationSeverity.BLOCKING for e in self.errors)

    def messages(self) -> List[str]:
        """Error messages, prefixed with their codes."""
        return [f"{e.code}: {e.message}" for e in self.errors]
