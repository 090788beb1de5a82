"""
ConditionX Execution Context

Read-only snapshot supplied by the workflow runtime at each step.
The engine never mutates it; new variable maps are returned instead.
"""

from __future__ import annotations
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime


# =============================================================================
# Missing Sentinel
# =============================================================================

class _Missing:
    """Marker for a path that does not resolve (distinct from an explicit None)."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"

    def __copy__(self) -> "_Missing":
        return self

    def __deepcopy__(self, memo: Dict) -> "_Missing":
        return self


MISSING = _Missing()


def is_missing(value: Any) -> bool:
    return value is MISSING


# =============================================================================
# Workflow Execution Context
# =============================================================================

@dataclass
class WorkflowExecutionContext:
    """
    Context for a single workflow step evaluation.

    Owned by the workflow runtime (scheduler / persistence layer).
    """
    trigger_data: Dict[str, Any] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)
    execution_id: str = ""
    workflow_id: str = ""
    user_id: Optional[str] = None
    current_step_index: int = 0
    execution_start_time: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowExecutionContext":
        """Build a context from runtime JSON (camelCase or snake_case keys)."""
        def pick(snake: str, camel: str, default: Any = None) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        started = pick("execution_start_time", "executionStartTime")
        if isinstance(started, str):
            started = datetime.fromisoformat(started.replace("Z", "+00:00"))
        elif started is None:
            started = datetime.utcnow()

        return cls(
            trigger_data=dict(pick("trigger_data", "triggerData", {}) or {}),
            variables=dict(pick("variables", "variables", {}) or {}),
            execution_id=pick("execution_id", "executionId", "") or "",
            workflow_id=pick("workflow_id", "workflowId", "") or "",
            user_id=pick("user_id", "userId"),
            current_step_index=int(pick("current_step_index", "currentStepIndex", 0) or 0),
            execution_start_time=started,
        )

    def meta(self) -> Dict[str, Any]:
        """Synthetic `_meta` record exposed to field paths."""
        return {
            "executionId": self.execution_id,
            "workflowId": self.workflow_id,
            "userId": self.user_id,
            "timestamp": self.execution_start_time,
        }
