"""
ConditionX Conditional Action Schema

The unit of configuration attached to a workflow step: conditions,
optional filter groups, and the branches selected by the outcome.
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from enum import Enum
from uuid import uuid4

from .conditions import Condition
from .filters import FilterGroup


# =============================================================================
# Enums
# =============================================================================

class EvaluationMode(str, Enum):
    """How a list of conditions combines into one outcome."""
    ALL = "all"                # Evaluate everything, all must pass
    ANY = "any"                # Stop at first passing condition
    SEQUENTIAL = "sequential"  # In order, optionally stop at first failure


class LogLevel(str, Enum):
    """Audit record verbosity."""
    NONE = "none"
    BASIC = "basic"
    DETAILED = "detailed"


class BranchName(str, Enum):
    """Branch selected after evaluation."""
    ON_TRUE = "onTrue"
    ON_FALSE = "onFalse"
    ON_ERROR = "onError"


# =============================================================================
# Branch
# =============================================================================

class BranchMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class Branch(BaseModel):
    """Next actions and variable mutations for one outcome."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action_ids: List[str] = Field(default_factory=list)
    continue_workflow: bool = False
    set_variables: Dict[str, Any] = Field(default_factory=dict)
    metadata: Optional[BranchMetadata] = None


# =============================================================================
# Options
# =============================================================================

class ConditionalOptions(BaseModel):
    """Evaluation options for a conditional action."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    evaluation_mode: EvaluationMode = EvaluationMode.ALL
    stop_on_first_failure: bool = False

    # Accepted but not enforced by the engine; see ConditionalStepHandler
    timeout_ms: Optional[int] = None

    cache_results: bool = False
    log_level: LogLevel = LogLevel.BASIC


# =============================================================================
# Conditional Action Config
# =============================================================================

class ConditionalActionConfig(BaseModel):
    """
    Conditional action attached to a workflow step.

    Range checks (at least one condition, positive timeout, limits) are
    reported by ConfigValidator so that a bad config still selects the
    onError branch instead of failing to load.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: f"conditional_{uuid4().hex[:8]}")
    name: str = "Conditional Action"
    description: Optional[str] = None

    conditions: List[Condition] = Field(default_factory=list)
    filters: List[FilterGroup] = Field(default_factory=list)

    on_true: Branch
    on_false: Optional[Branch] = None
    on_error: Optional[Branch] = None

    options: ConditionalOptions = Field(default_factory=ConditionalOptions)

    def branch_config(self, branch: BranchName) -> Branch:
        """Get the configuration of a branch (empty if not configured)."""
        if branch == BranchName.ON_TRUE:
            return self.on_true
        if branch == BranchName.ON_FALSE:
            return self.on_false or Branch()
        return self.on_error or Branch()
