"""
ConditionX Step Handler

Adapter exposing conditional gating as a workflow step type.
Handlers follow the runtime contract `async (params, context) -> StepResult`
and bound evaluation with a caller-side deadline.
"""

from __future__ import annotations
from typing import Dict, Any, Optional, Callable, Awaitable, Union
from dataclasses import dataclass
import asyncio
import logging

from async_timeout import timeout as async_timeout

from ..config import get_config
from ..schemas.actions import ConditionalActionConfig
from ..schemas.context import WorkflowExecutionContext
from .orchestrator import ConditionalOrchestrator, raw_error_branch


logger = logging.getLogger(__name__)


TIMEOUT_MESSAGE = "Conditional evaluation timed out"


# =============================================================================
# Step Result
# =============================================================================

@dataclass
class StepResult:
    """Result of a step execution."""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
        }


StepHandler = Callable[[Dict[str, Any], WorkflowExecutionContext], Awaitable[StepResult]]


# =============================================================================
# Conditional Step Handler
# =============================================================================

class ConditionalStepHandler:
    """
    Step handler for conditional actions.

    Params:
        config: ConditionalActionConfig or raw (camelCase) mapping

    The deadline is `options.timeoutMs` or CONDITIONX_DEFAULT_TIMEOUT_MS.
    Evaluation problems are reported in the result, never raised.
    """

    def __init__(self, orchestrator: Optional[ConditionalOrchestrator] = None):
        self.orchestrator = orchestrator or ConditionalOrchestrator()
        self.default_timeout_ms = get_config().limits.default_timeout_ms

    async def __call__(
        self,
        params: Dict[str, Any],
        context: Union[WorkflowExecutionContext, Dict[str, Any]],
    ) -> StepResult:
        if not isinstance(context, WorkflowExecutionContext):
            context = WorkflowExecutionContext.from_dict(context or {})

        raw = params.get("config")
        if raw is None:
            return StepResult(success=False, error="Missing config")

        if isinstance(raw, ConditionalActionConfig):
            config = raw
        else:
            config, validation = self.orchestrator.validator.parse(raw)
            if config is None:
                result = self.orchestrator.error_result(
                    None, context, validation.messages(), on_error=raw_error_branch(raw)
                )
                return StepResult(success=False, data=result.to_dict(), error="; ".join(result.errors))

        timeout_ms = config.options.timeout_ms
        if not timeout_ms or timeout_ms <= 0:
            timeout_ms = self.default_timeout_ms

        try:
            async with async_timeout(timeout_ms / 1000.0):
                result = await self.orchestrator.execute_conditional_action(config, context)
        except asyncio.TimeoutError:
            logger.warning(f"Conditional action {config.id} timed out after {timeout_ms}ms")
            result = self.orchestrator.error_result(config, context, [TIMEOUT_MESSAGE])
            return StepResult(success=False, data=result.to_dict(), error=TIMEOUT_MESSAGE)

        return StepResult(
            success=result.success,
            data=result.to_dict(),
            error="; ".join(result.errors) if not result.success else None,
        )
