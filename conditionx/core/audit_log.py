"""
ConditionX Audit Log

Audit records for conditional action runs, with pluggable storage.
Records are written by the orchestrator according to the action's
log level (`basic` or `detailed`).
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
import logging
import uuid

from ..config import AuditBackend, get_config


logger = logging.getLogger(__name__)


# =============================================================================
# Audit Record
# =============================================================================

@dataclass
class AuditRecord:
    """Audit entry for one conditional action run."""
    action_id: str
    action_name: str
    execution_id: str
    workflow_id: str
    user_id: Optional[str]
    branch: str
    conditions_passed: bool
    filters_passed: bool
    execution_time_ms: float
    log_level: str
    errors: List[str] = field(default_factory=list)
    details: Optional[Dict[str, Any]] = None
    record_id: str = field(default_factory=lambda: f"audit_{uuid.uuid4().hex[:12]}")
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "recordId": self.record_id,
            "actionId": self.action_id,
            "actionName": self.action_name,
            "executionId": self.execution_id,
            "workflowId": self.workflow_id,
            "userId": self.user_id,
            "branch": self.branch,
            "conditionsPassed": self.conditions_passed,
            "filtersPassed": self.filters_passed,
            "executionTimeMs": self.execution_time_ms,
            "logLevel": self.log_level,
            "errors": list(self.errors),
            "createdAt": self.created_at.isoformat(),
        }
        if self.details is not None:
            data["details"] = self.details
        return data


# =============================================================================
# Audit Storage Interface
# =============================================================================

class AuditLogStorage:
    """Abstract interface for audit record storage."""

    async def save_record(self, record: AuditRecord) -> None:
        """Save an audit record."""
        raise NotImplementedError

    async def get_records_for_execution(self, execution_id: str) -> List[AuditRecord]:
        """Get records written during one workflow execution."""
        raise NotImplementedError

    async def get_records_for_workflow(
        self,
        workflow_id: str,
        limit: int = 100,
    ) -> List[AuditRecord]:
        """Get recent records for a workflow."""
        raise NotImplementedError


class InMemoryAuditStorage(AuditLogStorage):
    """In-memory implementation for testing and single-process hosts."""

    def __init__(self):
        self._records: List[AuditRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    async def save_record(self, record: AuditRecord) -> None:
        self._records.append(record)

    async def get_records_for_execution(self, execution_id: str) -> List[AuditRecord]:
        return [r for r in self._records if r.execution_id == execution_id]

    async def get_records_for_workflow(
        self,
        workflow_id: str,
        limit: int = 100,
    ) -> List[AuditRecord]:
        matching = [r for r in self._records if r.workflow_id == workflow_id]
        return matching[-limit:][::-1]


class NullAuditStorage(AuditLogStorage):
    """Discards records (records are still logged)."""

    async def save_record(self, record: AuditRecord) -> None:
        return None

    async def get_records_for_execution(self, execution_id: str) -> List[AuditRecord]:
        return []

    async def get_records_for_workflow(
        self,
        workflow_id: str,
        limit: int = 100,
    ) -> List[AuditRecord]:
        return []


def get_audit_storage() -> AuditLogStorage:
    """
    Create the audit storage selected by configuration.

    Configure via CONDITIONX_AUDIT_BACKEND (memory|none).
    """
    backend = get_config().audit_backend
    if backend == AuditBackend.NONE:
        return NullAuditStorage()
    return InMemoryAuditStorage()
