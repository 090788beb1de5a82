"""
ConditionX Context Accessor

Resolves dotted field paths and `{{ }}` placeholders against the merged
view of trigger data, variables and execution metadata.
"""

from __future__ import annotations
from typing import Dict, Any, Iterable
import re

from ..schemas.context import MISSING, WorkflowExecutionContext


_TEMPLATE = re.compile(r"^\{\{(.*)\}\}$", re.DOTALL)
_INDEX = re.compile(r"\[(\d+)\]")


def build_scope(context: WorkflowExecutionContext) -> Dict[str, Any]:
    """Merge trigger data, variables (which win) and `_meta`."""
    scope: Dict[str, Any] = {}
    scope.update(context.trigger_data or {})
    scope.update(context.variables or {})
    scope["_meta"] = context.meta()
    return scope


def walk(data: Any, keys: Iterable[str]) -> Any:
    """Walk a nested structure; MISSING on the first absent segment."""
    current = data
    for key in keys:
        if isinstance(current, dict):
            if key not in current:
                return MISSING
            current = current[key]
        elif isinstance(current, (list, tuple)):
            # Plain non-negative indices only
            if not key.isdigit():
                return MISSING
            try:
                current = current[int(key)]
            except (ValueError, IndexError):
                return MISSING
        else:
            return MISSING
    return current


def split_path(path: str) -> list:
    """Split `a[0].b` style paths into segments (`a`, `0`, `b`)."""
    return _INDEX.sub(r".\1", path).split(".")


def resolve_field(path: str, context: WorkflowExecutionContext) -> Any:
    """
    Resolve a dotted field path.

    Args:
        path: Field path such as "user.email" or "_meta.executionId"
        context: Execution context

    Returns:
        The value, or MISSING if any segment does not exist
    """
    return walk(build_scope(context), path.split("."))


def resolve_value(raw: Any, context: WorkflowExecutionContext) -> Any:
    """Resolve `{{ path }}` placeholders; any other value is returned unchanged."""
    if isinstance(raw, str):
        match = _TEMPLATE.match(raw)
        if match:
            return resolve_field(match.group(1).strip(), context)
    return raw
