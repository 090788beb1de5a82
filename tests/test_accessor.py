"""
ConditionX Context Accessor Tests

Field path resolution, `{{ }}` templating and the execution context.
"""

import pytest
from datetime import datetime

from conditionx.core.accessor import build_scope, resolve_field, resolve_value, split_path, walk
from conditionx.schemas.context import MISSING, WorkflowExecutionContext, is_missing


@pytest.fixture
def context():
    return WorkflowExecutionContext(
        trigger_data={
            "user": {"email": "ada@example.com", "tags": ["admin", "beta"]},
            "count": 1,
        },
        variables={"count": 2, "flag": None},
        execution_id="exec_001",
        workflow_id="wf_001",
        user_id="user_001",
        current_step_index=3,
        execution_start_time=datetime(2024, 3, 13, 10, 30),
    )


class TestResolveField:
    """Test dotted path resolution."""

    def test_nested_field(self, context):
        assert resolve_field("user.email", context) == "ada@example.com"

    def test_variables_override_trigger_data(self, context):
        assert resolve_field("count", context) == 2

    def test_explicit_null_is_not_missing(self, context):
        assert resolve_field("flag", context) is None

    def test_missing_path(self, context):
        assert resolve_field("nope", context) is MISSING
        assert resolve_field("user.nope.deeper", context) is MISSING
        assert resolve_field("count.deeper", context) is MISSING

    def test_list_index_segment(self, context):
        assert resolve_field("user.tags.1", context) == "beta"
        assert resolve_field("user.tags.5", context) is MISSING
        assert resolve_field("user.tags.x", context) is MISSING

    def test_only_plain_indices(self, context):
        assert resolve_field("user.tags.-1", context) is MISSING
        assert resolve_field("user.tags.0_1", context) is MISSING
        assert resolve_field("user.tags. 1", context) is MISSING

    def test_meta_record(self, context):
        assert resolve_field("_meta.executionId", context) == "exec_001"
        assert resolve_field("_meta.workflowId", context) == "wf_001"
        assert resolve_field("_meta.userId", context) == "user_001"
        assert resolve_field("_meta.timestamp", context) == datetime(2024, 3, 13, 10, 30)

    def test_scope_does_not_mutate_context(self, context):
        scope = build_scope(context)
        scope["new"] = 1
        assert "new" not in context.trigger_data
        assert "new" not in context.variables
        assert "_meta" not in context.trigger_data


class TestResolveValue:
    """Test `{{ path }}` templating."""

    def test_template_resolves_path(self, context):
        assert resolve_value("{{user.email}}", context) == "ada@example.com"

    def test_template_inner_whitespace_is_trimmed(self, context):
        assert resolve_value("{{  user.email  }}", context) == "ada@example.com"

    def test_template_matches_resolve_field(self, context):
        for path in ["user.email", "count", "flag", "nope", "user.tags.0", "_meta.executionId"]:
            assert resolve_value("{{" + path + "}}", context) == resolve_field(path, context)

    def test_missing_template_resolves_to_missing(self, context):
        assert resolve_value("{{ nope }}", context) is MISSING

    def test_non_template_values_unchanged(self, context):
        assert resolve_value("plain", context) == "plain"
        assert resolve_value("{{ partial", context) == "{{ partial"
        assert resolve_value("prefix {{user.email}}", context) == "prefix {{user.email}}"
        assert resolve_value(5, context) == 5
        assert resolve_value([1, 2], context) == [1, 2]
        assert resolve_value(None, context) is None


class TestPaths:
    """Test path helpers used by JSON path operators."""

    def test_split_bracket_indices(self):
        assert split_path("a[0].b") == ["a", "0", "b"]
        assert split_path("a.b") == ["a", "b"]
        assert split_path("items[2][1]") == ["items", "2", "1"]

    def test_walk(self):
        data = {"a": [{"b": 1}, {"b": 2}]}
        assert walk(data, ["a", "1", "b"]) == 2
        assert walk(data, ["a", "2", "b"]) is MISSING
        assert walk(data, []) == data


class TestWorkflowExecutionContext:
    """Test the execution context."""

    def test_from_dict_camel_case(self):
        ctx = WorkflowExecutionContext.from_dict({
            "triggerData": {"a": 1},
            "variables": {"b": 2},
            "executionId": "exec_x",
            "workflowId": "wf_x",
            "userId": "u_x",
            "currentStepIndex": 4,
            "executionStartTime": "2024-03-13T10:30:00Z",
        })
        assert ctx.trigger_data == {"a": 1}
        assert ctx.variables == {"b": 2}
        assert ctx.execution_id == "exec_x"
        assert ctx.workflow_id == "wf_x"
        assert ctx.user_id == "u_x"
        assert ctx.current_step_index == 4
        assert ctx.execution_start_time.year == 2024

    def test_from_dict_snake_case(self):
        ctx = WorkflowExecutionContext.from_dict({
            "trigger_data": {"a": 1},
            "execution_id": "exec_y",
        })
        assert ctx.trigger_data == {"a": 1}
        assert ctx.variables == {}
        assert ctx.execution_id == "exec_y"
        assert ctx.user_id is None

    def test_missing_sentinel(self):
        assert not MISSING
        assert repr(MISSING) == "MISSING"
        assert is_missing(MISSING)
        assert not is_missing(None)
