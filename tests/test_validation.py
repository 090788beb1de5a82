"""
ConditionX Configuration Validator Tests

Blocking errors and warnings reported for conditional action configs.
"""

import pytest

from conditionx.config import EngineLimits, reset_config
from conditionx.core.evaluator import (
    create_complex_condition,
    create_custom_condition,
    create_filter_condition,
    create_simple_condition,
)
from conditionx.core.filter_engine import create_filter, create_filter_group
from conditionx.schemas.actions import Branch, ConditionalActionConfig, ConditionalOptions
from conditionx.schemas.conditions import ComplexCondition, ConditionMetadata
from conditionx.schemas.operators import LogicalOperator
from conditionx.validation import ConfigValidator, ValidationSeverity


def make_config(conditions, **kwargs):
    kwargs.setdefault("on_true", Branch(action_ids=["next"]))
    kwargs.setdefault("on_false", Branch(action_ids=["stop"]))
    return ConditionalActionConfig(id="validated", conditions=conditions, **kwargs)


def construct_config(conditions):
    """Config built without pydantic validation."""
    return ConditionalActionConfig.model_construct(
        id="constructed",
        conditions=conditions,
        on_true=Branch(action_ids=["next"]),
        on_false=Branch(action_ids=["stop"]),
    )


def codes(issues):
    return [issue.code for issue in issues]


@pytest.fixture
def validator():
    return ConfigValidator(EngineLimits(max_conditions=5, max_condition_depth=3, max_filters_per_group=2))


class TestConfigValidator:
    """Test blocking errors."""

    def setup_method(self):
        reset_config()

    def teardown_method(self):
        reset_config()

    def test_valid_config(self, validator):
        result = validator.validate(make_config([create_simple_condition("a", "exists")]))

        assert result.valid
        assert not result.has_blocking()
        assert result.errors == []
        assert result.warnings == []

    def test_severities(self):
        assert [s.value for s in ValidationSeverity] == ["blocking", "warning"]

    def test_no_conditions(self, validator):
        result = validator.validate(make_config([]))

        assert not result.valid
        assert codes(result.errors) == ["E_NO_CONDITIONS"]
        assert result.errors[0].severity == ValidationSeverity.BLOCKING
        assert result.messages() == ["E_NO_CONDITIONS: At least one condition is required"]

    def test_invalid_timeout(self, validator):
        config = make_config(
            [create_simple_condition("a", "exists")],
            options=ConditionalOptions(timeout_ms=-5),
        )
        assert codes(validator.validate(config).errors) == ["E_INVALID_TIMEOUT"]

    def test_too_many_conditions_counts_nested_nodes(self, validator):
        leaves = [create_simple_condition(f"f{i}", "exists") for i in range(5)]
        config = make_config([create_complex_condition("and", leaves)])

        assert "E_TOO_MANY_CONDITIONS" in codes(validator.validate(config).errors)

    def test_depth_limit(self, validator):
        node = create_simple_condition("a", "exists")
        for _ in range(3):
            node = create_complex_condition("not", [node])

        result = validator.validate(make_config([node]))
        assert "E_DEPTH" in codes(result.errors)

    def test_depth_within_limit(self, validator):
        node = create_simple_condition("a", "exists")
        for _ in range(2):
            node = create_complex_condition("not", [node])

        assert validator.validate(make_config([node])).valid

    def test_not_arity_on_unvalidated_model(self, validator):
        bad = ComplexCondition.model_construct(
            id="bad_not",
            operator=LogicalOperator.NOT,
            children=[create_simple_condition("a", "exists"), create_simple_condition("b", "exists")],
            metadata=ConditionMetadata(),
        )
        result = validator.validate(construct_config([bad]))

        assert codes(result.errors) == ["E_NOT_ARITY"]
        assert result.errors[0].conditions == ["bad_not"]

    def test_no_children_on_unvalidated_model(self, validator):
        bad = ComplexCondition.model_construct(
            id="empty_and",
            operator=LogicalOperator.AND,
            children=[],
            metadata=ConditionMetadata(),
        )
        assert codes(validator.validate(construct_config([bad])).errors) == ["E_NO_CHILDREN"]

    def test_too_many_filters(self, validator):
        group = create_filter_group("Big", "and", [
            create_filter(f"f{i}", "a", "exists") for i in range(3)
        ])
        config = make_config([create_simple_condition("a", "exists")], filters=[group])

        assert codes(validator.validate(config).errors) == ["E_TOO_MANY_FILTERS"]

    def test_nested_filter_condition_groups_are_checked(self, validator):
        group = create_filter_group("Big", "and", [
            create_filter(f"f{i}", "a", "exists") for i in range(3)
        ])
        config = make_config([create_filter_condition(group)])

        assert codes(validator.validate(config).errors) == ["E_TOO_MANY_FILTERS"]


class TestValidationWarnings:
    """Test non-blocking warnings."""

    def test_no_false_branch(self, validator):
        config = ConditionalActionConfig(
            id="no_false",
            conditions=[create_simple_condition("a", "exists")],
            on_true=Branch(),
        )
        result = validator.validate(config)

        assert result.valid
        assert codes(result.warnings) == ["W_NO_FALSE_BRANCH"]

    def test_duplicate_ids(self, validator):
        first = create_simple_condition("a", "exists")
        second = create_simple_condition("b", "exists")
        second.id = first.id

        result = validator.validate(make_config([first, second]))
        assert result.valid
        assert codes(result.warnings) == ["W_DUPLICATE_ID"]

    def test_unknown_function(self, validator):
        config = make_config([create_custom_condition("lookupCredit")])

        assert validator.validate(config).warnings == []
        result = validator.validate(config, known_functions=["isValidEmail"])
        assert result.valid
        assert codes(result.warnings) == ["W_UNKNOWN_FUNCTION"]

    def test_empty_group(self, validator):
        group = create_filter_group("Empty", "and", [create_filter("off", "a", "exists", enabled=False)])
        config = make_config([create_simple_condition("a", "exists")], filters=[group])

        assert codes(validator.validate(config).warnings) == ["W_EMPTY_GROUP"]


class TestParse:
    """Test parsing raw mappings."""

    def test_parse_valid(self, validator):
        config, result = validator.parse({
            "id": "raw",
            "conditions": [{"kind": "simple", "field": "a", "operator": "exists"}],
            "onTrue": {"actionIds": ["next"]},
            "onFalse": {"actionIds": ["stop"]},
        })
        assert config is not None
        assert config.on_true.action_ids == ["next"]
        assert result.valid

    def test_parse_schema_errors(self, validator):
        config, result = validator.parse({
            "id": "raw",
            "conditions": [{"kind": "complex", "operator": "not", "children": []}],
        })
        assert config is None
        assert not result.valid
        assert set(codes(result.errors)) == {"E_SCHEMA"}
        assert any("onTrue" in m or "on_true" in m for m in result.messages())
