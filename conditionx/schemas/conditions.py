"""
ConditionX Condition Schema

Condition trees as a closed, discriminated union on `kind`:
- simple:  field <operator> value
- complex: logical combination of child conditions
- filter:  delegates to a filter group
- custom:  host-registered predicate resolved by name
"""

from __future__ import annotations
from typing import Annotated, List, Any, Optional, Union, Literal
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from uuid import uuid4

from .filters import FilterGroup
from .operators import ComparisonOperator, LogicalOperator


def _condition_uid() -> str:
    return f"cond_{uuid4().hex[:8]}"


class ConditionMetadata(BaseModel):
    """Descriptive metadata authored by the workflow builder."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    priority: int = 0
    tags: List[str] = Field(default_factory=list)


class _ConditionBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=_condition_uid, min_length=1)
    metadata: ConditionMetadata = Field(default_factory=ConditionMetadata)

    @property
    def operator_name(self) -> str:
        """Operator label used in results and audit records."""
        operator = getattr(self, "operator", None)
        if operator is None:
            return self.kind  # type: ignore[attr-defined]
        return operator.value


class SimpleCondition(_ConditionBase):
    """Compare a resolved field against a (possibly templated) value."""
    kind: Literal["simple"] = "simple"
    field: str = Field(..., min_length=1)
    operator: ComparisonOperator
    value: Any = None


class ComplexCondition(_ConditionBase):
    """Logical combination of child conditions."""
    kind: Literal["complex"] = "complex"
    operator: LogicalOperator
    children: List["Condition"] = Field(
        default_factory=list,
        validation_alias=AliasChoices("children", "conditions"),
    )

    @model_validator(mode="after")
    def check_arity(self) -> "ComplexCondition":
        if self.operator == LogicalOperator.NOT and len(self.children) != 1:
            raise ValueError("'not' conditions require exactly one child")
        if not self.children:
            raise ValueError(f"'{self.operator.value}' conditions require at least one child")
        return self


class FilterCondition(_ConditionBase):
    """Passes when the referenced filter group passes."""
    kind: Literal["filter"] = "filter"
    group: FilterGroup


class CustomCondition(_ConditionBase):
    """Invoke a registered custom function with `value` as its params."""
    kind: Literal["custom"] = "custom"
    function_name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("function_name", "functionName", "customFunction"),
    )
    value: Any = None


Condition = Annotated[
    Union[SimpleCondition, ComplexCondition, FilterCondition, CustomCondition],
    Field(discriminator="kind"),
]


ComplexCondition.model_rebuild()
