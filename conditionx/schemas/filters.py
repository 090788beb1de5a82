"""
ConditionX Filter Schema

Declarative filter groups with per-filter validation and transformation.
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from enum import Enum
from uuid import uuid4

from .operators import ComparisonOperator, GroupOperator


class DataType(str, Enum):
    """Data types a filter validation can require."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    OBJECT = "object"


class TransformationType(str, Enum):
    """Transformations applied to the field value before comparison."""
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    TRIM = "trim"
    NORMALIZE = "normalize"
    CUSTOM = "custom"


class FilterValidation(BaseModel):
    """Validation rules checked against the resolved field value."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    required: bool = False
    data_type: Optional[DataType] = None
    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=0)
    pattern: Optional[str] = None
    custom_validator: Optional[str] = None


class FilterTransformation(BaseModel):
    """Transformation of the field value (never of the expected value)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: TransformationType
    custom_function: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)


class Filter(BaseModel):
    """A single field test inside a filter group."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: f"filter_{uuid4().hex[:8]}", min_length=1)
    name: str = ""
    field: str = Field(..., min_length=1)
    operator: ComparisonOperator
    value: Any = None
    enabled: bool = True
    priority: int = 0
    validation: Optional[FilterValidation] = None
    transformation: Optional[FilterTransformation] = None


class FilterGroup(BaseModel):
    """
    A tree of filters combined with AND / OR.

    Sub-groups nest arbitrarily and follow the same combination rules.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: f"group_{uuid4().hex[:8]}", min_length=1)
    name: str = ""
    description: Optional[str] = None
    operator: GroupOperator = GroupOperator.AND
    filters: List[Filter] = Field(default_factory=list)
    sub_groups: List[FilterGroup] = Field(
        default_factory=list,
        validation_alias=AliasChoices("sub_groups", "subGroups"),
    )
    enabled: bool = True
    priority: int = 0

    def enabled_filter_count(self) -> int:
        """Count enabled filters, including enabled sub-groups."""
        if not self.enabled:
            return 0
        count = sum(1 for f in self.filters if f.enabled)
        return count + sum(g.enabled_filter_count() for g in self.sub_groups)


FilterGroup.model_rebuild()
