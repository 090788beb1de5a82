"""ConditionX Catalog Module - Operator catalog and conditional action templates."""

from .operator_catalog import OPERATOR_CATALOG, list_operators, total_operators
from .templates import TEMPLATES, get_template, list_templates

__all__ = [
    "OPERATOR_CATALOG",
    "list_operators",
    "total_operators",
    "TEMPLATES",
    "get_template",
    "list_templates",
]
