"""
ConditionX Templates

Ready-made conditional actions for common gating scenarios. Templates
are authored as builder JSON and parsed on every call, so relative dates
are computed when the template is requested.
"""

from typing import Dict, List, Any, Callable, Optional
from datetime import datetime, timedelta

from ..schemas.actions import ConditionalActionConfig


def _email_validation(now: datetime) -> Dict[str, Any]:
    return {
        "id": "email_validation",
        "name": "Email Validation",
        "description": "Validate email format and domain",
        "conditions": [
            {
                "id": "email_format",
                "kind": "simple",
                "field": "user.email",
                "operator": "matches_regex",
                "value": r"^[^\s@]+@[^\s@]+\.[^\s@]+$",
                "metadata": {"name": "Email Format Check"},
            },
        ],
        "onTrue": {"actionIds": ["continue"], "continueWorkflow": True},
        "onFalse": {
            "actionIds": ["validation_error"],
            "continueWorkflow": False,
            "setVariables": {"error": "Invalid email format"},
        },
        "options": {
            "evaluationMode": "all",
            "stopOnFirstFailure": True,
            "timeoutMs": 5000,
            "cacheResults": True,
            "logLevel": "basic",
        },
    }


def _business_hours(now: datetime) -> Dict[str, Any]:
    return {
        "id": "business_hours",
        "name": "Business Hours Check",
        "description": "Check if current time is within business hours",
        "conditions": [
            {
                "id": "business_hours",
                "kind": "custom",
                "functionName": "timeBasedCondition",
                "value": {"businessHours": True},
                "metadata": {"name": "Business Hours Check"},
            },
        ],
        "onTrue": {"actionIds": ["process_immediately"], "continueWorkflow": True},
        "onFalse": {
            "actionIds": ["queue_for_business_hours"],
            "continueWorkflow": False,
            "setVariables": {"queuedForLater": True},
        },
        "options": {
            "evaluationMode": "all",
            "timeoutMs": 3000,
            "cacheResults": False,
            "logLevel": "basic",
        },
    }


def _approval_workflow(now: datetime) -> Dict[str, Any]:
    return {
        "id": "approval_workflow",
        "name": "Approval Workflow",
        "description": "Check if item has required approvals",
        "conditions": [
            {
                "id": "approval_status",
                "kind": "simple",
                "field": "approval.status",
                "operator": "equals",
                "value": "approved",
                "metadata": {"name": "Approval Status"},
            },
            {
                "id": "approver_count",
                "kind": "simple",
                "field": "approval.approvers",
                "operator": "array_length_greater_than",
                "value": 1,
                "metadata": {"name": "Minimum Approvers"},
            },
        ],
        "onTrue": {
            "actionIds": ["execute_approved_action"],
            "continueWorkflow": True,
            "setVariables": {"approved": True},
        },
        "onFalse": {
            "actionIds": ["request_additional_approval"],
            "continueWorkflow": False,
            "setVariables": {"needsApproval": True},
        },
        "options": {
            "evaluationMode": "all",
            "timeoutMs": 10000,
            "cacheResults": True,
            "logLevel": "detailed",
        },
    }


def _data_quality_check(now: datetime) -> Dict[str, Any]:
    return {
        "id": "data_quality_check",
        "name": "Data Quality Check",
        "description": "Validate data completeness and quality",
        "conditions": [
            {
                "id": "required_fields",
                "kind": "complex",
                "operator": "and",
                "conditions": [
                    {"id": "name_exists", "kind": "simple", "field": "data.name", "operator": "is_not_empty"},
                    {"id": "email_exists", "kind": "simple", "field": "data.email", "operator": "is_not_empty"},
                ],
                "metadata": {"name": "Required Fields Check"},
            },
            {
                "id": "data_freshness",
                "kind": "simple",
                "field": "data.lastUpdated",
                "operator": "date_after",
                "value": (now - timedelta(hours=24)).isoformat(),
                "metadata": {"name": "Data Freshness Check"},
            },
        ],
        "filters": [
            {
                "id": "quality_filter",
                "name": "Data Quality Filter",
                "operator": "and",
                "filters": [
                    {
                        "id": "completeness",
                        "name": "Completeness Check",
                        "field": "data.completeness",
                        "operator": "greater_than",
                        "value": 0.8,
                        "priority": 1,
                    },
                ],
            },
        ],
        "onTrue": {
            "actionIds": ["process_high_quality_data"],
            "continueWorkflow": True,
            "setVariables": {"dataQuality": "high"},
        },
        "onFalse": {
            "actionIds": ["data_cleaning_required"],
            "continueWorkflow": False,
            "setVariables": {"dataQuality": "low", "requiresCleaning": True},
        },
        "options": {
            "evaluationMode": "all",
            "timeoutMs": 15000,
            "cacheResults": True,
            "logLevel": "detailed",
        },
    }


def _high_value_order(now: datetime) -> Dict[str, Any]:
    return {
        "id": "high_value_order",
        "name": "High Value Order",
        "description": "Route paid orders above 1000 to manual review",
        "conditions": [
            {
                "id": "order_total",
                "kind": "simple",
                "field": "order.total",
                "operator": "greater_than",
                "value": 1000,
                "metadata": {"name": "Order Total Check"},
            },
            {
                "id": "order_paid",
                "kind": "simple",
                "field": "order.status",
                "operator": "in",
                "value": ["paid", "confirmed"],
                "metadata": {"name": "Order Status Check"},
            },
        ],
        "onTrue": {
            "actionIds": ["manual_review", "notify_sales"],
            "continueWorkflow": True,
            "setVariables": {"highValue": True},
        },
        "onFalse": {
            "actionIds": ["standard_fulfillment"],
            "continueWorkflow": True,
            "setVariables": {"highValue": False},
        },
        "options": {
            "evaluationMode": "all",
            "timeoutMs": 5000,
            "logLevel": "basic",
        },
    }


def _vip_customer(now: datetime) -> Dict[str, Any]:
    return {
        "id": "vip_customer",
        "name": "VIP Customer",
        "description": "Detect VIP customers by tier or lifetime value",
        "conditions": [
            {
                "id": "vip_check",
                "kind": "complex",
                "operator": "or",
                "children": [
                    {"id": "vip_tier", "kind": "simple", "field": "customer.tier",
                     "operator": "equals", "value": "vip"},
                    {"id": "vip_value", "kind": "simple", "field": "customer.lifetimeValue",
                     "operator": "greater_than_or_equal", "value": 10000},
                ],
                "metadata": {"name": "VIP Check", "tags": ["customer", "vip"]},
            },
        ],
        "filters": [
            {
                "id": "active_customer",
                "name": "Active Customer",
                "operator": "and",
                "filters": [
                    {
                        "id": "customer_active",
                        "name": "Account Active",
                        "field": "customer.status",
                        "operator": "equals",
                        "value": "active",
                        "transformation": {"type": "normalize"},
                    },
                ],
            },
        ],
        "onTrue": {
            "actionIds": ["assign_priority_support"],
            "continueWorkflow": True,
            "setVariables": {"vip": True},
        },
        "onFalse": {
            "actionIds": ["assign_standard_support"],
            "continueWorkflow": True,
            "setVariables": {"vip": False},
        },
        "options": {
            "evaluationMode": "all",
            "cacheResults": True,
            "logLevel": "basic",
        },
    }


TEMPLATES: Dict[str, Callable[[datetime], Dict[str, Any]]] = {
    "email_validation": _email_validation,
    "business_hours": _business_hours,
    "approval_workflow": _approval_workflow,
    "data_quality_check": _data_quality_check,
    "high_value_order": _high_value_order,
    "vip_customer": _vip_customer,
}


def get_template(template_id: str, now: Optional[datetime] = None) -> Optional[ConditionalActionConfig]:
    """Get a template by id (None if unknown)."""
    build = TEMPLATES.get(template_id)
    if build is None:
        return None
    return ConditionalActionConfig.model_validate(build(now or datetime.now()))


def list_templates(now: Optional[datetime] = None) -> List[ConditionalActionConfig]:
    """Get all templates."""
    now = now or datetime.now()
    return [ConditionalActionConfig.model_validate(build(now)) for build in TEMPLATES.values()]
