"""
ConditionX Built-in Registrations

Default custom functions, filter transformations and filter validators.
Hosts register additional callables by name; no source text is ever
executed.
"""

from __future__ import annotations
from typing import Dict, List, Any, Callable, Awaitable, Union
from dataclasses import dataclass, field
from urllib.parse import urlparse
import logging
import re

from ..schemas.context import WorkflowExecutionContext
from .accessor import resolve_field
from .operators import Clock, as_text, sunday_weekday, to_number


logger = logging.getLogger(__name__)


CustomFunction = Callable[[WorkflowExecutionContext, Any], Union[bool, Awaitable[bool]]]
TransformationFunction = Callable[[Any, Dict[str, Any]], Any]


@dataclass
class ValidationOutcome:
    """Result of a custom filter validator."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)


ValidationFunction = Callable[[Any], Union[ValidationOutcome, bool]]


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-\(\)]{10,}$")


def _params(params: Any) -> Dict[str, Any]:
    return params if isinstance(params, dict) else {}


# =============================================================================
# Condition Custom Functions
# =============================================================================

def engine_custom_functions(clock: Clock) -> Dict[str, CustomFunction]:
    """Custom functions every condition evaluator starts with."""
    rate_limit_warned = False

    def is_valid_email(context: WorkflowExecutionContext, params: Any) -> bool:
        value = resolve_field(str(_params(params).get("field", "")), context)
        return isinstance(value, str) and EMAIL_PATTERN.match(value) is not None

    def is_business_hours(context: WorkflowExecutionContext, params: Any) -> bool:
        p = _params(params)
        now = clock()
        start_hour = int(to_number(p.get("startHour", 9)))
        end_hour = int(to_number(p.get("endHour", 17)))
        work_days = p.get("workDays", [1, 2, 3, 4, 5])  # Mon-Fri, Sunday=0
        return sunday_weekday(now) in work_days and start_hour <= now.hour < end_hour

    def check_rate_limit(context: WorkflowExecutionContext, params: Any) -> bool:
        # Placeholder: always passes until the host registers a real limiter
        nonlocal rate_limit_warned
        if not rate_limit_warned:
            logger.warning(
                "checkRateLimit is a placeholder that always passes; "
                "register a host implementation to enforce limits"
            )
            rate_limit_warned = True
        return True

    return {
        "isValidEmail": is_valid_email,
        "isBusinessHours": is_business_hours,
        "checkRateLimit": check_rate_limit,
    }


def workflow_custom_functions(clock: Clock) -> Dict[str, CustomFunction]:
    """Custom functions about workflow progress, registered by the orchestrator."""

    def is_workflow_step(context: WorkflowExecutionContext, params: Any) -> bool:
        step_index = _params(params).get("stepIndex")
        return step_index is not None and context.current_step_index == int(to_number(step_index))

    def has_executed_action(context: WorkflowExecutionContext, params: Any) -> bool:
        executed = context.variables.get("_executedActions") or []
        return _params(params).get("actionId") in executed

    def is_retry_attempt(context: WorkflowExecutionContext, params: Any) -> bool:
        return to_number(context.variables.get("_retryCount") or 0) > 0

    def check_quota(context: WorkflowExecutionContext, params: Any) -> bool:
        usage = to_number(context.variables.get("_quotaUsage") or 0)
        limit = to_number(_params(params).get("limit", 1000))
        return usage < limit

    def time_based_condition(context: WorkflowExecutionContext, params: Any) -> bool:
        p = _params(params)
        now = clock()
        day = sunday_weekday(now)
        in_hours = 1 <= day <= 5 and 9 <= now.hour < 17
        if p.get("businessHours"):
            return in_hours
        if p.get("afterHours"):
            return not in_hours
        return True

    return {
        "isWorkflowStep": is_workflow_step,
        "hasExecutedAction": has_executed_action,
        "isRetryAttempt": is_retry_attempt,
        "checkQuota": check_quota,
        "timeBasedCondition": time_based_condition,
    }


# =============================================================================
# Filter Transformations
# =============================================================================

_CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥", "INR": "₹"}


def _normalize_email(value: Any, params: Dict[str, Any]) -> str:
    return as_text(value).strip().lower()


def _normalize_phone(value: Any, params: Dict[str, Any]) -> str:
    return re.sub(r"\D", "", as_text(value))


def _remove_special_chars(value: Any, params: Dict[str, Any]) -> str:
    pattern = params.get("pattern") or r"[^a-zA-Z0-9\s]"
    return re.sub(pattern, "", as_text(value))


def _format_currency(value: Any, params: Dict[str, Any]) -> str:
    currency = str(params.get("currency", "USD")).upper()
    decimals = int(params.get("decimals", 0 if currency == "JPY" else 2))
    amount = to_number(value)
    symbol = _CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.{decimals}f}"


def _extract_domain(value: Any, params: Dict[str, Any]) -> str:
    match = re.search(r"@([^@]+)$", as_text(value))
    return match.group(1).lower() if match else ""


def default_transformations() -> Dict[str, TransformationFunction]:
    return {
        "normalizeEmail": _normalize_email,
        "normalizePhone": _normalize_phone,
        "removeSpecialChars": _remove_special_chars,
        "formatCurrency": _format_currency,
        "extractDomain": _extract_domain,
    }


# =============================================================================
# Filter Validators
# =============================================================================

def _valid_email(value: Any) -> ValidationOutcome:
    ok = isinstance(value, str) and EMAIL_PATTERN.match(value) is not None
    return ValidationOutcome(ok, [] if ok else ["Invalid email format"])


def _valid_phone(value: Any) -> ValidationOutcome:
    ok = isinstance(value, str) and PHONE_PATTERN.match(value) is not None
    return ValidationOutcome(ok, [] if ok else ["Invalid phone number format"])


def _valid_url(value: Any) -> ValidationOutcome:
    parsed = urlparse(value) if isinstance(value, str) else None
    ok = parsed is not None and bool(parsed.scheme) and bool(parsed.netloc or parsed.path)
    return ValidationOutcome(ok, [] if ok else ["Invalid URL format"])


def _valid_credit_card(value: Any) -> ValidationOutcome:
    digits = re.sub(r"\D", "", as_text(value))
    if len(digits) < 13 or len(digits) > 19:
        return ValidationOutcome(False, ["Invalid credit card number length"])

    # Luhn checksum
    total = 0
    for position, char in enumerate(reversed(digits)):
        n = int(char)
        if position % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n

    ok = total % 10 == 0
    return ValidationOutcome(ok, [] if ok else ["Invalid credit card number"])


def default_validators() -> Dict[str, ValidationFunction]:
    return {
        "isValidEmail": _valid_email,
        "isValidPhone": _valid_phone,
        "isValidURL": _valid_url,
        "isValidCreditCard": _valid_credit_card,
    }
