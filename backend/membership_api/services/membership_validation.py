"""
Validation rules for membership creation requests.

The rules run in a fixed priority order over the raw JSON payload. Each rule
returns an error code or None, and stays silent when the fields it needs are
missing or malformed (those are reported by an earlier rule), so collecting
every failure never yields derived duplicates.

API clients only ever see the highest priority code; see
collect_membership_errors() for the full list.
"""
import logging
import math
from datetime import date
from decimal import Decimal
from numbers import Real
from typing import Any, Callable, Mapping, Optional

from dateutil.parser import isoparse

from membership_api.core.exceptions import MembershipValidationError
from membership_api.models.membership import BillingInterval, PaymentMethod
from membership_api.schemas.membership import CreateMembershipCommand
from membership_api.services.membership_lifecycle import calculate_valid_until

logger = logging.getLogger(__name__)

MANDATORY_FIELDS = (
    "name",
    "recurringPrice",
    "paymentMethod",
    "billingInterval",
    "billingPeriods",
)

CASH_PRICE_LIMIT = 100

# Column limits of memberships.name and memberships.recurring_price
MAX_NAME_LENGTH = 255
MAX_RECURRING_PRICE = 10 ** 8
PRICE_DECIMAL_PLACES = 2

# Inclusive (min, max) number of billing periods per interval
BILLING_PERIOD_BOUNDS = {
    BillingInterval.MONTHLY: (6, 12),
    BillingInterval.YEARLY: (1, 10),
    BillingInterval.WEEKLY: (1, 26),
}

PAYMENT_METHOD_ALIASES = {
    "cash": PaymentMethod.CASH,
    "credit card": PaymentMethod.CREDIT_CARD,
    "credit-card": PaymentMethod.CREDIT_CARD,
    "credit_card": PaymentMethod.CREDIT_CARD,
}

Rule = Callable[[Mapping[str, Any]], Optional[str]]


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def _is_number(value: Any) -> bool:
    # bool is an int subclass, but true/false is not a price
    return (
        isinstance(value, Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _as_int(value: Any) -> Optional[int]:
    """Return value as an int if it is a whole number, else None."""
    if not _is_number(value):
        return None
    if isinstance(value, int):
        return value
    if float(value).is_integer():
        return int(value)
    return None


def _payment_method(value: Any) -> Optional[PaymentMethod]:
    if not isinstance(value, str):
        return None
    return PAYMENT_METHOD_ALIASES.get(value.strip().lower())


def _billing_interval(value: Any) -> Optional[BillingInterval]:
    try:
        return BillingInterval(value)
    except ValueError:
        return None


def _parse_valid_from(value: Any) -> Optional[date]:
    """Parse an ISO-8601 date or datetime string; None if it is not one."""
    if not isinstance(value, str):
        return None
    try:
        return isoparse(value.strip()).date()
    except (ValueError, OverflowError):
        return None


# ---------------------------------------------------------------------------
# Rules, in priority order
# ---------------------------------------------------------------------------

def check_mandatory_fields(payload: Mapping[str, Any]) -> Optional[str]:
    if not all(_is_present(payload.get(field)) for field in MANDATORY_FIELDS):
        return "missingMandatoryFields"
    return None


def check_name_type(payload: Mapping[str, Any]) -> Optional[str]:
    name = payload.get("name")
    if _is_present(name) and not isinstance(name, str):
        return "nameMustBeAString"
    return None


def check_name_length(payload: Mapping[str, Any]) -> Optional[str]:
    name = payload.get("name")
    if isinstance(name, str) and len(name) > MAX_NAME_LENGTH:
        return "nameTooLong"
    return None


def check_recurring_price_type(payload: Mapping[str, Any]) -> Optional[str]:
    price = payload.get("recurringPrice")
    if _is_present(price) and not _is_number(price):
        return "recurringPriceMustBeANumber"
    return None


def check_negative_price(payload: Mapping[str, Any]) -> Optional[str]:
    price = payload.get("recurringPrice")
    if _is_number(price) and price < 0:
        return "negativeRecurringPrice"
    return None


def check_cash_price_limit(payload: Mapping[str, Any]) -> Optional[str]:
    price = payload.get("recurringPrice")
    if (
        _is_number(price)
        and _payment_method(payload.get("paymentMethod")) == PaymentMethod.CASH
        and price > CASH_PRICE_LIMIT
    ):
        return "cashPriceBelow100"
    return None


def check_price_limit(payload: Mapping[str, Any]) -> Optional[str]:
    price = payload.get("recurringPrice")
    if _is_number(price) and price >= MAX_RECURRING_PRICE:
        return "recurringPriceTooLarge"
    return None


def check_price_precision(payload: Mapping[str, Any]) -> Optional[str]:
    price = payload.get("recurringPrice")
    if not _is_number(price) or price < 0 or price >= MAX_RECURRING_PRICE:
        return None
    if Decimal(str(price)).as_tuple().exponent < -PRICE_DECIMAL_PLACES:
        return "recurringPriceTooManyDecimals"
    return None


def check_payment_method(payload: Mapping[str, Any]) -> Optional[str]:
    method = payload.get("paymentMethod")
    if _is_present(method) and _payment_method(method) is None:
        return "invalidPaymentMethod"
    return None


def check_billing_interval(payload: Mapping[str, Any]) -> Optional[str]:
    interval = payload.get("billingInterval")
    if _is_present(interval) and _billing_interval(interval) is None:
        return "invalidBillingInterval"
    return None


def check_billing_periods_type(payload: Mapping[str, Any]) -> Optional[str]:
    periods = payload.get("billingPeriods")
    if _is_present(periods) and _as_int(periods) is None:
        return "billingPeriodsMustBeANumber"
    return None


def check_billing_periods_bounds(payload: Mapping[str, Any]) -> Optional[str]:
    interval = _billing_interval(payload.get("billingInterval"))
    periods = _as_int(payload.get("billingPeriods"))
    if interval is None or periods is None:
        return None

    minimum, maximum = BILLING_PERIOD_BOUNDS[interval]
    if interval == BillingInterval.MONTHLY:
        if periods < minimum:
            return "billingPeriodsLessThan6Months"
        if periods > maximum:
            return "billingPeriodsMoreThan12Months"
    elif interval == BillingInterval.YEARLY:
        if periods < minimum:
            return "billingPeriodsCannotBeLessThan1"
        if periods > maximum:
            return "billingPeriodsMoreThan10Years"
    elif interval == BillingInterval.WEEKLY:
        if periods < minimum:
            return "billingPeriodsCannotBeLessThan1"
        if periods > maximum:
            return "weeklyBillingCannotExceed6Months"
    return None


def check_valid_from(payload: Mapping[str, Any]) -> Optional[str]:
    valid_from = payload.get("validFrom")
    if _is_present(valid_from) and _parse_valid_from(valid_from) is None:
        return "validFromMustBeAValidDateString"
    return None


def check_validity_window(payload: Mapping[str, Any]) -> Optional[str]:
    """The last billing period must end within the supported calendar."""
    valid_from = _parse_valid_from(payload.get("validFrom"))
    interval = _billing_interval(payload.get("billingInterval"))
    periods = _as_int(payload.get("billingPeriods"))
    if valid_from is None or interval is None or periods is None:
        return None
    if check_billing_periods_bounds(payload) is not None:
        return None
    try:
        calculate_valid_until(valid_from, interval, periods)
    except (ValueError, OverflowError):
        return "validUntilOutOfRange"
    return None


MEMBERSHIP_RULES: list[Rule] = [
    check_mandatory_fields,
    check_name_type,
    check_name_length,
    check_recurring_price_type,
    check_negative_price,
    check_cash_price_limit,
    check_price_limit,
    check_price_precision,
    check_payment_method,
    check_billing_interval,
    check_billing_periods_type,
    check_billing_periods_bounds,
    check_valid_from,
    check_validity_window,
]


def collect_membership_errors(payload: Any) -> list[str]:
    """Run every rule and return all failing codes, highest priority first."""
    if not isinstance(payload, Mapping):
        return ["missingMandatoryFields"]

    errors = []
    for rule in MEMBERSHIP_RULES:
        code = rule(payload)
        if code is not None:
            errors.append(code)
    return errors


def validate_membership_request(payload: Any) -> CreateMembershipCommand:
    """
    Validate a raw creation payload and normalize it into a typed command.

    Raises MembershipValidationError if any rule fails.
    """
    errors = collect_membership_errors(payload)
    if errors:
        logger.warning(f"Membership request rejected: {errors}")
        raise MembershipValidationError(errors)

    valid_from = payload.get("validFrom")
    assigned_by = payload.get("assignedBy")

    return CreateMembershipCommand(
        name=payload["name"],
        recurring_price=Decimal(str(payload["recurringPrice"])),
        payment_method=_payment_method(payload["paymentMethod"]),
        billing_interval=BillingInterval(payload["billingInterval"]),
        billing_periods=_as_int(payload["billingPeriods"]),
        valid_from=_parse_valid_from(valid_from) if _is_present(valid_from) else None,
        assigned_by=assigned_by if isinstance(assigned_by, str) and assigned_by else None,
    )
