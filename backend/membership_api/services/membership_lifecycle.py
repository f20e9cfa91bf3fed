"""
Membership lifecycle calculations.

Provides pure functions for:
- Validity window (valid_until) from a start date, interval and period count
- Billing period boundaries
- Membership and period state derivation from dates
- Termination eligibility

Month and year steps use calendar arithmetic (dateutil.relativedelta), which
clamps to the last day of the month: 2024-01-31 + 1 month is 2024-02-29,
and 2024-02-29 + 1 year is 2025-02-28.
"""
from datetime import date
from typing import List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from membership_api.core.exceptions import TerminationNotAllowedError
from membership_api.models.membership import BillingInterval, MembershipState
from membership_api.models.membership_period import MembershipPeriod

TERMINABLE_STATES = (MembershipState.ACTIVE, MembershipState.PENDING)


def interval_offset(interval: BillingInterval, count: int = 1) -> relativedelta:
    """Offset covering `count` billing intervals."""
    if interval == BillingInterval.MONTHLY:
        return relativedelta(months=count)
    if interval == BillingInterval.YEARLY:
        return relativedelta(months=count * 12)
    if interval == BillingInterval.WEEKLY:
        return relativedelta(days=count * 7)
    raise ValueError(f"Unknown billing interval: {interval!r}")


def calculate_valid_until(
    valid_from: date,
    interval: BillingInterval,
    billing_periods: int
) -> date:
    """End of the validity window: valid_from advanced by all billing periods."""
    return valid_from + interval_offset(interval, billing_periods)


def generate_period_boundaries(
    valid_from: date,
    interval: BillingInterval,
    billing_periods: int
) -> List[Tuple[date, date]]:
    """
    Generate (start, end) for each billing period.

    Boundary i is valid_from + i intervals rather than the previous end plus
    one interval, so month-end clamping does not drift (Jan 31, Feb 29,
    Mar 31, ... instead of Jan 31, Feb 29, Mar 29, ...) and the last end is
    always calculate_valid_until().
    """
    boundaries = [
        valid_from + interval_offset(interval, i)
        for i in range(billing_periods + 1)
    ]
    return list(zip(boundaries[:-1], boundaries[1:]))


def derive_membership_state(
    valid_from: date,
    valid_until: date,
    today: date
) -> MembershipState:
    """
    State of a membership from its validity window.

    - pending: starts in the future
    - expired: ended in the past
    - active: otherwise

    Never returns terminated, that only comes from terminate_membership().
    """
    if valid_from > today:
        return MembershipState.PENDING
    if valid_until < today:
        return MembershipState.EXPIRED
    return MembershipState.ACTIVE


def derive_period_state(start: date, end: date, today: date) -> MembershipState:
    """State of a billing period covering [start, end)."""
    if start > today:
        return MembershipState.PENDING
    if start <= today < end:
        return MembershipState.ACTIVE
    return MembershipState.EXPIRED


def effective_membership_state(
    stored_state: MembershipState,
    valid_from: date,
    valid_until: date,
    today: date
) -> MembershipState:
    """Stored terminated state wins, anything else is re-derived."""
    if stored_state == MembershipState.TERMINATED:
        return MembershipState.TERMINATED
    return derive_membership_state(valid_from, valid_until, today)


def effective_period_state(
    stored_state: MembershipState,
    start: date,
    end: date,
    today: date
) -> MembershipState:
    if stored_state == MembershipState.TERMINATED:
        return MembershipState.TERMINATED
    return derive_period_state(start, end, today)


def remaining_periods(
    periods: Sequence[MembershipPeriod],
    today: date
) -> List[MembershipPeriod]:
    """Periods that have not ended yet."""
    return [p for p in periods if p.end_date > today]


def check_termination(
    state: MembershipState,
    periods: Sequence[MembershipPeriod],
    today: date
) -> List[MembershipPeriod]:
    """
    Check whether a membership may be terminated.

    Args:
        state: Effective state of the membership
        periods: All billing periods of the membership
        today: Reference date

    Returns:
        The remaining periods, which termination marks as terminated

    Raises:
        TerminationNotAllowedError: membership not active or pending, no
            period left, or only the already started final period left
    """
    if state not in TERMINABLE_STATES:
        raise TerminationNotAllowedError(f"membership is {state.value}")

    remaining = remaining_periods(periods, today)
    if not remaining:
        raise TerminationNotAllowedError("no remaining billing periods")

    if len(remaining) == 1 and remaining[0].start_date <= today:
        raise TerminationNotAllowedError("the final billing period has already started")

    return remaining


def resolve_valid_from(valid_from: Optional[date], today: date) -> date:
    """Requests without validFrom start today."""
    return valid_from if valid_from is not None else today
