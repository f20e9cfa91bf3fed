"""
SQLAlchemy models for the Membership API.
"""
from membership_api.models.membership import (
    Membership,
    MembershipState,
    PaymentMethod,
    BillingInterval,
)
from membership_api.models.membership_period import MembershipPeriod

__all__ = [
    "Membership",
    "MembershipState",
    "PaymentMethod",
    "BillingInterval",
    "MembershipPeriod",
]
