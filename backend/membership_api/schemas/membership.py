"""
Pydantic schemas for Membership endpoints.

Response field names are camelCase and the list endpoint nests periods
under "periods" while creation returns "membershipPeriods": both shapes
are what existing clients of the API read.
"""
from typing import Optional
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field

from membership_api.models.membership import BillingInterval, PaymentMethod


class CreateMembershipCommand(BaseModel):
    """A validated, normalized membership creation request."""
    name: str = Field(..., min_length=1)
    recurring_price: Decimal = Field(..., ge=0)
    payment_method: PaymentMethod
    billing_interval: BillingInterval
    billing_periods: int = Field(..., ge=1)
    valid_from: Optional[date] = None  # None means today
    assigned_by: Optional[str] = None


class MembershipPeriodResponse(BaseModel):
    """Billing period response."""
    id: int
    uuid: str
    membership: int
    start: date
    end: date
    state: str


class MembershipResponse(BaseModel):
    """Membership response."""
    id: int
    uuid: str
    name: str
    userId: int
    recurringPrice: float
    validFrom: date
    validUntil: date
    state: str
    assignedBy: Optional[str] = None
    paymentMethod: str
    billingInterval: str
    billingPeriods: int


class MembershipCreatedResponse(BaseModel):
    """Response of POST /memberships."""
    membership: MembershipResponse
    membershipPeriods: list[MembershipPeriodResponse]


class MembershipWithPeriodsResponse(BaseModel):
    """One row of GET /memberships."""
    membership: MembershipResponse
    periods: list[MembershipPeriodResponse]
