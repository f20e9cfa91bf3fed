"""
Membership model.

A membership is a recurring plan for one user. Its validity window is
split into billing periods (see MembershipPeriod) that are created
together with it and deleted with it.
"""
from typing import Optional, TYPE_CHECKING, List
from datetime import date
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Integer, Numeric, Date, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from membership_api.models.base import BaseModel

if TYPE_CHECKING:
    from membership_api.models.membership_period import MembershipPeriod


class MembershipState(str, Enum):
    """State of a membership (and of each of its periods)."""
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class PaymentMethod(str, Enum):
    """Accepted payment methods."""
    CASH = "cash"
    CREDIT_CARD = "credit card"


class BillingInterval(str, Enum):
    """Cadence of a membership's billing periods."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Membership(BaseModel):
    """
    Membership model.

    valid_until is always valid_from advanced by billing_periods intervals.
    The stored state is the state at creation (or terminated); responses
    re-derive it from the dates, see services.membership_lifecycle.
    """
    __tablename__ = "memberships"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Owning user (no authentication yet, defaults from settings)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    recurring_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False
    )

    # Use values_callable to store lowercase values in DB (e.g., 'monthly' not 'MONTHLY')
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SQLEnum(
            PaymentMethod,
            name="paymentmethod",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False
    )
    billing_interval: Mapped[BillingInterval] = mapped_column(
        SQLEnum(
            BillingInterval,
            name="billinginterval",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False
    )
    billing_periods: Mapped[int] = mapped_column(Integer, nullable=False)

    # Validity window
    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[date] = mapped_column(Date, nullable=False)

    state: Mapped[MembershipState] = mapped_column(
        SQLEnum(
            MembershipState,
            name="membershipstate",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        default=MembershipState.PENDING,
        nullable=False
    )

    assigned_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Relationships
    periods: Mapped[List["MembershipPeriod"]] = relationship(
        "MembershipPeriod",
        back_populates="membership",
        cascade="all, delete-orphan",
        order_by="MembershipPeriod.start_date"
    )

    def __repr__(self) -> str:
        return f"<Membership {self.id} {self.name} ({self.state.value})>"
