"""
Membership period model.

One billing cycle of a membership. Periods of a membership are contiguous:
each period ends on the day the next one starts.
"""
from typing import TYPE_CHECKING
from datetime import date
from sqlalchemy import Integer, ForeignKey, Date, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from membership_api.models.base import BaseModel
from membership_api.models.membership import MembershipState

if TYPE_CHECKING:
    from membership_api.models.membership import Membership


class MembershipPeriod(BaseModel):
    """Billing period of a membership, covering [start_date, end_date)."""
    __tablename__ = "membership_periods"

    membership_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("memberships.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

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

    membership: Mapped["Membership"] = relationship(
        "Membership",
        foreign_keys=[membership_id],
        back_populates="periods"
    )

    def __repr__(self) -> str:
        return f"<MembershipPeriod {self.start_date} - {self.end_date} ({self.state.value})>"
