"""
Membership service.

Provides business logic for:
- Creating a membership together with all of its billing periods
- Listing memberships with their periods
- Terminating a membership (all remaining periods at once)
- Deleting a membership and its periods

All storage goes through a MembershipRepository bound to the request's
session. Nothing is committed here: get_db commits the whole request or
rolls it back, so a membership is never visible without its periods.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from membership_api.core.config import settings
from membership_api.core.exceptions import MembershipNotFoundError
from membership_api.models.membership import Membership, MembershipState
from membership_api.models.membership_period import MembershipPeriod
from membership_api.schemas.membership import CreateMembershipCommand
from membership_api.services.membership_lifecycle import (
    calculate_valid_until,
    check_termination,
    derive_membership_state,
    derive_period_state,
    effective_membership_state,
    generate_period_boundaries,
    resolve_valid_from,
)

logger = logging.getLogger(__name__)


class MembershipRepository:
    """Storage handle for memberships and their periods."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, membership: Membership) -> Membership:
        self.session.add(membership)
        await self.session.flush()
        return membership

    async def list_all(self) -> List[Membership]:
        result = await self.session.execute(
            select(Membership)
            .options(selectinload(Membership.periods))
            .order_by(Membership.id.asc())
        )
        return list(result.scalars().all())

    async def get(self, membership_id: int) -> Optional[Membership]:
        result = await self.session.execute(
            select(Membership)
            .where(Membership.id == membership_id)
            .options(selectinload(Membership.periods))
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, membership_id: int) -> Membership:
        membership = await self.get(membership_id)
        if membership is None:
            raise MembershipNotFoundError(membership_id)
        return membership

    async def delete(self, membership: Membership) -> None:
        # Periods are loaded, so the ORM cascade removes them too
        await self.session.delete(membership)
        await self.session.flush()

    async def save(self) -> None:
        await self.session.flush()


async def create_membership(
    repo: MembershipRepository,
    command: CreateMembershipCommand,
    today: Optional[date] = None
) -> Membership:
    """
    Create a membership and its billing periods.

    Args:
        repo: Membership repository
        command: Validated creation request
        today: Reference date for state derivation (defaults to today)

    Returns:
        The new membership with its periods loaded
    """
    today = today or date.today()
    valid_from = resolve_valid_from(command.valid_from, today)
    valid_until = calculate_valid_until(
        valid_from, command.billing_interval, command.billing_periods
    )

    periods = [
        MembershipPeriod(
            start_date=start,
            end_date=end,
            state=derive_period_state(start, end, today),
        )
        for start, end in generate_period_boundaries(
            valid_from, command.billing_interval, command.billing_periods
        )
    ]

    membership = Membership(
        name=command.name,
        user_id=settings.DEFAULT_USER_ID,
        recurring_price=command.recurring_price,
        payment_method=command.payment_method,
        billing_interval=command.billing_interval,
        billing_periods=command.billing_periods,
        valid_from=valid_from,
        valid_until=valid_until,
        state=derive_membership_state(valid_from, valid_until, today),
        assigned_by=command.assigned_by,
        periods=periods,
    )
    await repo.add(membership)

    logger.info(
        f"Created membership {membership.id} ({membership.name}): "
        f"{valid_from} - {valid_until}, {len(periods)} {command.billing_interval.value} periods"
    )
    return membership


async def list_memberships(repo: MembershipRepository) -> List[Membership]:
    """All memberships, oldest first, with their periods."""
    return await repo.list_all()


async def terminate_membership(
    repo: MembershipRepository,
    membership_id: int,
    today: Optional[date] = None
) -> Membership:
    """
    Terminate a membership.

    Every period that has not ended yet and the membership itself are marked
    terminated in a single flush.

    Raises:
        MembershipNotFoundError: unknown id
        TerminationNotAllowedError: see check_termination()
    """
    today = today or date.today()
    membership = await repo.get_or_404(membership_id)

    state = effective_membership_state(
        membership.state, membership.valid_from, membership.valid_until, today
    )
    remaining = check_termination(state, membership.periods, today)

    for period in remaining:
        period.state = MembershipState.TERMINATED
    membership.state = MembershipState.TERMINATED
    await repo.save()

    logger.info(f"Terminated membership {membership_id}: {len(remaining)} periods terminated")
    return membership


async def delete_membership(repo: MembershipRepository, membership_id: int) -> None:
    """Hard delete a membership and all of its periods."""
    membership = await repo.get_or_404(membership_id)
    await repo.delete(membership)
    logger.info(f"Deleted membership {membership_id}")
