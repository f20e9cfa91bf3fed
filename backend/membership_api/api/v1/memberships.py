"""
Membership endpoints.

- POST   /memberships                 create a membership and its billing periods
- GET    /memberships                 list memberships with their periods
- POST   /memberships/{id}/terminate  terminate the remaining periods
- DELETE /memberships/{id}            delete a membership and its periods

Errors are raised as membership_api.core.exceptions errors and rendered by
the handlers in main.py as {"message": ...}.
"""
from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.db.base import get_db
from membership_api.models.membership import Membership
from membership_api.models.membership_period import MembershipPeriod
from membership_api.schemas.common import ErrorResponse, MessageResponse
from membership_api.schemas.membership import (
    MembershipCreatedResponse,
    MembershipPeriodResponse,
    MembershipResponse,
    MembershipWithPeriodsResponse,
)
from membership_api.services.membership_lifecycle import (
    effective_membership_state,
    effective_period_state,
)
from membership_api.services.membership_validation import validate_membership_request
from membership_api.services.memberships import (
    MembershipRepository,
    create_membership,
    delete_membership,
    list_memberships,
    terminate_membership,
)

router = APIRouter()


def get_membership_repository(db: AsyncSession = Depends(get_db)) -> MembershipRepository:
    """Dependency that provides the request-scoped membership repository."""
    return MembershipRepository(db)


def period_to_response(period: MembershipPeriod, today: date) -> MembershipPeriodResponse:
    """Convert MembershipPeriod model to MembershipPeriodResponse schema."""
    return MembershipPeriodResponse(
        id=period.id,
        uuid=period.uuid,
        membership=period.membership_id,
        start=period.start_date,
        end=period.end_date,
        state=effective_period_state(
            period.state, period.start_date, period.end_date, today
        ).value,
    )


def membership_to_response(membership: Membership, today: date) -> MembershipResponse:
    """Convert Membership model to MembershipResponse schema."""
    return MembershipResponse(
        id=membership.id,
        uuid=membership.uuid,
        name=membership.name,
        userId=membership.user_id,
        recurringPrice=float(membership.recurring_price),
        validFrom=membership.valid_from,
        validUntil=membership.valid_until,
        state=effective_membership_state(
            membership.state, membership.valid_from, membership.valid_until, today
        ).value,
        assignedBy=membership.assigned_by,
        paymentMethod=membership.payment_method.value,
        billingInterval=membership.billing_interval.value,
        billingPeriods=membership.billing_periods,
    )


@router.post(
    "",
    response_model=MembershipCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create(
    payload: Any = Body(None),
    repo: MembershipRepository = Depends(get_membership_repository)
):
    """
    Create a new membership.

    The body is validated by the membership rules before anything is
    written; the first failing rule is returned as {"message": code}.
    """
    command = validate_membership_request(payload)
    today = date.today()
    membership = await create_membership(repo, command, today=today)

    return MembershipCreatedResponse(
        membership=membership_to_response(membership, today),
        membershipPeriods=[period_to_response(p, today) for p in membership.periods],
    )


@router.get("", response_model=list[MembershipWithPeriodsResponse])
async def list_all(
    repo: MembershipRepository = Depends(get_membership_repository)
):
    """List all memberships with their billing periods."""
    today = date.today()
    memberships = await list_memberships(repo)

    return [
        MembershipWithPeriodsResponse(
            membership=membership_to_response(m, today),
            periods=[period_to_response(p, today) for p in m.periods],
        )
        for m in memberships
    ]


@router.post(
    "/{membership_id}/terminate",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def terminate(
    membership_id: int,
    repo: MembershipRepository = Depends(get_membership_repository)
):
    """
    Terminate a membership.

    Only active or pending memberships with something left to terminate
    qualify; a membership in its final, already started period cannot be
    terminated.
    """
    await terminate_membership(repo, membership_id)
    return MessageResponse(message="Membership terminated successfully")


@router.delete(
    "/{membership_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete(
    membership_id: int,
    repo: MembershipRepository = Depends(get_membership_repository)
):
    """Delete a membership and all of its billing periods."""
    await delete_membership(repo, membership_id)
    return MessageResponse(
        message=f"Membership with ID {membership_id} has been successfully deleted"
    )
