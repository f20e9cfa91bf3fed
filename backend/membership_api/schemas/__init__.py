"""
Pydantic schemas for API request/response validation.
"""
from membership_api.schemas.common import MessageResponse, ErrorResponse, HealthResponse
from membership_api.schemas.membership import (
    CreateMembershipCommand,
    MembershipResponse,
    MembershipPeriodResponse,
    MembershipCreatedResponse,
    MembershipWithPeriodsResponse,
)

__all__ = [
    "MessageResponse",
    "ErrorResponse",
    "HealthResponse",
    "CreateMembershipCommand",
    "MembershipResponse",
    "MembershipPeriodResponse",
    "MembershipCreatedResponse",
    "MembershipWithPeriodsResponse",
]
