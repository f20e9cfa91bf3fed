"""
Domain errors for the membership endpoints.

Each error knows the HTTP status it maps to; main.py renders them as
{"message": ...} bodies, the format existing API clients expect.
"""
from typing import Sequence


class MembershipError(Exception):
    """Base class for membership domain errors."""
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MembershipValidationError(MembershipError):
    """
    A creation request failed one or more validation rules.

    `codes` holds every failing rule in priority order; `message` is the
    highest priority one.
    """
    status_code = 400

    def __init__(self, codes: Sequence[str]):
        if not codes:
            raise ValueError("MembershipValidationError needs at least one code")
        super().__init__(codes[0])
        self.codes = list(codes)

    @property
    def code(self) -> str:
        return self.codes[0]


class MembershipNotFoundError(MembershipError):
    status_code = 404

    def __init__(self, membership_id: int):
        super().__init__(f"Membership with ID {membership_id} not found")
        self.membership_id = membership_id


class TerminationNotAllowedError(MembershipError):
    status_code = 400

    def __init__(self, reason: str):
        super().__init__(f"Termination not allowed: {reason}")
        self.reason = reason
