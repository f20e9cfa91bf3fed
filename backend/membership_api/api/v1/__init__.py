"""
Membership API routers.
"""
from membership_api.api.v1.memberships import router as memberships_router
from membership_api.api.v1.health import router as health_router

__all__ = [
    "memberships_router",
    "health_router",
]
