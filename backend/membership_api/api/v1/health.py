"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.db.base import get_db
from membership_api.schemas.common import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Report healthy once the membership database answers."""
    await db.execute(text("SELECT 1"))
    return HealthResponse()
