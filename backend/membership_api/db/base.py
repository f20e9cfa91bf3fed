"""
Database engine, session factory and the per-request transaction.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from membership_api.core.config import settings

# Naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}


class Base(DeclarativeBase):
    """Base class for the membership tables."""
    metadata = MetaData(naming_convention=convention)


engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)

MembershipSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def membership_transaction(
    session_factory: Optional[async_sessionmaker] = None,
) -> AsyncIterator[AsyncSession]:
    """
    Open a session and run one unit of work in it.

    Commits when the block finishes, rolls back everything it flushed if the
    block raises, so a membership never ends up stored without its periods
    or half terminated.
    """
    factory = session_factory or MembershipSession
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one transaction per request."""
    async with membership_transaction() as session:
        yield session


async def init_db() -> None:
    """Create the membership tables if they do not exist."""
    # Register models on the metadata before create_all
    import membership_api.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
