"""
Test configuration and fixtures for the Membership API tests.
"""
import os
import pytest_asyncio
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from membership_api.main import app
from membership_api.db.base import Base, get_db
from membership_api.models import BillingInterval, Membership, PaymentMethod
from membership_api.schemas.membership import CreateMembershipCommand
from membership_api.services.memberships import MembershipRepository, create_membership


# Use a file-based SQLite DB to avoid :memory: multiple-connection issues
# with SQLAlchemy + aiosqlite (each new connection would see an empty DB).
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
    # Clean up test database file
    try:
        os.remove("./test.db")
    except OSError:
        pass


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def repo(db_session: AsyncSession) -> MembershipRepository:
    """Membership repository bound to the test session."""
    return MembershipRepository(db_session)


@pytest_asyncio.fixture
async def make_membership(repo: MembershipRepository):
    """Factory creating memberships directly through the service."""
    async def _make(
        valid_from: date,
        billing_interval: BillingInterval = BillingInterval.MONTHLY,
        billing_periods: int = 6,
        name: str = "Test Plan",
        recurring_price: Decimal = Decimal("50.00"),
        payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD,
        today: Optional[date] = None,
    ) -> Membership:
        command = CreateMembershipCommand(
            name=name,
            recurring_price=recurring_price,
            payment_method=payment_method,
            billing_interval=billing_interval,
            billing_periods=billing_periods,
            valid_from=valid_from,
        )
        return await create_membership(repo, command, today=today)

    return _make
