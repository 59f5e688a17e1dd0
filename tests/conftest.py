"""
Pytest configuration and fixtures for recurring order tests.

Provides:
- In-memory SQLite database and session factory
- A controllable clock
- Factory fixtures for recurring order definitions
- Mock collaborators (notifier, materializer)
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from recurring_orders.models import Base
from recurring_orders.schemas.recurring_order import (
    OrderItem,
    PaymentMethod,
    RecurringConfig,
    RecurringOrderDefinition,
    RestaurantRef,
)
from recurring_orders.services.execution_log_store import ExecutionLogStore
from recurring_orders.services.notifications import NotificationSink

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock pinned to a fixed instant."""
    return FakeClock(datetime(2026, 3, 15, 12, 0, 0))


@pytest_asyncio.fixture
async def db_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def log_store(session_factory, clock) -> ExecutionLogStore:
    """Execution log store with the default capacity and the fake clock."""
    return ExecutionLogStore(session_factory, capacity=100, clock=clock)


# ============================================================================
# Factory Fixtures
# ============================================================================


@pytest.fixture
def make_order():
    """Factory for in-memory recurring order definitions."""

    def _make(
        order_id: str = "recurring_1",
        payment_type: str | None = "cash",
        restaurant_name: str | None = "Pizza Place",
        with_payment_method: bool = True,
        next_execution: datetime | None = None,
        is_active: bool = True,
        recurring_config: RecurringConfig | None = None,
    ) -> RecurringOrderDefinition:
        return RecurringOrderDefinition(
            id=order_id,
            restaurant=RestaurantRef(id="rest_1", name=restaurant_name),
            items=[OrderItem(product_id="prod_1", name="Margherita", quantity=2, unit_price=9.5)],
            payment_method=PaymentMethod(type=payment_type) if with_payment_method else None,
            recurring_config=recurring_config,
            is_active=is_active,
            next_execution=next_execution,
        )

    return _make


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_notifier() -> AsyncMock:
    """Notification sink that records every signal."""
    notifier = AsyncMock(spec=NotificationSink)
    for name in (
        "send",
        "notify_success",
        "notify_payment_failure",
        "notify_execution_failure",
        "notify_nothing_pending",
        "notify_batch_completed",
        "notify_manual_run_failed",
    ):
        getattr(notifier, name).return_value = True
    return notifier


@pytest.fixture
def materializer() -> AsyncMock:
    """Host materializer returning a fixed order id."""
    return AsyncMock(return_value="ORDER-123")


@pytest.fixture
def provider_of():
    """Build an async due-orders provider returning the given orders."""

    def _make(*orders: RecurringOrderDefinition) -> AsyncMock:
        return AsyncMock(return_value=list(orders))

    return _make


@pytest_asyncio.fixture
async def api_client_factory():
    """Factory for an HTTP client bound to an app built around a service."""
    from recurring_orders.main import create_app

    clients: list[AsyncClient] = []

    async def _create(service) -> AsyncClient:
        app = create_app(service=service)
        transport = ASGITransport(app=app)
        client = AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _create

    for client in clients:
        await client.aclose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Raw session for tests that need to tamper with stored rows."""
    async with session_factory() as session:
        yield session
