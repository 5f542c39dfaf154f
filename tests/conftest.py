"""Pytest configuration and fixtures for the collaboration backend.

Integration fixtures run the data client against an in-memory SQLite
database (aiosqlite, one shared connection per test) with the full schema
created from the ORM metadata. Realtime publishes go to a RecordingPublisher.
All imports use app.*.
"""

import os
from dataclasses import dataclass

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("REALTIME_ENABLED", "true")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.domain.enums import TenantRole
from app.infrastructure.persistence.client import DataClient
from app.infrastructure.persistence.database import Base, create_session_factory
from app.infrastructure.persistence.scoped_clients import ScopedClientFactory, set_client_factory
from app.infrastructure.realtime.emitter import EventDispatcher
from tests.fakes import RecordingPublisher


@dataclass
class World:
    """Two tenants with members and one project each."""

    tenant_a: str
    tenant_b: str
    alice: str  # owner in A
    bob: str  # worker in A
    carol: str  # owner in B
    project_a: str
    project_b: str
    membership_bob: str


@pytest.fixture
async def engine():
    """Fresh in-memory SQLite engine with the schema created; foreign keys enforced."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def platform_client(session_factory) -> DataClient:
    """Unscoped client (platform / administrative access)."""
    return DataClient(session_factory)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
async def dispatcher(publisher: RecordingPublisher):
    dispatcher = EventDispatcher(publisher, timeout_seconds=1.0)
    yield dispatcher
    await dispatcher.drain()


@pytest.fixture
def factory(platform_client: DataClient, dispatcher: EventDispatcher):
    """Scoped client factory, registered for tenant_scoped_client / user_scoped_client."""
    factory = ScopedClientFactory(platform_client, dispatcher)
    set_client_factory(factory)
    yield factory
    set_client_factory(None)


@pytest.fixture
async def world(platform_client: DataClient) -> World:
    """Seed two tenants, three users and one project per tenant through the platform client."""
    tenant_a = await platform_client.tenant.create({"name": "Acme Builders", "slug": "acme"})
    tenant_b = await platform_client.tenant.create({"name": "Beta Renovations", "slug": "beta"})
    alice = await platform_client.user.create({"email": "alice@acme.test", "name": "Alice"})
    bob = await platform_client.user.create({"email": "bob@acme.test", "name": "Bob"})
    carol = await platform_client.user.create({"email": "carol@beta.test", "name": "Carol"})
    await platform_client.membership.create(
        {"tenant_id": tenant_a.id, "user_id": alice.id, "role": TenantRole.OWNER.value}
    )
    membership_bob = await platform_client.membership.create(
        {"tenant_id": tenant_a.id, "user_id": bob.id, "role": TenantRole.WORKER.value}
    )
    await platform_client.membership.create(
        {"tenant_id": tenant_b.id, "user_id": carol.id, "role": TenantRole.OWNER.value}
    )
    project_a = await platform_client.project.create(
        {"tenant_id": tenant_a.id, "name": "Kitchen remodel"}
    )
    project_b = await platform_client.project.create(
        {"tenant_id": tenant_b.id, "name": "Roof repair"}
    )
    return World(
        tenant_a=tenant_a.id,
        tenant_b=tenant_b.id,
        alice=alice.id,
        bob=bob.id,
        carol=carol.id,
        project_a=project_a.id,
        project_b=project_b.id,
        membership_bob=membership_bob.id,
    )


@pytest.fixture
async def client(engine):
    """Async HTTP client against the FastAPI app (ASGI), lifespan running on the test database."""
    from app.infrastructure.persistence import database
    from app.main import create_app

    database.engine = engine
    database.AsyncSessionLocal = create_session_factory(engine)
    app = create_app()
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    database.engine = None
    database.AsyncSessionLocal = None
