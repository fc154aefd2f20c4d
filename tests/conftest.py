import os

# Configure before notification_hub.settings is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.pop("VAPID_PUBLIC_KEY", None)
os.environ.pop("VAPID_PRIVATE_KEY", None)

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from notification_hub.models import Base
from notification_hub.services.catalog import ServiceCatalog
from notification_hub.services.hub import NotificationHub

SERVICE_A = "algopilotx"
SERVICE_B = "strategyfundamentals"


class FakeTransport:
    """Records sends; raises the exception registered for an endpoint."""

    def __init__(self):
        self.failures: dict[str, Exception] = {}
        self.sent: list[tuple[str, object]] = []

    async def send(self, target, payload) -> None:
        self.sent.append((target.endpoint, payload))
        exc = self.failures.get(target.endpoint)
        if exc is not None:
            raise exc


def subscription_keys(suffix: str = "") -> dict:
    return {"p256dh": f"BPublicKey{suffix}", "auth": f"authSecret{suffix}"}


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'hub.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def services(db):
    catalog = ServiceCatalog(db)
    await catalog.ensure_service(SERVICE_A, "AlgoPilotX", "algopilotx.com")
    await catalog.ensure_service(SERVICE_B, "Strategy Fundamentals", "strategyfundamentals.com")
    await db.commit()
    return [SERVICE_A, SERVICE_B]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def hub(db, session_factory, transport) -> NotificationHub:
    return NotificationHub(db, session_factory=session_factory, transport=transport)


@pytest.fixture
def register(hub, db, services):
    """Register and commit a device; returns its id."""

    async def _register(user_id, endpoint, service_id=SERVICE_A, topics=None, user_agent=None):
        device = await hub.register_or_update_device(
            user_id=user_id,
            endpoint=endpoint,
            keys=subscription_keys(),
            service_id=service_id,
            topics=topics,
            user_agent=user_agent,
        )
        await db.commit()
        return device.device_id

    return _register
