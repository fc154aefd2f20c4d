"""
Entry points used by the HTTP layer: registration, unsubscribe and delivery.
"""

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from urllib.parse import urlparse

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notification_hub.db import async_session_maker
from notification_hub.models.push_device import Platform
from notification_hub.services.delivery import DeliveryEngine, DeliveryReport, InvalidationReconciler
from notification_hub.services.device_registry import DeviceRegistry, validate_subscription
from notification_hub.services.push import PushPayload, PushTransport, get_push_transport
from notification_hub.services.subscription_index import SubscriptionIndex
from notification_hub.services.topics import normalize_topics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredDevice:
    device_id: uuid.UUID


class NotificationHub:
    """Registry and delivery operations bound to one database session.

    Writes are left uncommitted; the caller owns the transaction, which
    keeps a device upsert and its subscription upsert in one atomic unit.
    """

    def __init__(
        self,
        db: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        transport: PushTransport | None = None,
    ):
        self.db = db
        self.session_factory = session_factory or async_session_maker
        self.transport = transport
        self.devices = DeviceRegistry(db)
        self.subscriptions = SubscriptionIndex(db)

    async def register_or_update_device(
        self,
        user_id: str,
        endpoint: str,
        keys: Mapping[str, str],
        service_id: str,
        topics: Iterable[str] | None = None,
        user_agent: str | None = None,
        platform: Platform | str | None = None,
    ) -> RegisteredDevice:
        """Register an endpoint for a user and enable it for a service.

        Registering an endpoint owned by another user moves the device to
        this user together with its existing service subscriptions.
        """
        # Reject malformed input before touching the database
        validate_subscription(endpoint, keys)
        normalized = normalize_topics(topics)

        device_id = await self.devices.upsert(
            endpoint=endpoint,
            user_id=user_id,
            keys=keys,
            user_agent=user_agent,
            platform=platform,
        )
        await self.subscriptions.upsert(device_id, service_id, normalized)
        logger.info(
            "Registered push device %s for user %s on %s (topics: %s)",
            device_id, user_id, service_id, sorted(normalized) or "all",
        )
        return RegisteredDevice(device_id=device_id)

    async def disable_subscription(self, user_id: str, service_id: str, endpoint: str) -> bool:
        """Disable the user's endpoint for one service.

        Returns False when the endpoint is not owned by the user or has no
        subscription to the service.
        """
        device = await self.devices.find_by_endpoint_and_user(endpoint, user_id)
        if device is None:
            return False
        found = await self.subscriptions.disable(device.id, service_id)
        if found:
            logger.info("Disabled push device %s for %s", device.id, service_id)
        return found

    async def deliver(
        self,
        user_id: str,
        service_id: str,
        payload: PushPayload,
        topic_filter: Iterable[str] | None = None,
        endpoint: str | None = None,
    ) -> DeliveryReport:
        transport = self.transport or get_push_transport()
        engine = DeliveryEngine(
            db=self.db,
            transport=transport,
            reconciler=InvalidationReconciler(self.session_factory),
        )
        return await engine.deliver(
            user_id,
            service_id,
            payload,
            topic_filter=topic_filter,
            endpoint=endpoint,
        )

    async def device_status(self, user_id: str) -> list[dict]:
        """Devices of a user with their per-service subscription state."""
        status = []
        for device in await self.devices.list_for_user(user_id):
            subscriptions = await self.subscriptions.list_for_device(device.id)
            status.append({
                "id": str(device.id),
                "endpoint_domain": urlparse(device.endpoint).netloc or "unknown",
                "platform": device.platform,
                "user_agent": device.user_agent[:50] if device.user_agent else None,
                "is_active": device.is_active,
                "last_seen_at": device.last_seen_at.isoformat() if device.last_seen_at else None,
                "services": [
                    {
                        "service_id": sub.service_id,
                        "topics": list(sub.topics or []),
                        "enabled": sub.is_enabled,
                        "enabled_at": sub.enabled_at.isoformat() if sub.enabled_at else None,
                        "disabled_at": sub.disabled_at.isoformat() if sub.disabled_at else None,
                    }
                    for sub in subscriptions
                ],
            })
        return status
