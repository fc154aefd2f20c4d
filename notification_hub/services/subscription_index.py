"""
Subscription index: (device, service) pairs with topic filters.
"""

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notification_hub.db import upsert_insert
from notification_hub.models.base import utcnow
from notification_hub.models.push_device import PushDevice
from notification_hub.models.push_device_service import PushDeviceService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EligibleTarget:
    """A live device with an enabled subscription to one service."""

    device_id: uuid.UUID
    endpoint: str
    p256dh: str
    auth: str
    topics: frozenset[str] = field(default_factory=frozenset)

    @property
    def subscription_info(self) -> dict:
        """Shape expected by pywebpush."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }


class SubscriptionIndex:
    """Reads and writes push_device_services rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert(self, device_id: uuid.UUID, service_id: str, topics: Iterable[str]) -> None:
        """Enable the subscription, replacing its topic filter.

        Must run in the same transaction as the device upsert that produced
        device_id.
        """
        now = utcnow()
        stmt = upsert_insert(self.db, PushDeviceService).values(
            device_id=device_id,
            service_id=service_id,
            topics=sorted(set(topics)),
            enabled_at=now,
            disabled_at=None,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["device_id", "service_id"],
            set_={
                "topics": stmt.excluded.topics,
                "enabled_at": now,
                "disabled_at": None,
            },
        )
        await self.db.execute(stmt)

    async def disable(self, device_id: uuid.UUID, service_id: str) -> bool:
        """Disable one subscription. Returns whether the row exists."""
        result = await self.db.execute(
            select(PushDeviceService.device_id).where(
                PushDeviceService.device_id == device_id,
                PushDeviceService.service_id == service_id,
            )
        )
        if result.first() is None:
            return False

        # An already-disabled row keeps its original timestamp
        await self.db.execute(
            update(PushDeviceService)
            .where(
                PushDeviceService.device_id == device_id,
                PushDeviceService.service_id == service_id,
                PushDeviceService.disabled_at.is_(None),
            )
            .values(disabled_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return True

    async def disable_all(self, device_id: uuid.UUID) -> int:
        """Disable every enabled subscription of a device, across services."""
        result = await self.db.execute(
            update(PushDeviceService)
            .where(
                PushDeviceService.device_id == device_id,
                PushDeviceService.disabled_at.is_(None),
            )
            .values(disabled_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def get(self, device_id: uuid.UUID, service_id: str) -> PushDeviceService | None:
        result = await self.db.execute(
            select(PushDeviceService)
            .where(
                PushDeviceService.device_id == device_id,
                PushDeviceService.service_id == service_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_device(self, device_id: uuid.UUID) -> list[PushDeviceService]:
        result = await self.db.execute(
            select(PushDeviceService)
            .where(PushDeviceService.device_id == device_id)
            .order_by(PushDeviceService.service_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_eligible(self, user_id: str, service_id: str) -> list[EligibleTarget]:
        """Live devices of the user with an enabled subscription to the service."""
        result = await self.db.execute(
            select(
                PushDevice.id,
                PushDevice.endpoint,
                PushDevice.p256dh,
                PushDevice.auth,
                PushDeviceService.topics,
            )
            .join(PushDeviceService, PushDeviceService.device_id == PushDevice.id)
            .where(
                PushDevice.user_id == user_id,
                PushDevice.is_active.is_(True),
                PushDeviceService.service_id == service_id,
                PushDeviceService.disabled_at.is_(None),
            )
            .order_by(PushDevice.created_at, PushDevice.id)
        )
        return [
            EligibleTarget(
                device_id=row.id,
                endpoint=row.endpoint,
                p256dh=row.p256dh,
                auth=row.auth,
                topics=frozenset(row.topics or ()),
            )
            for row in result.all()
        ]
