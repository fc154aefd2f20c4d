"""
Device registry: one row per push endpoint.
"""

import logging
import re
import uuid
from collections.abc import Mapping

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notification_hub.db import upsert_insert
from notification_hub.exceptions import InvalidSubscriptionPayload
from notification_hub.models.base import utcnow
from notification_hub.models.push_device import Platform, PushDevice

logger = logging.getLogger(__name__)

_IOS_RE = re.compile(r"iphone|ipad|ipod", re.IGNORECASE)
_ANDROID_RE = re.compile(r"android", re.IGNORECASE)


def detect_platform(user_agent: str | None) -> Platform:
    """Best-effort platform guess from a User-Agent header."""
    if not user_agent:
        return Platform.WEB
    if _IOS_RE.search(user_agent):
        return Platform.IOS
    if _ANDROID_RE.search(user_agent):
        return Platform.ANDROID
    return Platform.WEB


def validate_subscription(endpoint: str | None, keys: Mapping[str, str] | None) -> tuple[str, str, str]:
    """Return (endpoint, p256dh, auth) or raise InvalidSubscriptionPayload."""
    if not endpoint or not isinstance(endpoint, str):
        raise InvalidSubscriptionPayload("Subscription endpoint is required")
    if not isinstance(keys, Mapping):
        raise InvalidSubscriptionPayload("Subscription keys are required")
    p256dh = keys.get("p256dh")
    auth = keys.get("auth")
    if not p256dh or not auth:
        raise InvalidSubscriptionPayload("Subscription keys must include p256dh and auth")
    return endpoint, p256dh, auth


class DeviceRegistry:
    """Reads and writes push_devices rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert(
        self,
        endpoint: str,
        user_id: str,
        keys: Mapping[str, str],
        user_agent: str | None = None,
        platform: Platform | str | None = None,
    ) -> uuid.UUID:
        """Insert or update by endpoint (unique) and return the device id.

        Ownership, keys and metadata are overwritten, and the device is
        marked live again, so a previously retired endpoint that registers
        again starts receiving deliveries. The conflict is resolved by the
        database in a single statement; concurrent registrations of the
        same endpoint serialize on the unique index.
        """
        endpoint, p256dh, auth = validate_subscription(endpoint, keys)
        if platform is None:
            platform = detect_platform(user_agent)
        platform = Platform(platform)

        now = utcnow()
        stmt = upsert_insert(self.db, PushDevice).values(
            id=uuid.uuid4(),
            user_id=user_id,
            endpoint=endpoint,
            p256dh=p256dh,
            auth=auth,
            user_agent=user_agent,
            platform=platform.value,
            is_active=True,
            created_at=now,
            last_seen_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["endpoint"],
            set_={
                "user_id": stmt.excluded.user_id,
                "p256dh": stmt.excluded.p256dh,
                "auth": stmt.excluded.auth,
                "user_agent": stmt.excluded.user_agent,
                "platform": stmt.excluded.platform,
                "is_active": True,
                "last_seen_at": now,
            },
        ).returning(PushDevice.id)

        result = await self.db.execute(stmt)
        device_id = result.scalar_one()
        logger.debug("Upserted push device %s for user %s", device_id, user_id)
        return device_id

    async def mark_dead(self, device_id: uuid.UUID) -> None:
        """Flip the device to inactive. Safe to repeat."""
        await self.db.execute(
            update(PushDevice)
            .where(PushDevice.id == device_id)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )

    async def get(self, device_id: uuid.UUID) -> PushDevice | None:
        result = await self.db.execute(
            select(PushDevice)
            .where(PushDevice.id == device_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_endpoint_and_user(self, endpoint: str, user_id: str) -> PushDevice | None:
        result = await self.db.execute(
            select(PushDevice)
            .where(
                PushDevice.endpoint == endpoint,
                PushDevice.user_id == user_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> list[PushDevice]:
        result = await self.db.execute(
            select(PushDevice)
            .where(PushDevice.user_id == user_id)
            .order_by(PushDevice.created_at, PushDevice.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
