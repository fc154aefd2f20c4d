"""
Service catalog and per-user entitlements.
"""

import logging

from sqlalchemy import select

from notification_hub.db import upsert_insert
from notification_hub.models.base import utcnow
from notification_hub.models.service import AccessRole, AccessStatus, Service, UserServiceAccess
from notification_hub.services.topics import TOPICS

logger = logging.getLogger(__name__)


class ServiceCatalog:
    """Lookups over services and user_service_access."""

    def __init__(self, db):
        self.db = db

    async def get_service(self, service_id: str) -> Service | None:
        result = await self.db.execute(select(Service).where(Service.id == service_id))
        return result.scalar_one_or_none()

    async def ensure_service(self, service_id: str, name: str, domain_hint: str | None = None) -> None:
        """Insert the service if it does not exist yet."""
        stmt = upsert_insert(self.db, Service).values(
            id=service_id,
            name=name,
            domain_hint=domain_hint,
            created_at=utcnow(),
            updated_at=utcnow(),
        )
        await self.db.execute(stmt.on_conflict_do_nothing(index_elements=["id"]))

    async def has_access(self, user_id: str, service_id: str) -> bool:
        result = await self.db.execute(
            select(UserServiceAccess.user_id).where(
                UserServiceAccess.user_id == user_id,
                UserServiceAccess.service_id == service_id,
                UserServiceAccess.status == AccessStatus.ACTIVE.value,
            )
        )
        return result.first() is not None

    async def grant_access(
        self,
        user_id: str,
        service_id: str,
        role: AccessRole = AccessRole.MEMBER,
    ) -> None:
        """Grant (or re-activate) a user's access to a service."""
        now = utcnow()
        stmt = upsert_insert(self.db, UserServiceAccess).values(
            user_id=user_id,
            service_id=service_id,
            status=AccessStatus.ACTIVE.value,
            role=AccessRole(role).value,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "service_id"],
            set_={"status": AccessStatus.ACTIVE.value, "updated_at": now},
        )
        await self.db.execute(stmt)
        logger.info("Granted %s access to %s", user_id, service_id)

    async def list_services_for_user(self, user_id: str) -> list[dict]:
        """Services the user is actively entitled to, with the topic catalog."""
        result = await self.db.execute(
            select(Service)
            .join(UserServiceAccess, UserServiceAccess.service_id == Service.id)
            .where(
                UserServiceAccess.user_id == user_id,
                UserServiceAccess.status == AccessStatus.ACTIVE.value,
            )
            .order_by(Service.name)
        )
        return [
            {
                "id": service.id,
                "name": service.name,
                "domain_hint": service.domain_hint,
                "topics": list(TOPICS),
            }
            for service in result.scalars().all()
        ]
