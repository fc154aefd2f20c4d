"""Tests for the service catalog and entitlements."""

from sqlalchemy import update

from conftest import SERVICE_A, SERVICE_B
from notification_hub.models import AccessStatus, UserServiceAccess
from notification_hub.services.catalog import ServiceCatalog


async def test_ensure_service_is_idempotent(db, services):
    catalog = ServiceCatalog(db)
    await catalog.ensure_service(SERVICE_A, "Renamed", None)
    await db.commit()

    service = await catalog.get_service(SERVICE_A)
    assert service.name == "AlgoPilotX"


async def test_access_grant_and_revoke(db, services):
    catalog = ServiceCatalog(db)
    assert await catalog.has_access("user-a", SERVICE_A) is False

    await catalog.grant_access("user-a", SERVICE_A)
    await db.commit()
    assert await catalog.has_access("user-a", SERVICE_A) is True
    assert await catalog.has_access("user-a", SERVICE_B) is False

    await db.execute(
        update(UserServiceAccess)
        .where(UserServiceAccess.user_id == "user-a")
        .values(status=AccessStatus.REVOKED.value)
    )
    await db.commit()
    assert await catalog.has_access("user-a", SERVICE_A) is False
    assert await catalog.list_services_for_user("user-a") == []

    await catalog.grant_access("user-a", SERVICE_A)
    await db.commit()
    assert await catalog.has_access("user-a", SERVICE_A) is True
