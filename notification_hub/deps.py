"""
FastAPI dependencies for identity, database, and push transport.
"""

import hmac
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notification_hub.db import get_db, get_session_factory
from notification_hub.services.catalog import ServiceCatalog
from notification_hub.services.hub import NotificationHub
from notification_hub.services.push import PushTransport, get_push_transport
from notification_hub.settings import settings

# Type alias for database dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


async def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """User identity established by the fronting auth layer.

    Sessions are handled upstream; the proxy forwards the authenticated
    user id in X-User-Id.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return x_user_id.strip()


CurrentUserId = Annotated[str, Depends(get_current_user_id)]


async def require_api_key(
    x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """Guard for service-to-service endpoints."""
    expected = settings.internal_api_key
    if not expected or not x_api_key or not hmac.compare_digest(x_api_key, expected):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def get_transport() -> PushTransport:
    """Push transport dependency (raises PushNotConfigured without VAPID keys)."""
    return get_push_transport()


Transport = Annotated[PushTransport, Depends(get_transport)]


def get_hub(db: DBSession, session_factory: SessionFactory) -> NotificationHub:
    return NotificationHub(db, session_factory=session_factory)


Hub = Annotated[NotificationHub, Depends(get_hub)]


async def require_service_access(user_id: str, service_id: str, db: AsyncSession) -> None:
    """Reject users without an active entitlement to the service."""
    if not settings.enforce_service_access:
        return
    if not await ServiceCatalog(db).has_access(user_id, service_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No access to this service",
        )
