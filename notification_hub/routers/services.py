"""
Client configuration and service listings.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from notification_hub.deps import CurrentUserId, DBSession
from notification_hub.services.catalog import ServiceCatalog
from notification_hub.settings import settings

router = APIRouter(prefix="/api", tags=["services"])


@router.get("/config")
async def get_client_config():
    """VAPID public key for PushManager.subscribe()."""
    return JSONResponse({"vapidPublicKey": settings.vapid_public_key or ""})


@router.get("/me/services")
async def list_my_services(user_id: CurrentUserId, db: DBSession):
    """Services the current user may subscribe to."""
    services = await ServiceCatalog(db).list_services_for_user(user_id)
    return JSONResponse({"services": services})
