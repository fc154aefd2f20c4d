"""
Push notifications router for device registration and test sends.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse

from notification_hub.deps import CurrentUserId, DBSession, Hub, SessionFactory, Transport, require_service_access
from notification_hub.schemas import SendTestRequest, SubscribeRequest, UnsubscribeRequest
from notification_hub.services.hub import NotificationHub
from notification_hub.services.push import PushPayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/push", tags=["push"])

TEST_PAYLOAD = PushPayload(
    title="Notification Hub Test",
    body="Push notifications are working ✅",
    url="/done",
    tag="test",
)


@router.post("/subscribe")
async def subscribe(
    request: Request,
    body: SubscribeRequest,
    user_id: CurrentUserId,
    db: DBSession,
    hub: Hub,
):
    """Register this browser's endpoint and enable it for a service."""
    logger.info("Push subscription request from user %s", user_id)
    if not body.service_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="service_id is required",
        )
    await require_service_access(user_id, body.service_id, db)

    subscription = body.subscription or {}
    device = await hub.register_or_update_device(
        user_id=user_id,
        endpoint=subscription.get("endpoint"),
        keys=subscription.get("keys"),
        service_id=body.service_id,
        topics=body.topics,
        user_agent=request.headers.get("User-Agent", ""),
    )
    await db.commit()

    return JSONResponse({"success": True, "device_id": str(device.device_id)})


@router.post("/unsubscribe")
async def unsubscribe(
    body: UnsubscribeRequest,
    user_id: CurrentUserId,
    db: DBSession,
    hub: Hub,
):
    """Stop notifications from one service on this endpoint."""
    if not body.service_id or not body.endpoint:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="service_id and endpoint are required",
        )

    found = await hub.disable_subscription(user_id, body.service_id, body.endpoint)
    if not found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Device not found",
        )
    await db.commit()

    return JSONResponse({"success": True})


@router.post("/test")
async def send_test_notification(
    body: SendTestRequest,
    user_id: CurrentUserId,
    db: DBSession,
    session_factory: SessionFactory,
    transport: Transport,
):
    """Send a test push notification to the current user's devices."""
    if not body.service_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="service_id is required",
        )
    await require_service_access(user_id, body.service_id, db)

    hub = NotificationHub(db, session_factory=session_factory, transport=transport)
    report = await hub.deliver(
        user_id,
        body.service_id,
        TEST_PAYLOAD,
        endpoint=body.endpoint,
    )

    return JSONResponse({
        "success": report.success,
        "delivered": report.delivered_count,
        "results": [outcome.to_dict() for outcome in report.outcomes],
    })


@router.get("/status")
async def get_push_status(
    user_id: CurrentUserId,
    hub: Hub,
):
    """Get push device status for debugging."""
    devices = await hub.device_status(user_id)
    return JSONResponse({
        "device_count": len(devices),
        "devices": devices,
    })
