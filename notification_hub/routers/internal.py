"""
Service-to-service send endpoint.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from notification_hub.deps import DBSession, SessionFactory, Transport, require_api_key
from notification_hub.schemas import InternalSendRequest
from notification_hub.services.hub import NotificationHub
from notification_hub.services.push import PushPayload

router = APIRouter(
    prefix="/api/internal",
    tags=["internal"],
    dependencies=[Depends(require_api_key)],
)


@router.post("/push/send")
async def send_push(
    body: InternalSendRequest,
    db: DBSession,
    session_factory: SessionFactory,
    transport: Transport,
):
    """Deliver a notification from a service to one of its users."""
    payload = PushPayload(
        title=body.title,
        body=body.body,
        url=body.url or "/",
        tag=body.tag or "notification",
        urgency=body.urgency or "normal",
    )

    hub = NotificationHub(db, session_factory=session_factory, transport=transport)
    report = await hub.deliver(
        body.user_id,
        body.service_id,
        payload,
        topic_filter=body.topics,
    )

    return JSONResponse({
        "success": report.success,
        "delivered": report.delivered_count,
        "attempted": report.attempted_count,
        "results": [outcome.to_dict() for outcome in report.outcomes],
    })
