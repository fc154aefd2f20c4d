"""
Push transport using web-push.
"""

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Protocol

from pywebpush import WebPushException, webpush

from notification_hub.exceptions import PushNotConfigured, TerminalSendFailure, TransientSendFailure
from notification_hub.services.subscription_index import EligibleTarget
from notification_hub.settings import settings

logger = logging.getLogger(__name__)

# Push services answer 404/410 once a subscription has expired or been revoked
GONE_STATUS_CODES = (404, 410)

URGENCY_LEVELS = ("very-low", "low", "normal", "high")


@dataclass(frozen=True)
class PushPayload:
    """Notification content sent to the service worker."""

    title: str
    body: str
    url: str = "/"
    tag: str = "notification"
    urgency: str = "normal"

    def __post_init__(self):
        if self.urgency not in URGENCY_LEVELS:
            object.__setattr__(self, "urgency", "normal")

    def to_json(self) -> str:
        return json.dumps(asdict(self))


@dataclass(frozen=True)
class VapidCredentials:
    """Process-wide VAPID key pair and claims subject."""

    public_key: str
    private_key: str
    subject: str

    @property
    def claims(self) -> dict:
        return {"sub": self.subject}


@lru_cache
def get_vapid_credentials() -> VapidCredentials:
    """Build the VAPID credentials once per process."""
    if not settings.push_enabled:
        raise PushNotConfigured("Push notifications not configured")
    logger.info("Push notifications enabled - VAPID keys configured")
    return VapidCredentials(
        public_key=settings.vapid_public_key,
        private_key=settings.vapid_private_key,
        subject=settings.vapid_claims_subject,
    )


class PushTransport(Protocol):
    """Sends one payload to one endpoint.

    Implementations raise TerminalSendFailure when the endpoint is gone and
    TransientSendFailure for every other failure.
    """

    async def send(self, target: EligibleTarget, payload: PushPayload) -> None:
        ...


def _status_code(exc: WebPushException) -> int | None:
    response = getattr(exc, "response", None)
    if response is None:
        return None
    return getattr(response, "status_code", None)


class WebPushTransport:
    """Encrypts and posts payloads with pywebpush.

    pywebpush is blocking, so each attempt runs in a worker thread with its
    own request timeout; a hung endpoint only holds up its own attempt.
    """

    def __init__(
        self,
        credentials: VapidCredentials,
        timeout: float = 10.0,
        ttl: int = 86400,
    ):
        self.credentials = credentials
        self.timeout = timeout
        self.ttl = ttl

    def _send_sync(self, target: EligibleTarget, payload: PushPayload) -> None:
        webpush(
            subscription_info=target.subscription_info,
            data=payload.to_json(),
            vapid_private_key=self.credentials.private_key,
            vapid_claims=dict(self.credentials.claims),
            ttl=self.ttl,
            headers={"Urgency": payload.urgency},
            timeout=self.timeout,
        )

    async def send(self, target: EligibleTarget, payload: PushPayload) -> None:
        try:
            await asyncio.to_thread(self._send_sync, target, payload)
        except WebPushException as e:
            status_code = _status_code(e)
            if status_code in GONE_STATUS_CODES:
                raise TerminalSendFailure(str(e), status_code=status_code) from e
            raise TransientSendFailure(str(e), status_code=status_code) from e
        except Exception as e:
            # Crypto/key and network errors that aren't WebPushException
            logger.error(
                "Push send error for device %s (p256dh length %d, auth length %d): %s",
                target.device_id, len(target.p256dh), len(target.auth), e,
            )
            raise TransientSendFailure(str(e)) from e


@lru_cache
def get_push_transport() -> PushTransport:
    """Dependency returning the process-wide transport."""
    return WebPushTransport(
        credentials=get_vapid_credentials(),
        timeout=settings.push_timeout_seconds,
        ttl=settings.push_ttl_seconds,
    )
