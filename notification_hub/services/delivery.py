"""
Delivery engine: resolves eligible devices, fans out sends, and retires
endpoints the push service reports as gone.
"""

import asyncio
import logging
import uuid
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notification_hub.exceptions import NoActiveSubscriptions, ReconciliationFailure, SendFailure
from notification_hub.services.device_registry import DeviceRegistry
from notification_hub.services.push import PushPayload, PushTransport
from notification_hub.services.subscription_index import EligibleTarget, SubscriptionIndex
from notification_hub.services.topics import normalize_topics, topic_matches

logger = logging.getLogger(__name__)


@dataclass
class DeliveryOutcome:
    """Result of one send attempt.

    reconciled is None unless the failure was terminal; then it records
    whether the device was retired successfully.
    """

    device_id: uuid.UUID
    endpoint: str
    success: bool
    error: str | None = None
    terminal: bool = False
    status_code: int | None = None
    reconciled: bool | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["device_id"] = str(self.device_id)
        return data


@dataclass
class DeliveryReport:
    outcomes: list[DeliveryOutcome] = field(default_factory=list)
    success: bool = True

    @property
    def delivered_count(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def attempted_count(self) -> int:
        return len(self.outcomes)

    @property
    def failed_count(self) -> int:
        return self.attempted_count - self.delivered_count

    @property
    def retired_count(self) -> int:
        return sum(1 for o in self.outcomes if o.terminal)


class InvalidationReconciler:
    """Retires a device after a terminal send failure.

    Each retirement runs in its own short transaction so it commits
    independently of the request that triggered the delivery.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def retire(self, device_id: uuid.UUID) -> int:
        """Mark the device dead and disable all of its subscriptions.

        Returns the number of subscriptions disabled. Both writes are
        idempotent, so concurrent retirements of the same device are safe.
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await DeviceRegistry(session).mark_dead(device_id)
                    disabled = await SubscriptionIndex(session).disable_all(device_id)
        except Exception as e:
            raise ReconciliationFailure(device_id, e) from e

        logger.info("Retired push device %s (%d subscriptions disabled)", device_id, disabled)
        return disabled


class DeliveryEngine:
    """Sends a payload to every eligible device of a user for one service."""

    def __init__(
        self,
        db: AsyncSession,
        transport: PushTransport,
        reconciler: InvalidationReconciler,
    ):
        self.db = db
        self.transport = transport
        self.reconciler = reconciler

    async def resolve_targets(
        self,
        user_id: str,
        service_id: str,
        topic_filter: Iterable[str] | None = None,
        endpoint: str | None = None,
    ) -> list[EligibleTarget]:
        targets = await SubscriptionIndex(self.db).list_eligible(user_id, service_id)

        if endpoint:
            targets = [t for t in targets if t.endpoint == endpoint]

        wanted = normalize_topics(topic_filter)
        if wanted:
            targets = [t for t in targets if topic_matches(t.topics, wanted)]

        return targets

    async def deliver(
        self,
        user_id: str,
        service_id: str,
        payload: PushPayload,
        topic_filter: Iterable[str] | None = None,
        endpoint: str | None = None,
    ) -> DeliveryReport:
        """Fan out one send per eligible device and collect every outcome.

        Per-endpoint failures end up in the report; only an empty eligible
        set (NoActiveSubscriptions) or a storage error escapes.
        """
        targets = await self.resolve_targets(user_id, service_id, topic_filter, endpoint)
        if not targets:
            logger.warning(
                "No active push subscriptions for user %s on service %s", user_id, service_id
            )
            raise NoActiveSubscriptions(user_id, service_id)

        logger.info(
            "Sending push notification to user %s on %s (%d devices): %s",
            user_id, service_id, len(targets), payload.title,
        )

        outcomes = await asyncio.gather(*(self._attempt(target, payload) for target in targets))
        report = DeliveryReport(outcomes=list(outcomes))

        logger.info(
            "Push delivery for user %s on %s: %d/%d delivered, %d retired",
            user_id, service_id, report.delivered_count, report.attempted_count, report.retired_count,
        )
        return report

    async def _attempt(self, target: EligibleTarget, payload: PushPayload) -> DeliveryOutcome:
        try:
            await self.transport.send(target, payload)
        except SendFailure as e:
            outcome = DeliveryOutcome(
                device_id=target.device_id,
                endpoint=target.endpoint,
                success=False,
                error=str(e),
                terminal=e.terminal,
                status_code=e.status_code,
            )
        except Exception as e:
            # A misbehaving transport must not take sibling attempts down
            logger.exception("Unexpected error sending push to device %s", target.device_id)
            outcome = DeliveryOutcome(
                device_id=target.device_id,
                endpoint=target.endpoint,
                success=False,
                error=str(e),
            )
        else:
            logger.debug("Successfully sent push to device %s", target.device_id)
            return DeliveryOutcome(device_id=target.device_id, endpoint=target.endpoint, success=True)

        if not outcome.terminal:
            logger.warning(
                "Push send failed for device %s (status: %s): %s",
                target.device_id, outcome.status_code or "N/A", outcome.error,
            )
            return outcome

        logger.info("Push endpoint gone for device %s (status: %s)", target.device_id, outcome.status_code)
        try:
            await self.reconciler.retire(target.device_id)
            outcome.reconciled = True
        except ReconciliationFailure:
            logger.exception("Could not retire push device %s", target.device_id)
            outcome.reconciled = False
        return outcome
