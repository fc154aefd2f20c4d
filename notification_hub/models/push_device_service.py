"""
Per-service subscription of a push device.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from notification_hub.db import Base
from notification_hub.models.base import utcnow


class PushDeviceService(Base):
    """Links a device to a service with a topic filter.

    An empty topic list means the device receives every topic of the service.
    Disabling only stamps disabled_at; the device row stays untouched so the
    same endpoint can remain active for other services.
    """

    __tablename__ = "push_device_services"

    device_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("push_devices.id", ondelete="CASCADE"), primary_key=True
    )
    service_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("services.id", ondelete="CASCADE"), primary_key=True
    )
    topics: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), default=list, nullable=False
    )
    enabled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    disabled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_enabled(self) -> bool:
        return self.disabled_at is None

    def __repr__(self) -> str:
        return f"<PushDeviceService device={self.device_id} service={self.service_id}>"
