"""
Push device model: one browser/OS Web Push endpoint.
"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from notification_hub.db import Base
from notification_hub.models.base import utcnow


class Platform(str, Enum):
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"


class PushDevice(Base):
    """A push endpoint owned by exactly one user.

    The endpoint URL is the natural key; re-registering it under another
    user moves ownership instead of creating a second row. Devices are never
    deleted here, only flipped to inactive when the push service reports the
    endpoint gone.
    """

    __tablename__ = "push_devices"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Push subscription data
    endpoint: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    p256dh: Mapped[str] = mapped_column(String(255), nullable=False)  # Public key
    auth: Mapped[str] = mapped_column(String(255), nullable=False)  # Auth secret

    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    platform: Mapped[Platform] = mapped_column(String(20), default=Platform.WEB, nullable=False)

    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    last_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<PushDevice {self.id} user={self.user_id} active={self.is_active}>"
