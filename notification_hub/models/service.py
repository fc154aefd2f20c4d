"""
Tenant services and per-user entitlements.
"""

from enum import Enum

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from notification_hub.db import Base
from notification_hub.models.base import TimestampMixin


class AccessStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"


class AccessRole(str, Enum):
    MEMBER = "member"
    ADMIN = "admin"


class Service(Base, TimestampMixin):
    """A tenant that sends notifications through the hub."""

    __tablename__ = "services"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # e.g. "algopilotx"
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    domain_hint: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Service {self.id}>"


class UserServiceAccess(Base, TimestampMixin):
    """Entitlement of a user to receive notifications from a service."""

    __tablename__ = "user_service_access"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    service_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("services.id", ondelete="CASCADE"), primary_key=True
    )
    status: Mapped[AccessStatus] = mapped_column(String(20), default=AccessStatus.ACTIVE, nullable=False)
    role: Mapped[AccessRole] = mapped_column(String(20), default=AccessRole.MEMBER, nullable=False)

    def __repr__(self) -> str:
        return f"<UserServiceAccess user={self.user_id} service={self.service_id} status={self.status}>"
