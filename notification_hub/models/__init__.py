# Models package
from notification_hub.db import Base
from notification_hub.models.push_device import Platform, PushDevice
from notification_hub.models.push_device_service import PushDeviceService
from notification_hub.models.service import AccessRole, AccessStatus, Service, UserServiceAccess

__all__ = [
    "Base",
    "Platform",
    "PushDevice",
    "PushDeviceService",
    "AccessRole",
    "AccessStatus",
    "Service",
    "UserServiceAccess",
]
