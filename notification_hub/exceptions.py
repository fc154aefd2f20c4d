"""
Error taxonomy for registration and delivery.
"""


class NotificationHubError(Exception):
    """Base class for hub errors."""


class InvalidSubscriptionPayload(NotificationHubError):
    """Registration input is missing the endpoint or a required key."""


class NoActiveSubscriptions(NotificationHubError):
    """Delivery resolved to an empty eligible set."""

    def __init__(self, user_id: str, service_id: str):
        self.user_id = user_id
        self.service_id = service_id
        super().__init__("No active subscriptions found")


class PushNotConfigured(NotificationHubError):
    """VAPID credentials are missing, so nothing can be sent."""


class SendFailure(NotificationHubError):
    """A single endpoint rejected or failed a send attempt."""

    terminal = False

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class TransientSendFailure(SendFailure):
    """Send failed but the endpoint may still accept later deliveries."""


class TerminalSendFailure(SendFailure):
    """The push service reported the endpoint as gone (404/410)."""

    terminal = True


class ReconciliationFailure(NotificationHubError):
    """Retiring a dead device could not be written."""

    def __init__(self, device_id, cause: Exception):
        self.device_id = device_id
        self.cause = cause
        super().__init__(f"Failed to retire device {device_id}: {cause}")
