"""
Request bodies for the push API.
"""

from typing import Any

from pydantic import BaseModel, Field


class SubscribeRequest(BaseModel):
    service_id: str | None = None
    # Raw PushSubscription.toJSON() from the browser; validated by the registry
    subscription: dict[str, Any] | None = None
    topics: list[Any] | None = None


class UnsubscribeRequest(BaseModel):
    service_id: str | None = None
    endpoint: str | None = None


class SendTestRequest(BaseModel):
    service_id: str | None = None
    endpoint: str | None = None


class InternalSendRequest(BaseModel):
    service_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    body: str = Field(min_length=1)
    url: str | None = None
    tag: str | None = None
    urgency: str | None = None
    topics: list[Any] | None = None
