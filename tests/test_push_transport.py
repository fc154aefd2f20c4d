"""Tests for the pywebpush transport and its failure classification."""

import json
import uuid
from unittest.mock import MagicMock

import pytest
from pywebpush import WebPushException

from notification_hub.exceptions import PushNotConfigured, TerminalSendFailure, TransientSendFailure
from notification_hub.services import push
from notification_hub.services.push import PushPayload, VapidCredentials, WebPushTransport
from notification_hub.services.subscription_index import EligibleTarget
from notification_hub.settings import settings

TARGET = EligibleTarget(
    device_id=uuid.uuid4(),
    endpoint="https://fcm.googleapis.com/fcm/send/abc",
    p256dh="BPublicKey",
    auth="authSecret",
)
CREDENTIALS = VapidCredentials(public_key="pub", private_key="priv", subject="mailto:ops@example.com")


def web_push_error(status_code):
    response = MagicMock()
    response.status_code = status_code
    return WebPushException(f"Push failed: {status_code}", response=response)


@pytest.fixture
def mock_webpush(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(push, "webpush", mock)
    return mock


@pytest.fixture
def web_push_transport():
    return WebPushTransport(CREDENTIALS, timeout=3.0, ttl=60)


async def test_successful_send(mock_webpush, web_push_transport):
    payload = PushPayload(title="Hi", body="There", urgency="high")

    await web_push_transport.send(TARGET, payload)

    kwargs = mock_webpush.call_args.kwargs
    assert kwargs["subscription_info"] == TARGET.subscription_info
    assert json.loads(kwargs["data"]) == {
        "title": "Hi", "body": "There", "url": "/", "tag": "notification", "urgency": "high",
    }
    assert kwargs["vapid_private_key"] == "priv"
    assert kwargs["vapid_claims"] == {"sub": "mailto:ops@example.com"}
    assert kwargs["headers"] == {"Urgency": "high"}
    assert kwargs["ttl"] == 60
    assert kwargs["timeout"] == 3.0


@pytest.mark.parametrize("status_code", [404, 410])
async def test_gone_is_terminal(mock_webpush, web_push_transport, status_code):
    mock_webpush.side_effect = web_push_error(status_code)

    with pytest.raises(TerminalSendFailure) as exc_info:
        await web_push_transport.send(TARGET, PushPayload(title="t", body="b"))
    assert exc_info.value.status_code == status_code
    assert exc_info.value.terminal is True


@pytest.mark.parametrize("status_code", [400, 403, 413, 429, 500, 503])
async def test_other_statuses_are_transient(mock_webpush, web_push_transport, status_code):
    mock_webpush.side_effect = web_push_error(status_code)

    with pytest.raises(TransientSendFailure) as exc_info:
        await web_push_transport.send(TARGET, PushPayload(title="t", body="b"))
    assert exc_info.value.status_code == status_code


async def test_error_without_response_is_transient(mock_webpush, web_push_transport):
    mock_webpush.side_effect = WebPushException("connection reset")

    with pytest.raises(TransientSendFailure) as exc_info:
        await web_push_transport.send(TARGET, PushPayload(title="t", body="b"))
    assert exc_info.value.status_code is None


async def test_crypto_error_is_transient(mock_webpush, web_push_transport):
    mock_webpush.side_effect = ValueError("Could not deserialize key data")

    with pytest.raises(TransientSendFailure):
        await web_push_transport.send(TARGET, PushPayload(title="t", body="b"))


def test_unknown_urgency_falls_back_to_normal():
    assert PushPayload(title="t", body="b", urgency="urgent").urgency == "normal"


def test_credentials_require_vapid_keys(monkeypatch):
    monkeypatch.setattr(settings, "vapid_public_key", None)
    monkeypatch.setattr(settings, "vapid_private_key", None)
    push.get_vapid_credentials.cache_clear()

    with pytest.raises(PushNotConfigured):
        push.get_vapid_credentials()


def test_credentials_built_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "vapid_public_key", "pub")
    monkeypatch.setattr(settings, "vapid_private_key", "priv")
    monkeypatch.setattr(settings, "vapid_subject", None)
    monkeypatch.setattr(settings, "vapid_contact_email", "ops@example.com")
    push.get_vapid_credentials.cache_clear()

    try:
        credentials = push.get_vapid_credentials()
        assert credentials.claims == {"sub": "mailto:ops@example.com"}
        assert push.get_vapid_credentials() is credentials
    finally:
        push.get_vapid_credentials.cache_clear()
