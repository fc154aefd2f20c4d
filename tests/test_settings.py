"""Tests for settings parsing."""

import pytest

from notification_hub.settings import DEFAULT_DATABASE_URL, Settings


@pytest.mark.parametrize("raw,expected", [
    ("postgres://u:p@db.example.com:5432/hub", "postgresql+asyncpg://u:p@db.example.com:5432/hub"),
    ("postgresql://u:p@localhost/hub", "postgresql+asyncpg://u:p@localhost/hub"),
    ("postgresql+asyncpg://u:p@localhost/hub", "postgresql+asyncpg://u:p@localhost/hub"),
    ("postgres://u:p@host/hub?sslmode=require", "postgresql+asyncpg://u:p@host/hub"),
    ("sqlite:///./hub.db", "sqlite+aiosqlite:///./hub.db"),
    ("${DATABASE_URL}", DEFAULT_DATABASE_URL),
    ("", DEFAULT_DATABASE_URL),
])
def test_database_url_normalization(monkeypatch, raw, expected):
    monkeypatch.setenv("DATABASE_URL", raw)
    assert Settings(_env_file=None).database_url == expected


def test_vapid_subject(monkeypatch):
    monkeypatch.delenv("VAPID_SUBJECT", raising=False)
    monkeypatch.setenv("VAPID_CONTACT_EMAIL", "ops@example.com")
    assert Settings(_env_file=None).vapid_claims_subject == "mailto:ops@example.com"

    monkeypatch.setenv("VAPID_SUBJECT", "https://hub.example.com")
    assert Settings(_env_file=None).vapid_claims_subject == "https://hub.example.com"


def test_push_enabled_requires_both_keys(monkeypatch):
    monkeypatch.setenv("VAPID_PUBLIC_KEY", "pub")
    monkeypatch.delenv("VAPID_PRIVATE_KEY", raising=False)
    assert Settings(_env_file=None).push_enabled is False
