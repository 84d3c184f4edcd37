from __future__ import annotations

import pytest

from newspush.config import _parse_bool, _parse_origins, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache(monkeypatch):
  for name in ("NEWSPUSH_PUSH_NOTIFICATIONS_ENABLED", "NEWSPUSH_PUSH_VAPID_PUBLIC_KEY", "NEWSPUSH_PUSH_VAPID_PRIVATE_KEY", "NEWSPUSH_PUSH_VAPID_SUB", "NEWSPUSH_PUSH_MAX_CONCURRENCY", "NEWSPUSH_ALLOWED_ORIGINS"):
    monkeypatch.delenv(name, raising=False)
  get_settings.cache_clear()
  yield
  get_settings.cache_clear()


def test_defaults():
  settings = get_settings()

  assert settings.push_notifications_enabled is False
  assert settings.push_max_concurrency == 32
  assert settings.push_timeout_seconds == 10.0
  assert settings.push_default_icon == "/icon-192x192.png"
  assert settings.push_default_badge == "/badge-72x72.png"
  assert settings.allowed_origins == ("http://localhost:3000",)


def test_push_enabled_requires_vapid_keys(monkeypatch):
  monkeypatch.setenv("NEWSPUSH_PUSH_NOTIFICATIONS_ENABLED", "true")

  with pytest.raises(ValueError, match="PUBLIC_KEY"):
    get_settings()


def test_push_enabled_requires_contact_claim_scheme(monkeypatch):
  monkeypatch.setenv("NEWSPUSH_PUSH_NOTIFICATIONS_ENABLED", "1")
  monkeypatch.setenv("NEWSPUSH_PUSH_VAPID_PUBLIC_KEY", "pub")
  monkeypatch.setenv("NEWSPUSH_PUSH_VAPID_PRIVATE_KEY", "priv")
  monkeypatch.setenv("NEWSPUSH_PUSH_VAPID_SUB", "admin@example.com")

  with pytest.raises(ValueError, match="mailto"):
    get_settings()


def test_max_concurrency_must_be_positive(monkeypatch):
  monkeypatch.setenv("NEWSPUSH_PUSH_MAX_CONCURRENCY", "0")

  with pytest.raises(ValueError):
    get_settings()


def test_parse_origins_rejects_wildcard():
  with pytest.raises(ValueError):
    _parse_origins("https://a.example, *")

  assert _parse_origins("https://a.example, https://b.example") == ("https://a.example", "https://b.example")


@pytest.mark.parametrize(("raw", "expected"), [("1", True), ("Yes", True), (" on ", True), ("0", False), ("", False), (None, False)])
def test_parse_bool(raw, expected):
  assert _parse_bool(raw) is expected
