from __future__ import annotations

import datetime
import json

import pytest
import requests

from newspush.notifications.contracts import DeliveryOutcome, PushSubscriptionRecord
from newspush.notifications.push_sender import NullPushTransport, VapidConfig, WebPushTransport, classify_status


class _FakeResponse:
  def __init__(self, status_code: int) -> None:
    self.status_code = status_code


class _FakeWebPushError(Exception):
  def __init__(self, status_code: int | None) -> None:
    super().__init__(f"status={status_code}")
    self.response = _FakeResponse(status_code) if status_code is not None else None


def _subscription() -> PushSubscriptionRecord:
  return PushSubscriptionRecord(
    id=7,
    user_id="user-1",
    endpoint="https://fcm.googleapis.com/fcm/send/abc",
    p256dh="BEl6f5Y8X5Y_u7d8mV_AbpZfXfTLT3s1O3L4wM1x8QY2_5qWQ-jxJq7uKjv8mQ4I",
    auth="gq8Yh5xA9l2mQ6pR",
    created_at=datetime.datetime(2026, 1, 1, tzinfo=datetime.UTC),
    is_active=True,
  )


def _transport() -> WebPushTransport:
  return WebPushTransport(vapid_config=VapidConfig(public_key="pub", private_key="priv", sub="mailto:test@example.com"), timeout_seconds=3.0, ttl_seconds=60)


@pytest.mark.parametrize(
  ("status_code", "expected"),
  [
    (200, DeliveryOutcome.DELIVERED),
    (201, DeliveryOutcome.DELIVERED),
    (404, DeliveryOutcome.PERMANENTLY_INVALID),
    (410, DeliveryOutcome.PERMANENTLY_INVALID),
    (400, DeliveryOutcome.TRANSIENT_FAILURE),
    (413, DeliveryOutcome.TRANSIENT_FAILURE),
    (429, DeliveryOutcome.TRANSIENT_FAILURE),
    (500, DeliveryOutcome.TRANSIENT_FAILURE),
    (None, DeliveryOutcome.TRANSIENT_FAILURE),
  ],
)
def test_classify_status(status_code, expected):
  assert classify_status(status_code) is expected


@pytest.mark.parametrize(("status_code", "expected"), [(404, DeliveryOutcome.PERMANENTLY_INVALID), (410, DeliveryOutcome.PERMANENTLY_INVALID), (503, DeliveryOutcome.TRANSIENT_FAILURE)])
def test_web_push_transport_classifies_rejections(monkeypatch, status_code, expected):
  monkeypatch.setattr("newspush.notifications.push_sender.WebPushException", _FakeWebPushError)

  def _raise(**kwargs):
    raise _FakeWebPushError(status_code)

  monkeypatch.setattr("newspush.notifications.push_sender.webpush", _raise)

  assert _transport().send(_subscription(), b"{}") is expected


def test_web_push_transport_rejection_without_response_is_transient(monkeypatch):
  monkeypatch.setattr("newspush.notifications.push_sender.WebPushException", _FakeWebPushError)

  def _raise(**kwargs):
    raise _FakeWebPushError(None)

  monkeypatch.setattr("newspush.notifications.push_sender.webpush", _raise)

  assert _transport().send(_subscription(), b"{}") is DeliveryOutcome.TRANSIENT_FAILURE


def test_web_push_transport_network_error_is_transient(monkeypatch):
  def _timeout(**kwargs):
    raise requests.Timeout("read timed out")

  monkeypatch.setattr("newspush.notifications.push_sender.webpush", _timeout)

  assert _transport().send(_subscription(), b"{}") is DeliveryOutcome.TRANSIENT_FAILURE


def test_web_push_transport_bad_key_material_is_transient(monkeypatch):
  def _bad_key(**kwargs):
    raise ValueError("Could not deserialize key data")

  monkeypatch.setattr("newspush.notifications.push_sender.webpush", _bad_key)

  assert _transport().send(_subscription(), b"{}") is DeliveryOutcome.TRANSIENT_FAILURE


def test_web_push_transport_success_sends_expected_request(monkeypatch):
  calls = []

  def _capture(**kwargs):
    calls.append(kwargs)
    return _FakeResponse(201)

  monkeypatch.setattr("newspush.notifications.push_sender.webpush", _capture)
  monkeypatch.setattr("newspush.notifications.push_sender.time.time", lambda: 1_000)

  payload = json.dumps({"title": "t", "body": "b"}).encode("utf-8")
  transport = _transport()
  assert transport.send(_subscription(), payload) is DeliveryOutcome.DELIVERED
  assert transport.send(_subscription(), payload) is DeliveryOutcome.DELIVERED

  first = calls[0]
  assert first["subscription_info"] == {"endpoint": "https://fcm.googleapis.com/fcm/send/abc", "keys": {"p256dh": _subscription().p256dh, "auth": "gq8Yh5xA9l2mQ6pR"}}
  assert first["data"] == payload
  assert first["vapid_private_key"] == "priv"
  assert first["vapid_claims"] == {"sub": "mailto:test@example.com", "exp": 1_000 + 12 * 60 * 60}
  assert first["content_encoding"] == "aes128gcm"
  assert first["ttl"] == 60
  assert first["timeout"] == 3.0
  # Claims are rebuilt per call because pywebpush writes the audience into them.
  assert calls[0]["vapid_claims"] is not calls[1]["vapid_claims"]


def test_null_transport_never_delivers():
  assert NullPushTransport().send(_subscription(), b"{}") is DeliveryOutcome.TRANSIENT_FAILURE
