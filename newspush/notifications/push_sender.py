"""Web Push delivery transports."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from http import HTTPStatus

import requests
from pywebpush import WebPushException, webpush

from newspush.notifications.contracts import DeliveryOutcome, PushSubscriptionRecord, PushTransport

logger = logging.getLogger(__name__)

VAPID_TOKEN_LIFETIME_SECONDS = 12 * 60 * 60
_GONE_STATUSES = {HTTPStatus.NOT_FOUND, HTTPStatus.GONE}


@dataclass(frozen=True)
class VapidConfig:
  """Sender credentials used to sign Web Push requests."""

  public_key: str
  private_key: str
  sub: str


def classify_status(status_code: int | None) -> DeliveryOutcome:
  """Map a push relay HTTP status to a delivery outcome."""
  if status_code is None:
    return DeliveryOutcome.TRANSIENT_FAILURE

  if 200 <= status_code < 300:
    return DeliveryOutcome.DELIVERED

  if status_code in _GONE_STATUSES:
    return DeliveryOutcome.PERMANENTLY_INVALID

  return DeliveryOutcome.TRANSIENT_FAILURE


class WebPushTransport(PushTransport):
  """`pywebpush` backed transport: VAPID signing, aes128gcm encryption, one POST per call."""

  def __init__(self, *, vapid_config: VapidConfig, timeout_seconds: float = 10.0, ttl_seconds: int = 86400) -> None:
    self._vapid_config = vapid_config
    self._timeout_seconds = timeout_seconds
    self._ttl_seconds = ttl_seconds

  def send(self, subscription: PushSubscriptionRecord, payload: bytes) -> DeliveryOutcome:
    subscription_info = {"endpoint": subscription.endpoint, "keys": {"p256dh": subscription.p256dh, "auth": subscription.auth}}
    # pywebpush writes `aud` into the claims dict, so each call needs its own copy.
    claims = {"sub": self._vapid_config.sub, "exp": int(time.time()) + VAPID_TOKEN_LIFETIME_SECONDS}

    try:
      response = webpush(
        subscription_info=subscription_info,
        data=payload,
        vapid_private_key=self._vapid_config.private_key,
        vapid_claims=claims,
        content_encoding="aes128gcm",
        ttl=self._ttl_seconds,
        timeout=self._timeout_seconds,
      )
    except WebPushException as exc:
      status_code = _extract_status_code(exc)
      outcome = classify_status(status_code)
      logger.warning("Push delivery rejected subscription_id=%s status=%s outcome=%s", subscription.id, status_code if status_code is not None else "unknown", outcome.value)
      return outcome
    except requests.RequestException as exc:
      logger.warning("Push delivery network error subscription_id=%s error=%s", subscription.id, exc.__class__.__name__)
      return DeliveryOutcome.TRANSIENT_FAILURE
    except (ValueError, TypeError) as exc:
      # Malformed key material fails during encryption, before any request is made.
      logger.error("Push payload encryption failed subscription_id=%s error=%s", subscription.id, exc)
      return DeliveryOutcome.TRANSIENT_FAILURE

    return classify_status(getattr(response, "status_code", None))


class NullPushTransport(PushTransport):
  """Transport used when push notifications are disabled or unconfigured."""

  def send(self, subscription: PushSubscriptionRecord, payload: bytes) -> DeliveryOutcome:
    logger.debug("Push notifications disabled; dropping push subscription_id=%s", subscription.id)
    return DeliveryOutcome.TRANSIENT_FAILURE


def _extract_status_code(exc: WebPushException) -> int | None:
  """Extract an HTTP status code from a pywebpush exception when available."""
  response = getattr(exc, "response", None)
  if response is None:
    return None

  status = getattr(response, "status_code", None)
  if isinstance(status, int):
    return status

  return None
