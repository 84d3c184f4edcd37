"""Contracts for push subscription storage and delivery."""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass, field
from typing import Any, Protocol


class DeliveryOutcome(enum.Enum):
  """Result of a single delivery attempt against one endpoint."""

  DELIVERED = "delivered"
  PERMANENTLY_INVALID = "permanently_invalid"
  TRANSIENT_FAILURE = "transient_failure"


@dataclass(frozen=True)
class PushSubscriptionEntry:
  """Browser-supplied subscription data ready for storage."""

  user_id: str
  endpoint: str
  p256dh: str
  auth: str


@dataclass(frozen=True)
class PushSubscriptionRecord:
  """A stored subscription row detached from its session."""

  id: int
  user_id: str
  endpoint: str
  p256dh: str
  auth: str
  created_at: datetime.datetime
  is_active: bool


@dataclass(frozen=True)
class NotificationDraft:
  """Content of a broadcast before it is persisted."""

  title: str
  body: str
  icon: str | None = None
  url: str | None = None
  tag: str | None = None
  content_id: int | None = None


@dataclass(frozen=True)
class PushNotificationRecord:
  """A stored notification row detached from its session."""

  id: int
  title: str
  body: str
  icon: str | None
  url: str | None
  tag: str | None
  content_id: int | None
  created_at: datetime.datetime
  sent_at: datetime.datetime | None
  is_sent: bool

  def to_dict(self) -> dict[str, Any]:
    return {
      "id": self.id,
      "title": self.title,
      "body": self.body,
      "icon": self.icon,
      "url": self.url,
      "tag": self.tag,
      "newsId": self.content_id,
      "createdAt": self.created_at.isoformat() if self.created_at else None,
      "sentAt": self.sent_at.isoformat() if self.sent_at else None,
      "isSent": self.is_sent,
    }


@dataclass(frozen=True)
class OperationResult:
  """Success flag plus a human readable message returned across the service boundary."""

  success: bool
  message: str
  data: dict[str, Any] = field(default_factory=dict)


class NotificationError(Exception):
  """Base class for push notification failures."""


class InvalidSubscriptionError(NotificationError):
  """Raised when browser-supplied endpoint or key material is malformed."""


class PushTransport(Protocol):
  """Delivery contract: one encrypted, VAPID-signed POST to one endpoint."""

  def send(self, subscription: PushSubscriptionRecord, payload: bytes) -> DeliveryOutcome:
    """Attempt delivery synchronously and classify the result; never raises for endpoint failures."""
