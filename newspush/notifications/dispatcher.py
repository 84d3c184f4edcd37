"""Fan-out of one notification across every targeted push subscription."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from starlette.concurrency import run_in_threadpool

from newspush.notifications.contracts import DeliveryOutcome, NotificationDraft, PushSubscriptionRecord, PushTransport
from newspush.notifications.notification_repo import PushNotificationRepository
from newspush.notifications.subscription_repo import PushSubscriptionRepository

logger = logging.getLogger(__name__)

AttemptResult = tuple[int, DeliveryOutcome]


@dataclass(frozen=True)
class PayloadDefaults:
  """Values used when a notification leaves icon, badge or url unset."""

  icon: str = "/icon-192x192.png"
  badge: str = "/badge-72x72.png"
  url: str = "/"


@dataclass(frozen=True)
class DispatchReport:
  """Aggregated outcome of one send across its audience."""

  audience: int
  delivered: int
  invalid: int
  transient: int
  notification_id: int | None = None

  @property
  def success(self) -> bool:
    """True when something was delivered; an empty broadcast also counts as success."""
    return self.delivered > 0 or (self.audience == 0 and self.notification_id is not None)

  @classmethod
  def from_results(cls, *, audience: int, results: Sequence[AttemptResult], notification_id: int | None) -> DispatchReport:
    counts = {outcome: 0 for outcome in DeliveryOutcome}
    for _, outcome in results:
      counts[outcome] += 1
    return cls(
      audience=audience,
      delivered=counts[DeliveryOutcome.DELIVERED],
      invalid=counts[DeliveryOutcome.PERMANENTLY_INVALID],
      transient=counts[DeliveryOutcome.TRANSIENT_FAILURE],
      notification_id=notification_id,
    )


class PushDispatcher:
  """Stateless coordinator over the subscription store, the history store and a transport."""

  def __init__(
    self, *, subscription_repo: PushSubscriptionRepository, notification_repo: PushNotificationRepository, transport: PushTransport, max_concurrency: int = 32, payload_defaults: PayloadDefaults | None = None
  ) -> None:
    if max_concurrency < 1:
      raise ValueError("max_concurrency must be >= 1")
    self._subscription_repo = subscription_repo
    self._notification_repo = notification_repo
    self._transport = transport
    self._max_concurrency = max_concurrency
    self._defaults = payload_defaults or PayloadDefaults()

  async def broadcast(self, *, title: str, body: str, icon: str | None = None, url: str | None = None, content_id: int | None = None) -> bool:
    report = await self.dispatch_broadcast(title=title, body=body, icon=icon, url=url, content_id=content_id)
    return report.success

  async def send_to_user(self, *, user_id: str, title: str, body: str, icon: str | None = None, url: str | None = None) -> bool:
    report = await self.dispatch_to_user(user_id=user_id, title=title, body=body, icon=icon, url=url)
    return report.success

  async def dispatch_broadcast(self, *, title: str, body: str, icon: str | None = None, url: str | None = None, content_id: int | None = None) -> DispatchReport:
    """Send to every active subscription and record the notification in history."""
    # The record exists before any attempt so an interrupted send stays auditable.
    notification = await self._notification_repo.create(NotificationDraft(title=title, body=body, icon=icon, url=url, content_id=content_id))
    subscriptions = await self._subscription_repo.active_subscriptions()

    if not subscriptions:
      await self._notification_repo.mark_sent(notification.id)
      logger.info("Broadcast has no active subscribers notification_id=%s", notification.id)
      return DispatchReport(audience=0, delivered=0, invalid=0, transient=0, notification_id=notification.id)

    payload = self.build_payload(title=title, body=body, icon=icon, url=url, tag=notification.tag, data={"newsId": content_id, "notificationId": notification.id})
    results = await self._fan_out(subscriptions, payload)
    await self._notification_repo.mark_sent(notification.id)

    report = DispatchReport.from_results(audience=len(subscriptions), results=results, notification_id=notification.id)
    logger.info("Broadcast finished notification_id=%s delivered=%d/%d invalid=%d transient=%d", notification.id, report.delivered, report.audience, report.invalid, report.transient)
    return report

  async def dispatch_to_user(self, *, user_id: str, title: str, body: str, icon: str | None = None, url: str | None = None) -> DispatchReport:
    """Send to one user's active subscriptions; targeted sends are not historized."""
    subscriptions = await self._subscription_repo.active_subscriptions(user_id=user_id)
    if not subscriptions:
      logger.warning("No active push subscriptions for user_id=%s", user_id)
      return DispatchReport(audience=0, delivered=0, invalid=0, transient=0)

    payload = self.build_payload(title=title, body=body, icon=icon, url=url)
    results = await self._fan_out(subscriptions, payload)

    report = DispatchReport.from_results(audience=len(subscriptions), results=results, notification_id=None)
    logger.info("User push finished user_id=%s delivered=%d/%d invalid=%d transient=%d", user_id, report.delivered, report.audience, report.invalid, report.transient)
    return report

  def build_payload(self, *, title: str, body: str, icon: str | None = None, url: str | None = None, tag: str | None = None, data: dict[str, Any] | None = None) -> bytes:
    """Serialize the JSON document the service worker renders."""
    document: dict[str, Any] = {"title": title, "body": body, "icon": icon or self._defaults.icon, "badge": self._defaults.badge, "url": url or self._defaults.url}
    if tag:
      document["tag"] = tag
    if data is not None:
      document["data"] = data
    return json.dumps(document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

  async def _fan_out(self, subscriptions: Sequence[PushSubscriptionRecord], payload: bytes) -> list[AttemptResult]:
    """Deliver with bounded concurrency, then retire invalid endpoints in one batch.

    On cancellation, attempts still waiting for a slot are skipped, attempts
    already running finish, and invalid endpoints seen so far are retired
    before the cancellation propagates.
    """
    semaphore = asyncio.Semaphore(self._max_concurrency)
    tasks = [asyncio.create_task(self._attempt(subscription, payload, semaphore)) for subscription in subscriptions]

    try:
      results = list(await asyncio.gather(*tasks))
    except asyncio.CancelledError:
      settled = await asyncio.gather(*tasks, return_exceptions=True)
      partial = [item for item in settled if isinstance(item, tuple)]
      logger.warning("Push fan-out cancelled completed=%d skipped=%d", len(partial), len(tasks) - len(partial))
      await self._retire_invalid(partial)
      raise

    await self._retire_invalid(results)
    return results

  async def _attempt(self, subscription: PushSubscriptionRecord, payload: bytes, semaphore: asyncio.Semaphore) -> AttemptResult:
    async with semaphore:
      call = asyncio.ensure_future(run_in_threadpool(self._send_one, subscription, payload))
      try:
        return subscription.id, await asyncio.shield(call)
      except asyncio.CancelledError:
        # A running worker thread cannot be interrupted; keep its outcome.
        return subscription.id, await call

  def _send_one(self, subscription: PushSubscriptionRecord, payload: bytes) -> DeliveryOutcome:
    try:
      return self._transport.send(subscription, payload)
    except Exception as exc:  # noqa: BLE001
      logger.error("Push transport raised subscription_id=%s error=%s", subscription.id, exc, exc_info=True)
      return DeliveryOutcome.TRANSIENT_FAILURE

  async def _retire_invalid(self, results: Sequence[AttemptResult]) -> None:
    invalid_ids = [subscription_id for subscription_id, outcome in results if outcome is DeliveryOutcome.PERMANENTLY_INVALID]
    if invalid_ids:
      await self._subscription_repo.mark_invalid(invalid_ids)
