"""Push notification operations exposed to the API and content layers."""

from __future__ import annotations

import logging
import urllib.parse

from newspush.notifications.contracts import InvalidSubscriptionError, OperationResult, PushSubscriptionEntry
from newspush.notifications.dispatcher import DispatchReport, PushDispatcher
from newspush.notifications.notification_repo import PushNotificationRepository
from newspush.notifications.subscription_repo import PushSubscriptionRepository
from newspush.notifications.validation import normalize_endpoint, parse_subscription

logger = logging.getLogger(__name__)

TEST_NOTIFICATION_TITLE = "Test notification"
TEST_NOTIFICATION_BODY = "This is a test notification. The system is working!"
# Matches the width of push_notifications.title.
MAX_TITLE_LENGTH = 255


def _content_url(content_id: int) -> str:
  return f"/news/{content_id}"


def _text_error(title: str | None, body: str | None) -> str | None:
  if not (title and title.strip()) or not (body and body.strip()):
    return "Title and body are required"
  if len(title.strip()) > MAX_TITLE_LENGTH:
    return f"Title must be at most {MAX_TITLE_LENGTH} characters"
  return None


class PushNotificationService:
  """Boundary for push operations.

  Expected failures (bad input, nobody reachable) come back as a failed
  `OperationResult`. Storage failures are not expected and propagate as
  `StorageError`; the failed call had no effect and can be retried as a whole.
  """

  def __init__(self, *, subscription_repo: PushSubscriptionRepository, notification_repo: PushNotificationRepository, dispatcher: PushDispatcher, vapid_public_key: str | None = None, max_page_size: int = 100) -> None:
    self._subscription_repo = subscription_repo
    self._notification_repo = notification_repo
    self._dispatcher = dispatcher
    self._vapid_public_key = vapid_public_key
    self._max_page_size = max_page_size

  @property
  def vapid_public_key(self) -> str | None:
    return self._vapid_public_key

  async def subscribe(self, *, user_id: str, endpoint: str, keys: object) -> OperationResult:
    """Register or refresh a browser endpoint for a user."""
    if not user_id:
      return OperationResult(success=False, message="User is required")

    try:
      payload = parse_subscription(endpoint=endpoint, keys=keys)
    except InvalidSubscriptionError as exc:
      logger.info("Rejected push subscription user_id=%s reason=%s", user_id, exc)
      return OperationResult(success=False, message=f"Invalid push subscription: {exc}")

    record = await self._subscription_repo.upsert(PushSubscriptionEntry(user_id=user_id, endpoint=payload.endpoint, p256dh=payload.keys.p256dh, auth=payload.keys.auth))
    logger.info("Push subscription saved user_id=%s subscription_id=%s", user_id, record.id)
    return OperationResult(success=True, message="Push notifications enabled", data={"subscriptionId": record.id})

  async def unsubscribe(self, *, user_id: str, endpoint: str) -> OperationResult:
    """Deactivate a user's endpoint; unsubscribing an unknown endpoint still succeeds."""
    if not user_id:
      return OperationResult(success=False, message="User is required")

    try:
      normalized = normalize_endpoint(endpoint or "")
    except ValueError as exc:
      return OperationResult(success=False, message=f"Invalid endpoint: {exc}")

    deactivated = await self._subscription_repo.deactivate(user_id=user_id, endpoint=normalized)
    logger.info("Push unsubscribe user_id=%s deactivated=%s", user_id, deactivated)
    return OperationResult(success=True, message="Push notifications disabled", data={"deactivated": deactivated})

  async def broadcast(self, *, title: str, body: str, icon: str | None = None, url: str | None = None, content_id: int | None = None) -> OperationResult:
    """Send to every active subscriber and record the notification in history."""
    text_error = _text_error(title, body)
    if text_error:
      return OperationResult(success=False, message=text_error)

    report = await self._dispatcher.dispatch_broadcast(title=title.strip(), body=body.strip(), icon=icon, url=url, content_id=content_id)
    if report.success:
      return OperationResult(success=True, message="Notification sent", data=_report_data(report))

    logger.warning("Broadcast delivered nowhere notification_id=%s audience=%d", report.notification_id, report.audience)
    return OperationResult(success=False, message="Notification could not be delivered", data=_report_data(report))

  async def send_to_user(self, *, user_id: str, title: str, body: str, icon: str | None = None, url: str | None = None) -> OperationResult:
    """Send to one user's active subscriptions without recording history."""
    if not user_id:
      return OperationResult(success=False, message="User is required")

    text_error = _text_error(title, body)
    if text_error:
      return OperationResult(success=False, message=text_error)

    report = await self._dispatcher.dispatch_to_user(user_id=user_id, title=title.strip(), body=body.strip(), icon=icon, url=url)
    if report.success:
      return OperationResult(success=True, message="Notification sent to user", data=_report_data(report))

    if report.audience == 0:
      return OperationResult(success=False, message="User has no active push subscriptions", data=_report_data(report))

    return OperationResult(success=False, message="User notification could not be delivered", data=_report_data(report))

  async def get_history(self, *, page: int = 1, page_size: int = 20) -> OperationResult:
    """Return one page of broadcast history, newest first."""
    if page < 1 or page_size < 1 or page_size > self._max_page_size:
      return OperationResult(success=False, message=f"page must be >= 1 and pageSize between 1 and {self._max_page_size}")

    notifications = await self._notification_repo.page(page, page_size)
    total = await self._notification_repo.count()
    return OperationResult(success=True, message="ok", data={"notifications": [item.to_dict() for item in notifications], "page": page, "pageSize": page_size, "total": total})

  async def notify_content_published(self, *, content_id: int, title: str, summary: str) -> OperationResult:
    """Broadcast a newly published content item."""
    return await self.broadcast(title=title, body=summary, url=_content_url(content_id), content_id=content_id)

  async def send_test_notification(self) -> OperationResult:
    return await self.broadcast(title=TEST_NOTIFICATION_TITLE, body=TEST_NOTIFICATION_BODY, url="/")

  async def subscription_status(self, *, user_id: str) -> OperationResult:
    """Summarize a user's stored endpoints without exposing key material."""
    if not user_id:
      return OperationResult(success=False, message="User is required")

    records = await self._subscription_repo.list_for_user(user_id=user_id)
    subscriptions = [{"id": record.id, "endpointHost": urllib.parse.urlparse(record.endpoint).hostname, "isActive": record.is_active, "createdAt": record.created_at.isoformat()} for record in records]
    return OperationResult(success=True, message="ok", data={"subscribed": any(record.is_active for record in records), "subscriptions": subscriptions})


def _report_data(report: DispatchReport) -> dict[str, int | None]:
  return {"audience": report.audience, "delivered": report.delivered, "invalid": report.invalid, "transient": report.transient, "notificationId": report.notification_id}
