"""Factory helpers for the push notification service."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from newspush.config import Settings
from newspush.notifications.contracts import PushTransport
from newspush.notifications.dispatcher import PayloadDefaults, PushDispatcher
from newspush.notifications.notification_repo import PushNotificationRepository
from newspush.notifications.push_sender import NullPushTransport, VapidConfig, WebPushTransport
from newspush.notifications.service import PushNotificationService
from newspush.notifications.subscription_repo import PushSubscriptionRepository


def build_push_transport(settings: Settings) -> PushTransport:
  """Pick the real transport only when push is enabled and fully configured."""
  if settings.push_notifications_enabled and settings.push_vapid_public_key and settings.push_vapid_private_key and settings.push_vapid_sub:
    vapid_config = VapidConfig(public_key=settings.push_vapid_public_key, private_key=settings.push_vapid_private_key, sub=settings.push_vapid_sub)
    return WebPushTransport(vapid_config=vapid_config, timeout_seconds=settings.push_timeout_seconds, ttl_seconds=settings.push_ttl_seconds)

  return NullPushTransport()


def build_push_service(settings: Settings, *, session_factory: async_sessionmaker[AsyncSession] | None = None, transport: PushTransport | None = None) -> PushNotificationService:
  """Construct a push service based on environment configuration."""
  subscription_repo = PushSubscriptionRepository(session_factory)
  notification_repo = PushNotificationRepository(session_factory)
  defaults = PayloadDefaults(icon=settings.push_default_icon, badge=settings.push_default_badge, url=settings.push_default_url)
  dispatcher = PushDispatcher(
    subscription_repo=subscription_repo,
    notification_repo=notification_repo,
    transport=transport or build_push_transport(settings),
    max_concurrency=settings.push_max_concurrency,
    payload_defaults=defaults,
  )

  # Browsers need the public key only when the server can actually sign.
  public_key = settings.push_vapid_public_key if settings.push_notifications_enabled else None
  return PushNotificationService(
    subscription_repo=subscription_repo, notification_repo=notification_repo, dispatcher=dispatcher, vapid_public_key=public_key, max_page_size=settings.push_history_max_page_size
  )
