"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from newspush.config import get_settings
from newspush.notifications.factory import build_push_service
from newspush.notifications.service import PushNotificationService


@lru_cache(maxsize=1)
def _push_service() -> PushNotificationService:
  # Repositories resolve the session factory lazily, so building early is safe.
  return build_push_service(get_settings())


async def get_push_service() -> PushNotificationService:
  """Dependency returning the process-wide push service."""
  return _push_service()
