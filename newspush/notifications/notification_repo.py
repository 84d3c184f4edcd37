"""Repository for the push notification history."""

from __future__ import annotations

import datetime

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from newspush.core.database import read_session, unit_of_work
from newspush.notifications.contracts import NotificationDraft, PushNotificationRecord
from newspush.schema.push_notifications import PushNotification


def content_tag(content_id: int | None) -> str | None:
  """Grouping tag shared by every notification about one content item."""
  return f"news-{content_id}" if content_id is not None else None


def _to_record(row: PushNotification) -> PushNotificationRecord:
  return PushNotificationRecord(
    id=row.id, title=row.title, body=row.body, icon=row.icon, url=row.url, tag=row.tag, content_id=row.content_id, created_at=row.created_at, sent_at=row.sent_at, is_sent=bool(row.is_sent)
  )


class PushNotificationRepository:
  """Persist broadcast notifications and their sent state."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory

  async def create(self, draft: NotificationDraft) -> PushNotificationRecord:
    """Insert an unsent notification row before any delivery is attempted."""
    async with unit_of_work(self._session_factory) as session:
      record = PushNotification(
        title=draft.title,
        body=draft.body,
        icon=draft.icon,
        url=draft.url,
        tag=draft.tag or content_tag(draft.content_id),
        content_id=draft.content_id,
        created_at=datetime.datetime.now(datetime.UTC),
        is_sent=False,
        sent_at=None,
      )
      session.add(record)
      await session.flush()
      return _to_record(record)

  async def mark_sent(self, notification_id: int) -> None:
    """Move a notification to its sent state; already-sent rows are left untouched."""
    async with unit_of_work(self._session_factory) as session:
      stmt = (
        update(PushNotification)
        .where(PushNotification.id == notification_id, PushNotification.is_sent.is_(False))
        .values(is_sent=True, sent_at=datetime.datetime.now(datetime.UTC))
        .execution_options(synchronize_session=False)
      )
      await session.execute(stmt)

  async def get(self, notification_id: int) -> PushNotificationRecord | None:
    async with read_session(self._session_factory) as session:
      row = await session.get(PushNotification, notification_id)
      return _to_record(row) if row is not None else None

  async def page(self, page: int, page_size: int) -> list[PushNotificationRecord]:
    """Return one 1-based page of notifications, newest first."""
    if page < 1:
      raise ValueError("page must be >= 1")
    if page_size < 1:
      raise ValueError("page_size must be >= 1")

    stmt = select(PushNotification).order_by(desc(PushNotification.created_at), desc(PushNotification.id)).offset((page - 1) * page_size).limit(page_size)
    async with read_session(self._session_factory) as session:
      result = await session.execute(stmt)
      return [_to_record(row) for row in result.scalars().all()]

  async def count(self) -> int:
    async with read_session(self._session_factory) as session:
      result = await session.execute(select(func.count(PushNotification.id)))
      return int(result.scalar_one())
