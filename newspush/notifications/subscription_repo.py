"""Repository for Web Push subscription persistence."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from newspush.core.database import read_session, unit_of_work
from newspush.notifications.contracts import PushSubscriptionEntry, PushSubscriptionRecord
from newspush.schema.push_subscriptions import PushSubscription

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


def _utcnow() -> datetime.datetime:
  return datetime.datetime.now(datetime.UTC)


def _to_record(row: PushSubscription) -> PushSubscriptionRecord:
  return PushSubscriptionRecord(id=row.id, user_id=row.user_id, endpoint=row.endpoint, p256dh=row.p256dh, auth=row.auth, created_at=row.created_at, is_active=bool(row.is_active))


class PushSubscriptionRepository:
  """Persist and manage push subscriptions keyed by (user_id, endpoint)."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory

  async def upsert(self, entry: PushSubscriptionEntry) -> PushSubscriptionRecord:
    """Insert a new active row or refresh the existing one, active or not, in one transaction."""
    async with unit_of_work(self._session_factory) as session:
      return await self._upsert_with_session(session=session, entry=entry)

  async def _upsert_with_session(self, *, session: AsyncSession, entry: PushSubscriptionEntry) -> PushSubscriptionRecord:
    dialect = session.get_bind().dialect.name
    insert = _UPSERT_DIALECTS.get(dialect)
    if insert is None:
      raise RuntimeError(f"Unsupported database dialect for subscription upsert: {dialect}")

    now = _utcnow()
    # ON CONFLICT keeps concurrent registrations of the same key to a single row.
    stmt = insert(PushSubscription).values(user_id=entry.user_id, endpoint=entry.endpoint, p256dh=entry.p256dh, auth=entry.auth, created_at=now, is_active=True)
    stmt = stmt.on_conflict_do_update(index_elements=["user_id", "endpoint"], set_={"p256dh": entry.p256dh, "auth": entry.auth, "created_at": now, "is_active": True})
    await session.execute(stmt)

    result = await session.execute(select(PushSubscription).where(PushSubscription.user_id == entry.user_id, PushSubscription.endpoint == entry.endpoint).execution_options(populate_existing=True))
    return _to_record(result.scalar_one())

  async def deactivate(self, *, user_id: str, endpoint: str) -> bool:
    """Deactivate the matching active row; returns False when there was none."""
    async with unit_of_work(self._session_factory) as session:
      stmt = update(PushSubscription).where(PushSubscription.user_id == user_id, PushSubscription.endpoint == endpoint, PushSubscription.is_active.is_(True)).values(is_active=False).execution_options(synchronize_session=False)
      result = await session.execute(stmt)
      return result.rowcount > 0

  async def active_subscriptions(self, *, user_id: str | None = None) -> list[PushSubscriptionRecord]:
    """Snapshot active subscriptions, optionally for one user."""
    stmt = select(PushSubscription).where(PushSubscription.is_active.is_(True))
    if user_id is not None:
      stmt = stmt.where(PushSubscription.user_id == user_id)

    async with read_session(self._session_factory) as session:
      result = await session.execute(stmt.order_by(PushSubscription.id))
      return [_to_record(row) for row in result.scalars().all()]

  async def mark_invalid(self, subscription_ids: Iterable[int]) -> int:
    """Deactivate a batch of subscriptions in one transaction."""
    ids = sorted(set(subscription_ids))
    if not ids:
      return 0

    async with unit_of_work(self._session_factory) as session:
      stmt = update(PushSubscription).where(PushSubscription.id.in_(ids), PushSubscription.is_active.is_(True)).values(is_active=False).execution_options(synchronize_session=False)
      result = await session.execute(stmt)

    logger.info("Deactivated invalid push subscriptions count=%d", result.rowcount)
    return result.rowcount

  async def list_for_user(self, *, user_id: str) -> list[PushSubscriptionRecord]:
    """List every subscription row for a user, active or not."""
    async with read_session(self._session_factory) as session:
      result = await session.execute(select(PushSubscription).where(PushSubscription.user_id == user_id).order_by(PushSubscription.id))
      return [_to_record(row) for row in result.scalars().all()]
