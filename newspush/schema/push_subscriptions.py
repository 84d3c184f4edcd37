"""SQLAlchemy model for browser Web Push subscriptions."""

from __future__ import annotations

import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, UniqueConstraint, func, true
from sqlalchemy.orm import Mapped, mapped_column

from newspush.core.database import Base


class PushSubscription(Base):
  """Persist one browser push endpoint registered by one user."""

  __tablename__ = "push_subscriptions"
  __table_args__ = (UniqueConstraint("user_id", "endpoint", name="uq_push_subscriptions_user_endpoint"), Index("ix_push_subscriptions_is_active", "is_active"))

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  # Opaque account identifier owned by the content layer; not a foreign key.
  user_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
  endpoint: Mapped[str] = mapped_column(Text, nullable=False)
  p256dh: Mapped[str] = mapped_column(Text, nullable=False)
  auth: Mapped[str] = mapped_column(Text, nullable=False)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

  def __repr__(self) -> str:
    return f"<PushSubscription id={self.id} user={self.user_id} active={self.is_active}>"
