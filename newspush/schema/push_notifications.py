"""SQLAlchemy model for the push notification history."""

from __future__ import annotations

import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text, false, func
from sqlalchemy.orm import Mapped, mapped_column

from newspush.core.database import Base


class PushNotification(Base):
  """Persist one broadcast and its final sent state for history and audit."""

  __tablename__ = "push_notifications"
  __table_args__ = (CheckConstraint("(is_sent AND sent_at IS NOT NULL) OR (NOT is_sent AND sent_at IS NULL)", name="ck_push_notifications_sent_at"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  title: Mapped[str] = mapped_column(String(255), nullable=False)
  body: Mapped[str] = mapped_column(Text, nullable=False)
  icon: Mapped[str | None] = mapped_column(Text, nullable=True)
  url: Mapped[str | None] = mapped_column(Text, nullable=True)
  tag: Mapped[str | None] = mapped_column(String(128), nullable=True)
  content_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False, server_default=func.now())
  sent_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  is_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
