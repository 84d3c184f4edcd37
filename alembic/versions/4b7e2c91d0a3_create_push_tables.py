"""Create push subscription and push notification tables.

Revision ID: 4b7e2c91d0a3
Revises:
Create Date: 2026-10-19 09:12:40.118204
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "4b7e2c91d0a3"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "push_subscriptions",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("user_id", sa.String(length=128), nullable=False),
    sa.Column("endpoint", sa.Text(), nullable=False),
    sa.Column("p256dh", sa.Text(), nullable=False),
    sa.Column("auth", sa.Text(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("user_id", "endpoint", name="uq_push_subscriptions_user_endpoint"),
  )
  op.create_index(op.f("ix_push_subscriptions_user_id"), "push_subscriptions", ["user_id"], unique=False)
  op.create_index("ix_push_subscriptions_is_active", "push_subscriptions", ["is_active"], unique=False)

  op.create_table(
    "push_notifications",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("title", sa.String(length=255), nullable=False),
    sa.Column("body", sa.Text(), nullable=False),
    sa.Column("icon", sa.Text(), nullable=True),
    sa.Column("url", sa.Text(), nullable=True),
    sa.Column("tag", sa.String(length=128), nullable=True),
    sa.Column("content_id", sa.Integer(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("is_sent", sa.Boolean(), server_default=sa.false(), nullable=False),
    sa.CheckConstraint("(is_sent AND sent_at IS NOT NULL) OR (NOT is_sent AND sent_at IS NULL)", name="ck_push_notifications_sent_at"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_push_notifications_content_id"), "push_notifications", ["content_id"], unique=False)
  op.create_index(op.f("ix_push_notifications_created_at"), "push_notifications", ["created_at"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_index(op.f("ix_push_notifications_created_at"), table_name="push_notifications")
  op.drop_index(op.f("ix_push_notifications_content_id"), table_name="push_notifications")
  op.drop_table("push_notifications")
  op.drop_index("ix_push_subscriptions_is_active", table_name="push_subscriptions")
  op.drop_index(op.f("ix_push_subscriptions_user_id"), table_name="push_subscriptions")
  op.drop_table("push_subscriptions")
