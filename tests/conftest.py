"""Shared fixtures for the push notification tests."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import newspush.schema  # noqa: F401
from newspush.core.database import Base


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
async def session_factory():
  """In-memory SQLite database with both push tables created."""
  engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool, connect_args={"check_same_thread": False})
  async with engine.begin() as connection:
    await connection.run_sync(Base.metadata.create_all)

  yield async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
  await engine.dispose()
