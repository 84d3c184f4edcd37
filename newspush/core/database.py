from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from newspush.config import get_database_settings


class Base(DeclarativeBase):
  pass


class StorageError(Exception):
  """Raised when a unit of work cannot be committed; the transaction was rolled back."""


engine: AsyncEngine | None = None
SessionLocal: async_sessionmaker[AsyncSession] | None = None


def _database_url() -> str | None:
  """Build the SQLAlchemy database URL while keeping settings evaluation minimal."""
  settings = get_database_settings()
  database_url = settings.pg_dsn
  if database_url and database_url.startswith("postgresql://"):
    database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

  return database_url


DATABASE_URL = _database_url()


def get_db_engine() -> AsyncEngine | None:
  global engine
  settings = get_database_settings()
  database_url = _database_url()
  if engine is None and database_url:
    connect_args = {"timeout": settings.pg_connect_timeout} if database_url.startswith("postgresql+asyncpg://") else {}
    engine = create_async_engine(database_url, echo=settings.debug, pool_pre_ping=True, connect_args=connect_args)
  return engine


def get_session_factory() -> async_sessionmaker[AsyncSession] | None:
  global SessionLocal
  if SessionLocal is None:
    db_engine = get_db_engine()
    if db_engine:
      SessionLocal = async_sessionmaker(bind=db_engine, expire_on_commit=False, class_=AsyncSession)
  return SessionLocal


async def dispose_engine() -> None:
  """Close pooled connections on shutdown."""
  global engine, SessionLocal
  if engine is not None:
    await engine.dispose()
  engine = None
  SessionLocal = None


def _require_factory(session_factory: async_sessionmaker[AsyncSession] | None) -> async_sessionmaker[AsyncSession]:
  factory = session_factory or get_session_factory()
  if factory is None:
    raise StorageError("Database connection is not configured (NEWSPUSH_PG_DSN is missing).")
  return factory


@asynccontextmanager
async def unit_of_work(session_factory: async_sessionmaker[AsyncSession] | None = None) -> AsyncIterator[AsyncSession]:
  """Run the enclosed block in one transaction: commit on success, roll back on any error.

  SQLAlchemy failures are re-raised as `StorageError` so callers see one storage
  exception type; any other exception propagates unchanged after the rollback.
  """
  factory = _require_factory(session_factory)
  try:
    async with factory() as session, session.begin():
      yield session
  except SQLAlchemyError as exc:
    raise StorageError(f"Unit of work rolled back: {exc.__class__.__name__}") from exc


@asynccontextmanager
async def read_session(session_factory: async_sessionmaker[AsyncSession] | None = None) -> AsyncIterator[AsyncSession]:
  """Open a session for read-only queries outside any write transaction."""
  factory = _require_factory(session_factory)
  try:
    async with factory() as session:
      yield session
  except SQLAlchemyError as exc:
    raise StorageError(f"Read failed: {exc.__class__.__name__}") from exc

