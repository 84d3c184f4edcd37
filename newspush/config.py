"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from newspush.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the push notification service."""

  debug: bool
  allowed_origins: tuple[str, ...]
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  pg_dsn: str | None
  pg_connect_timeout: int
  push_notifications_enabled: bool
  push_vapid_public_key: str | None
  push_vapid_private_key: str | None
  push_vapid_sub: str | None
  push_timeout_seconds: float
  push_max_concurrency: int
  push_ttl_seconds: int
  push_default_icon: str
  push_default_badge: str
  push_default_url: str
  push_history_max_page_size: int


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ("http://localhost:3000",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("NEWSPUSH_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("NEWSPUSH_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  debug = _parse_bool(os.getenv("NEWSPUSH_DEBUG"))

  log_max_bytes = _positive_int("NEWSPUSH_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("NEWSPUSH_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("NEWSPUSH_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Opt-in logging of 4xx HTTPExceptions for diagnostics.
  log_http_4xx = _parse_bool(os.getenv("NEWSPUSH_LOG_HTTP_4XX"))

  push_notifications_enabled = _parse_bool(os.getenv("NEWSPUSH_PUSH_NOTIFICATIONS_ENABLED"))
  push_vapid_public_key = _optional_str(os.getenv("NEWSPUSH_PUSH_VAPID_PUBLIC_KEY"))
  push_vapid_private_key = _optional_str(os.getenv("NEWSPUSH_PUSH_VAPID_PRIVATE_KEY"))
  push_vapid_sub = _optional_str(os.getenv("NEWSPUSH_PUSH_VAPID_SUB"))

  push_timeout_seconds = float(os.getenv("NEWSPUSH_PUSH_TIMEOUT_SECONDS", "10"))
  if push_timeout_seconds <= 0:
    raise ValueError("NEWSPUSH_PUSH_TIMEOUT_SECONDS must be positive.")

  push_max_concurrency = _positive_int("NEWSPUSH_PUSH_MAX_CONCURRENCY", "32")
  push_ttl_seconds = _positive_int("NEWSPUSH_PUSH_TTL_SECONDS", "86400")
  push_history_max_page_size = _positive_int("NEWSPUSH_PUSH_HISTORY_MAX_PAGE_SIZE", "100")

  # Validate push configuration only when push notifications are enabled.
  if push_notifications_enabled:
    if not push_vapid_public_key:
      raise ValueError("NEWSPUSH_PUSH_VAPID_PUBLIC_KEY must be set when push notifications are enabled.")

    if not push_vapid_private_key:
      raise ValueError("NEWSPUSH_PUSH_VAPID_PRIVATE_KEY must be set when push notifications are enabled.")

    if not push_vapid_sub:
      raise ValueError("NEWSPUSH_PUSH_VAPID_SUB must be set when push notifications are enabled.")

    if not (push_vapid_sub.startswith("mailto:") or push_vapid_sub.startswith("https://")):
      raise ValueError("NEWSPUSH_PUSH_VAPID_SUB must start with 'mailto:' or 'https://'.")

  return Settings(
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("NEWSPUSH_ALLOWED_ORIGINS")),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=log_http_4xx,
    pg_dsn=os.getenv("NEWSPUSH_PG_DSN") or os.getenv("DATABASE_URL"),
    pg_connect_timeout=_positive_int("NEWSPUSH_PG_CONNECT_TIMEOUT", "5"),
    push_notifications_enabled=push_notifications_enabled,
    push_vapid_public_key=push_vapid_public_key,
    push_vapid_private_key=push_vapid_private_key,
    push_vapid_sub=push_vapid_sub,
    push_timeout_seconds=push_timeout_seconds,
    push_max_concurrency=push_max_concurrency,
    push_ttl_seconds=push_ttl_seconds,
    push_default_icon=(os.getenv("NEWSPUSH_PUSH_DEFAULT_ICON") or "/icon-192x192.png").strip(),
    push_default_badge=(os.getenv("NEWSPUSH_PUSH_DEFAULT_BADGE") or "/badge-72x72.png").strip(),
    push_default_url=(os.getenv("NEWSPUSH_PUSH_DEFAULT_URL") or "/").strip(),
    push_history_max_page_size=push_history_max_page_size,
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring web-runtime configuration."""
  # Migrations and scripts only need the DSN, not the push or CORS settings.
  debug = _parse_bool(os.getenv("NEWSPUSH_DEBUG"))
  pg_connect_timeout = _positive_int("NEWSPUSH_PG_CONNECT_TIMEOUT", "5")
  pg_dsn = os.getenv("NEWSPUSH_PG_DSN") or os.getenv("DATABASE_URL")

  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value
