"""Validation of browser-supplied push subscription objects."""

from __future__ import annotations

import re
import urllib.parse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from newspush.notifications.contracts import InvalidSubscriptionError

_BASE64URL_RE = re.compile(r"^[A-Za-z0-9_-]+={0,2}$")


def normalize_endpoint(value: str) -> str:
  """Require an absolute https URL with a host."""
  normalized = value.strip()
  parsed = urllib.parse.urlparse(normalized)

  if parsed.scheme.lower() != "https":
    raise PydanticCustomError("push_endpoint_https", "endpoint must use https.")

  if not parsed.hostname:
    raise PydanticCustomError("push_endpoint_host", "endpoint must be an absolute URL.")

  return normalized


def _normalize_key(value: str, *, name: str, min_length: int) -> str:
  normalized = value.strip()
  if len(normalized) < min_length:
    raise PydanticCustomError(f"push_{name}_short", f"{name} key is too short.")

  if not _BASE64URL_RE.fullmatch(normalized):
    raise PydanticCustomError(f"push_{name}_format", f"{name} must be base64url encoded.")

  return normalized


class PushSubscriptionKeys(BaseModel):
  """Browser-provided key material for Web Push encryption."""

  p256dh: str = Field(min_length=1, max_length=512)
  auth: str = Field(min_length=1, max_length=256)
  model_config = ConfigDict(extra="forbid")

  @field_validator("p256dh")
  @classmethod
  def validate_p256dh(cls, value: str) -> str:
    # An uncompressed P-256 point is 65 bytes, 87 base64url characters.
    return _normalize_key(value, name="p256dh", min_length=40)

  @field_validator("auth")
  @classmethod
  def validate_auth(cls, value: str) -> str:
    return _normalize_key(value, name="auth", min_length=16)


class PushSubscriptionPayload(BaseModel):
  """Endpoint and key material of a browser PushSubscription."""

  endpoint: str = Field(min_length=1, max_length=2048)
  keys: PushSubscriptionKeys
  model_config = ConfigDict(extra="forbid")

  @field_validator("endpoint")
  @classmethod
  def validate_endpoint(cls, value: str) -> str:
    return normalize_endpoint(value)


def parse_subscription(*, endpoint: str, keys: object) -> PushSubscriptionPayload:
  """Validate a subscription or raise `InvalidSubscriptionError` with a readable reason."""
  try:
    return PushSubscriptionPayload.model_validate({"endpoint": endpoint, "keys": keys})
  except ValidationError as exc:
    reasons = "; ".join(str(error.get("msg", "invalid value")) for error in exc.errors())
    raise InvalidSubscriptionError(reasons or "Invalid push subscription") from exc
