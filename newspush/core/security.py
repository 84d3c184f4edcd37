"""Identity resolution for requests authenticated by the upstream gateway."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status


@dataclass(frozen=True)
class Principal:
  """Caller identity forwarded by the gateway."""

  user_id: str
  roles: frozenset[str]

  def has_any_role(self, *roles: str) -> bool:
    return any(role in self.roles for role in roles)


def _parse_roles(raw: str | None) -> frozenset[str]:
  if not raw:
    return frozenset()
  return frozenset(role.strip().lower() for role in raw.split(",") if role.strip())


async def get_current_principal(x_user_id: str | None = Header(default=None), x_user_roles: str | None = Header(default=None)) -> Principal:
  """Build the principal from `X-User-Id` / `X-User-Roles`; reject anonymous calls."""
  user_id = (x_user_id or "").strip()
  if not user_id:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

  return Principal(user_id=user_id, roles=_parse_roles(x_user_roles))


def require_role(*roles: str) -> Callable[..., Awaitable[Principal]]:
  """Dependency factory that admits callers holding at least one of `roles`."""
  allowed = tuple(role.lower() for role in roles)

  async def _dependency(principal: Principal = Depends(get_current_principal)) -> Principal:  # noqa: B008
    if not principal.has_any_role(*allowed):
      raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
    return principal

  return _dependency
