"""Unit tests for API exception sanitization behavior."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from newspush.core.exceptions import _sanitize_validation_errors, http_exception_handler


def test_sanitize_validation_errors_removes_input_and_serializes_exception_ctx() -> None:
  """Validation errors stay JSON-serializable and never echo the request body."""
  errors = [{"type": "value_error", "loc": ("body", "keys"), "msg": "Value error, auth key is too short.", "input": {"auth": "abc"}, "ctx": {"error": ValueError("auth key is too short."), "input": {"auth": "abc"}}}]
  sanitized = _sanitize_validation_errors(errors)
  assert "input" not in sanitized[0]
  assert sanitized[0]["loc"] == ["body", "keys"]
  assert sanitized[0]["ctx"]["error"] == "ValueError: auth key is too short."
  assert "input" not in sanitized[0]["ctx"]


def _build_client() -> TestClient:
  app = FastAPI()
  app.add_exception_handler(HTTPException, http_exception_handler)

  @app.get("/unconfigured")
  async def unconfigured() -> None:
    raise HTTPException(status_code=501, detail="Push notifications are not configured")

  @app.get("/broken")
  async def broken() -> None:
    raise HTTPException(status_code=503, detail="pool exhausted on db-2")

  return TestClient(app)


def test_http_exception_handler_keeps_not_implemented_detail() -> None:
  """An unconfigured feature reports why instead of a generic server error."""
  response = _build_client().get("/unconfigured")
  assert response.status_code == 501
  assert response.json() == {"detail": "Push notifications are not configured"}


def test_http_exception_handler_hides_other_5xx_details() -> None:
  response = _build_client().get("/broken")
  assert response.status_code == 503
  assert response.json() == {"detail": "Internal Server Error"}
