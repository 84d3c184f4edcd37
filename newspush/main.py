from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from newspush.api.routes import push
from newspush.config import get_settings
from newspush.core.database import StorageError
from newspush.core.exceptions import global_exception_handler, http_exception_handler, request_validation_exception_handler, storage_exception_handler
from newspush.core.lifespan import lifespan
from newspush.core.middleware import RequestLoggingMiddleware

settings = get_settings()

app = FastAPI(title="newspush", lifespan=lifespan)

app.add_middleware(
  CORSMiddleware,
  allow_origins=list(settings.allowed_origins),
  allow_credentials=True,
  allow_methods=["GET", "POST", "OPTIONS"],
  allow_headers=["content-type", "authorization", "x-user-id", "x-user-roles"],
  expose_headers=["content-length", "x-request-id"],
)

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(StorageError, storage_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": "0.1.0"}


app.include_router(push.router, prefix="/api/push", tags=["push"])
