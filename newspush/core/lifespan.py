import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from newspush.core.database import dispose_engine
from newspush.core.logging import _initialize_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Ensure logging is set up after uvicorn starts and release the pool on shutdown."""
  from newspush.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("newspush.core.lifespan")

  try:
    _initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
  except Exception:
    # The app can still serve requests with the default handlers.
    logger.warning("Initial logging setup failed.", exc_info=True)

  if not settings.push_notifications_enabled:
    logger.info("Push notifications disabled; sends will be recorded but not delivered.")

  try:
    yield
  finally:
    await dispose_engine()
    logger.info("Database engine disposed.")
