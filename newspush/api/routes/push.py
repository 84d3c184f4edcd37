"""Routes for Web Push subscriptions, sends and history."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from newspush.api.deps import get_push_service
from newspush.core.security import Principal, get_current_principal, require_role
from newspush.notifications.contracts import OperationResult
from newspush.notifications.service import PushNotificationService

router = APIRouter()


class PushSubscribeRequest(BaseModel):
  """Browser PushSubscription JSON; key material is validated by the service and `expirationTime` is ignored."""

  endpoint: str = Field(min_length=1, max_length=2048)
  keys: dict[str, str]


class PushUnsubscribeRequest(BaseModel):
  endpoint: str = Field(min_length=1, max_length=2048)


class SendNotificationRequest(BaseModel):
  """Broadcast payload as sent by the editorial UI."""

  title: str = Field(max_length=255)
  body: str
  icon: str | None = None
  url: str | None = None
  news_id: int | None = Field(default=None, alias="newsId")
  model_config = ConfigDict(populate_by_name=True)


class SendToUserRequest(BaseModel):
  user_id: str = Field(min_length=1, max_length=128, alias="userId")
  title: str = Field(max_length=255)
  body: str
  icon: str | None = None
  url: str | None = None
  model_config = ConfigDict(populate_by_name=True)


def _respond(result: OperationResult) -> JSONResponse:
  """Expected failures are the caller's problem: 400, never 5xx."""
  content: dict[str, Any] = {"message": result.message}
  if result.data:
    content["data"] = result.data
  status_code = status.HTTP_200_OK if result.success else status.HTTP_400_BAD_REQUEST
  return JSONResponse(status_code=status_code, content=content)


@router.get("/vapid-public-key")
async def get_vapid_public_key(service: PushNotificationService = Depends(get_push_service)) -> dict[str, str]:  # noqa: B008
  """Expose the application server key browsers pass to `pushManager.subscribe`."""
  if not service.vapid_public_key:
    raise HTTPException(status_code=status.HTTP_501_NOT_IMPLEMENTED, detail="Push notifications are not configured")
  return {"publicKey": service.vapid_public_key}


@router.post("/subscribe")
async def subscribe(payload: PushSubscribeRequest, principal: Principal = Depends(get_current_principal), service: PushNotificationService = Depends(get_push_service)) -> JSONResponse:  # noqa: B008
  result = await service.subscribe(user_id=principal.user_id, endpoint=payload.endpoint, keys=payload.keys)
  return _respond(result)


@router.post("/unsubscribe")
async def unsubscribe(payload: PushUnsubscribeRequest, principal: Principal = Depends(get_current_principal), service: PushNotificationService = Depends(get_push_service)) -> JSONResponse:  # noqa: B008
  result = await service.unsubscribe(user_id=principal.user_id, endpoint=payload.endpoint)
  return _respond(result)


@router.get("/status")
async def subscription_status(principal: Principal = Depends(get_current_principal), service: PushNotificationService = Depends(get_push_service)) -> JSONResponse:  # noqa: B008
  result = await service.subscription_status(user_id=principal.user_id)
  return _respond(result)


@router.post("/send", dependencies=[Depends(require_role("admin", "author"))])
async def send_notification(payload: SendNotificationRequest, service: PushNotificationService = Depends(get_push_service)) -> JSONResponse:  # noqa: B008
  """Broadcast to every active subscriber and record the send in history."""
  result = await service.broadcast(title=payload.title, body=payload.body, icon=payload.icon, url=payload.url, content_id=payload.news_id)
  return _respond(result)


@router.post("/send-to-user", dependencies=[Depends(require_role("admin"))])
async def send_to_user(payload: SendToUserRequest, service: PushNotificationService = Depends(get_push_service)) -> JSONResponse:  # noqa: B008
  result = await service.send_to_user(user_id=payload.user_id, title=payload.title, body=payload.body, icon=payload.icon, url=payload.url)
  return _respond(result)


@router.get("/history", dependencies=[Depends(require_role("admin", "author"))])
async def get_history(
  page: int = Query(1, ge=1),  # noqa: B008
  page_size: int = Query(20, ge=1, alias="pageSize"),  # noqa: B008
  service: PushNotificationService = Depends(get_push_service),  # noqa: B008
) -> JSONResponse:
  """
  Page through broadcast history, newest first.

  - **page**: 1-based page number.
  - **pageSize**: Items per page, capped by configuration.
  """
  result = await service.get_history(page=page, page_size=page_size)
  return _respond(result)


@router.post("/test", dependencies=[Depends(require_role("admin"))])
async def send_test_notification(service: PushNotificationService = Depends(get_push_service)) -> JSONResponse:  # noqa: B008
  result = await service.send_test_notification()
  return _respond(result)
