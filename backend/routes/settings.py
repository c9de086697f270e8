from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from backend import repositories
from backend.auth import SessionContext, require_session
from backend.schemas import (
    ProfilePatch,
    PasswordUpdatePayload,
    RecoverPasswordPayload,
    EmailUpdatePayload,
    AlertSettingsPayload,
    PushSubscriptionPayload,
)
from backend.services import platform_client, storage_service
from backend.services.functions_client import PUSH_DISPATCHER, FunctionInvokeError, invoke_function
from backend.services.platform_client import PlatformAuthError
from backend.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()

TEST_NOTIFICATION = {
    "title": "Test Notifica 🔔",
    "body": "Se leggi questo, le notifiche funzionano!",
    "url": "/profile",
}


@router.patch("/v1/profile")
async def update_profile(payload: ProfilePatch, session: SessionContext = Depends(require_session)):
    profile = await repositories.update_profile(session.user_id, payload.model_dump(exclude_unset=True))
    return {"profile": profile}


@router.post("/v1/profile/avatar")
async def upload_avatar(file: UploadFile = File(...), session: SessionContext = Depends(require_session)):
    data = await file.read()
    url = await storage_service.upload_file(data, file.filename or "avatar.jpg", folder="avatars", content_type=file.content_type)
    if not url:
        raise HTTPException(status_code=502, detail="Upload failed")
    old_url = (session.profile or {}).get("avatar_url")
    profile = await repositories.update_profile(session.user_id, {"avatar_url": url})
    if old_url and old_url != url and storage_service.is_storage_url(old_url):
        await storage_service.delete_file_from_url(old_url)
    return {"profile": profile}


@router.put("/v1/account/password")
async def change_password(payload: PasswordUpdatePayload, session: SessionContext = Depends(require_session)):
    try:
        await platform_client.change_password(
            session.user_id, session.email or "", payload.current_password, payload.new_password
        )
    except PlatformAuthError as exc:
        raise HTTPException(status_code=400, detail="Current password is incorrect") from exc
    return {"ok": True}


@router.post("/v1/account/recover-password")
async def recover_password(payload: RecoverPasswordPayload, session: SessionContext = Depends(require_session)):
    """Set a new password from a recovery link; the link's token is the session."""
    if not session.is_recovery:
        raise HTTPException(status_code=403, detail="Recovery session required")
    await platform_client.update_password(session.user_id, payload.new_password)
    return {"ok": True}


@router.put("/v1/account/email")
async def change_email(payload: EmailUpdatePayload, session: SessionContext = Depends(require_session)):
    email = payload.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Invalid email")
    await platform_client.update_email(session.user_id, email)
    await repositories.update_profile(session.user_id, {"email": email})
    return {"ok": True, "email": email}


@router.get("/v1/alert-settings")
async def get_alert_settings(session: SessionContext = Depends(require_session)):
    settings_row = await repositories.get_alert_settings(session.user_id)
    if not settings_row:
        return {"user_id": session.user_id, "is_enabled": True, "alert_times": []}
    return settings_row


@router.put("/v1/alert-settings")
async def set_alert_settings(payload: AlertSettingsPayload, session: SessionContext = Depends(require_session)):
    return await repositories.upsert_alert_settings(
        session.user_id, session.role, payload.is_enabled, payload.alert_times
    )


@router.get("/v1/push/public-key")
async def push_public_key():
    return {"public_key": get_settings().vapid_public_key}


@router.post("/v1/push-subscriptions")
async def save_push_subscription(payload: PushSubscriptionPayload, session: SessionContext = Depends(require_session)):
    try:
        return await repositories.save_push_subscription(session.user_id, payload.subscription, payload.user_agent)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/v1/push-subscriptions")
async def delete_push_subscription(endpoint: str = Query(...), session: SessionContext = Depends(require_session)):
    removed = await repositories.delete_push_subscription_by_endpoint(session.user_id, endpoint)
    return {"ok": True, "removed": removed}


@router.post("/v1/push-subscriptions/test")
async def send_test_notification(session: SessionContext = Depends(require_session)):
    try:
        result = await invoke_function(PUSH_DISPATCHER, {"type": "direct", "user_id": session.user_id, **TEST_NOTIFICATION})
    except (FunctionInvokeError, httpx.HTTPError) as exc:
        logger.error("Test notification failed: %s", exc)
        raise HTTPException(status_code=502, detail="Notification dispatch failed") from exc
    return {"ok": True, "result": result}
