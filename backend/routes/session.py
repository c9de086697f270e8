from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend import repositories
from backend.auth import SessionContext, require_session
from backend.completions import today_iso
from backend.schemas import SignInPayload, ResetPasswordPayload
from backend.services import platform_client
from backend.services.platform_client import PlatformAuthError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/v1/session/sign-in")
async def sign_in(payload: SignInPayload):
    try:
        tokens = await platform_client.sign_in(payload.email, payload.password)
    except PlatformAuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    profile = await repositories.get_profile(tokens["user_id"])
    return {
        "access_token": tokens["access_token"],
        "refresh_token": tokens["refresh_token"],
        "user": {"id": tokens["user_id"], "email": tokens["email"]},
        "profile": profile,
    }


@router.post("/v1/session/sign-out")
async def sign_out(session: SessionContext = Depends(require_session)):
    try:
        await platform_client.sign_out(session.access_token)
    except Exception as exc:
        logger.warning("Sign-out failed for %s: %s", session.user_id, exc)
    return {"ok": True}


@router.post("/v1/session/reset-password")
async def reset_password(payload: ResetPasswordPayload):
    await platform_client.send_password_reset(payload.email)
    return {"ok": True}


@router.get("/v1/session")
async def get_session_state(session: SessionContext = Depends(require_session)):
    plans = []
    if session.role == "client":
        plans = await repositories.list_active_plans(session.user_id, today_iso())
    return {
        "user": {"id": session.user_id, "email": session.email},
        "profile": session.profile,
        "active_plans": plans,
        "subscription_active": session.role in {"coach", "admin"} or bool(plans),
    }
