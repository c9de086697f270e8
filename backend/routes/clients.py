from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from backend import repositories
from backend.auth import SessionContext
from backend.guards import require_coach, ensure_coach_of
from backend.plans import coach_client_stats
from backend.schemas import ClientCreate, ColleaguePayload
from backend.services import platform_client
from backend.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/coach/clients")
async def list_clients(session: SessionContext = Depends(require_coach)):
    clients = await repositories.list_coach_clients(session.user_id)
    return {"items": clients, "stats": coach_client_stats(clients)}


@router.post("/v1/coach/clients")
async def create_client(payload: ClientCreate, session: SessionContext = Depends(require_coach)):
    email = payload.email.strip().lower()
    full_name = payload.full_name.strip()
    if "@" not in email or not full_name:
        raise HTTPException(status_code=400, detail="Email and full name are required")
    try:
        await platform_client.call_rpc(
            "create_client_user",
            {"email": email, "password": get_settings().default_client_password, "full_name": full_name},
        )
    except Exception as exc:
        logger.error("create_client_user failed for %s: %s", email, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    profile = await repositories.get_profile_by_email(email)
    if profile:
        await repositories.ensure_client_info(profile["id"], session.user_id)
        await repositories.link_colleague(profile["id"], session.user_id)
    return {"ok": True, "profile": profile}


@router.get("/v1/coach/clients/{client_id}")
async def get_client(client_id: str, session: SessionContext = Depends(require_coach)):
    await ensure_coach_of(session, client_id)
    profile = await repositories.get_profile(client_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Client not found")
    return {
        "profile": profile,
        "info": await repositories.get_client_info(client_id),
        "plans": await repositories.list_plans(client_id=client_id),
        "coaches": await repositories.list_client_coaches(client_id),
    }


@router.delete("/v1/coach/clients/{client_id}")
async def delete_client(client_id: str, session: SessionContext = Depends(require_coach)):
    await ensure_coach_of(session, client_id)
    await repositories.delete_profile(client_id)
    return {"ok": True}


@router.get("/v1/coach/clients/{client_id}/coaches")
async def list_client_coaches(client_id: str, session: SessionContext = Depends(require_coach)):
    await ensure_coach_of(session, client_id)
    return {"items": await repositories.list_client_coaches(client_id)}


@router.post("/v1/coach/clients/{client_id}/coaches")
async def link_colleague(client_id: str, payload: ColleaguePayload, session: SessionContext = Depends(require_coach)):
    await ensure_coach_of(session, client_id)
    colleague = await repositories.get_profile(payload.coach_id)
    if not colleague or colleague.get("role") != "coach":
        raise HTTPException(status_code=400, detail="Colleague must be a coach")
    await repositories.link_colleague(client_id, payload.coach_id)
    return {"ok": True}


@router.delete("/v1/coach/clients/{client_id}/coaches/{coach_id}")
async def unlink_colleague(client_id: str, coach_id: str, session: SessionContext = Depends(require_coach)):
    await ensure_coach_of(session, client_id)
    await repositories.unlink_colleague(client_id, coach_id)
    return {"ok": True}


@router.get("/v1/coach/coaches/search")
async def search_coaches(q: str = Query(""), session: SessionContext = Depends(require_coach)):
    return {"items": await repositories.search_coaches(q, session.user_id)}
