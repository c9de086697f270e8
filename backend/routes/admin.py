from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend import repositories
from backend.auth import SessionContext
from backend.completions import today_iso
from backend.guards import require_admin, require_coach_or_admin
from backend.schemas import CoachCreate
from backend.services import library_service, platform_client

logger = logging.getLogger(__name__)

router = APIRouter()

UNASSIGNED_COACH = "Unassigned"
UNKNOWN_AUTHOR = "Unknown Helper"


def normalize_system_stats(data) -> dict:
    result = data[0] if isinstance(data, list) and data else data
    result = result if isinstance(result, dict) else {}
    return {
        "db_size": float(result.get("db_size") or 0),
        "storage_size": float(result.get("storage_size") or 0),
        "user_count": int(result.get("user_count") or 0),
    }


@router.get("/v1/admin/stats")
async def admin_stats(session: SessionContext = Depends(require_admin)):
    return {
        "coaches": await repositories.count_profiles("coach"),
        "clients": await repositories.count_profiles("client"),
        "active_plans": await repositories.count_active_plans(today_iso()),
    }


@router.get("/v1/admin/coaches")
async def list_coaches(session: SessionContext = Depends(require_admin)):
    return {"items": await repositories.list_profiles_by_role("coach")}


@router.post("/v1/admin/coaches")
async def create_coach(payload: CoachCreate, session: SessionContext = Depends(require_admin)):
    try:
        await platform_client.call_rpc(
            "create_coach_user",
            {"email": payload.email.strip().lower(), "password": payload.password, "full_name": payload.full_name.strip()},
        )
    except Exception as exc:
        logger.error("create_coach_user failed for %s: %s", payload.email, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"ok": True}


@router.delete("/v1/admin/coaches/{coach_id}")
async def delete_coach(coach_id: str, session: SessionContext = Depends(require_admin)):
    await repositories.delete_profile(coach_id)
    return {"ok": True}


@router.get("/v1/admin/clients")
async def list_clients(session: SessionContext = Depends(require_admin)):
    clients = await repositories.list_profiles_by_role("client")
    coach_names = await repositories.list_client_coach_names()
    return {"items": [{**client, "coach_name": coach_names.get(client["id"]) or UNASSIGNED_COACH} for client in clients]}


@router.delete("/v1/admin/clients/{client_id}")
async def delete_client(client_id: str, session: SessionContext = Depends(require_admin)):
    await repositories.delete_profile(client_id)
    return {"ok": True}


@router.get("/v1/admin/content")
async def list_content(session: SessionContext = Depends(require_admin)):
    items = await repositories.list_content()
    return {"items": [{**item, "coach_name": item.get("coach_name") or UNKNOWN_AUTHOR} for item in items]}


@router.delete("/v1/admin/content/{content_id}")
async def delete_content(content_id: str, session: SessionContext = Depends(require_admin)):
    try:
        await library_service.delete_content(content_id)
    except library_service.ContentInUse as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"ok": True}


@router.get("/v1/system/stats")
async def system_stats(session: SessionContext = Depends(require_coach_or_admin)):
    data = await platform_client.call_rpc("get_system_stats")
    return normalize_system_stats(data)
