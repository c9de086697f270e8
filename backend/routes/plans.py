from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from backend import repositories
from backend.auth import SessionContext
from backend.guards import require_coach, ensure_coach_of
from backend.plans import validate_plan_dates
from backend.schemas import PlanCreate, PlanPatch

router = APIRouter()


@router.get("/v1/coach/clients/{client_id}/plans")
async def list_client_plans(client_id: str, session: SessionContext = Depends(require_coach)):
    await ensure_coach_of(session, client_id)
    return {"items": await repositories.list_plans(client_id=client_id)}


@router.post("/v1/coach/plans")
async def create_plan(payload: PlanCreate, session: SessionContext = Depends(require_coach)):
    await ensure_coach_of(session, payload.client_id)
    try:
        validate_plan_dates(payload.start_date, payload.end_date)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return await repositories.create_plan(session.user_id, payload.model_dump())


@router.patch("/v1/coach/plans/{plan_id}")
async def update_plan(plan_id: str, payload: PlanPatch, session: SessionContext = Depends(require_coach)):
    existing = await repositories.get_plan(plan_id)
    if not existing or existing.get("coach_id") != session.user_id:
        raise HTTPException(status_code=404, detail="Plan not found")
    patch = payload.model_dump(exclude_unset=True)
    try:
        validate_plan_dates(patch.get("start_date", existing.get("start_date")), patch.get("end_date", existing.get("end_date")))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    plan = await repositories.update_plan(plan_id, session.user_id, patch)
    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")
    return plan


@router.delete("/v1/coach/plans/{plan_id}")
async def delete_plan(plan_id: str, session: SessionContext = Depends(require_coach)):
    if not await repositories.delete_plan(plan_id, session.user_id):
        raise HTTPException(status_code=404, detail="Plan not found")
    return {"ok": True}
