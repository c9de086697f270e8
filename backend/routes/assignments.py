from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from backend import repositories
from backend.auth import SessionContext
from backend.guards import require_coach, require_active_subscription, ensure_coach_of
from backend.schemas import AssignmentCreate, AssignmentPatch, AssignmentTogglePayload
from backend.selection import ALL_PLANS, load_client_selection

router = APIRouter()


async def _owned_assignment(assignment_id: str, session: SessionContext) -> dict:
    assignment = await repositories.get_assignment(assignment_id)
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")
    if assignment.get("coach_id") != session.user_id:
        await ensure_coach_of(session, assignment["client_id"])
    return assignment


@router.get("/v1/coach/clients/{client_id}/assignments")
async def list_assignments(
    client_id: str,
    plan_id: str | None = Query(None),
    session: SessionContext = Depends(require_coach),
):
    await ensure_coach_of(session, client_id)
    return {"items": await repositories.list_assignments(client_id, plan_id)}


@router.post("/v1/coach/clients/{client_id}/assignments")
async def create_assignment(client_id: str, payload: AssignmentCreate, session: SessionContext = Depends(require_coach)):
    await ensure_coach_of(session, client_id)
    data = payload.model_dump()
    try:
        return await repositories.create_assignment(session.user_id, client_id, data.pop("plan_id"), data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.patch("/v1/coach/assignments/{assignment_id}")
async def update_assignment(assignment_id: str, payload: AssignmentPatch, session: SessionContext = Depends(require_coach)):
    await _owned_assignment(assignment_id, session)
    try:
        return await repositories.update_assignment(assignment_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/v1/coach/assignments/{assignment_id}")
async def delete_assignment(assignment_id: str, session: SessionContext = Depends(require_coach)):
    await _owned_assignment(assignment_id, session)
    await repositories.delete_assignment(assignment_id)
    return {"ok": True}


@router.get("/v1/assignments")
async def list_client_assignments(
    type: str | None = Query(None),
    plan_id: str = Query(ALL_PLANS),
    session: SessionContext = Depends(require_active_subscription),
):
    try:
        selection = await load_client_selection(session.user_id, plan_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    items = await repositories.list_client_assignments(session.user_id, type)
    return {"items": selection.filter(items), "selected_plan_id": selection.selected_plan_id}


@router.post("/v1/assignments/{assignment_id}/toggle")
async def toggle_assignment(
    assignment_id: str,
    payload: AssignmentTogglePayload,
    session: SessionContext = Depends(require_active_subscription),
):
    completed = not payload.current
    if not await repositories.set_assignment_completed(assignment_id, session.user_id, completed):
        raise HTTPException(status_code=404, detail="Assignment not found")
    return {"id": assignment_id, "completed": completed}
