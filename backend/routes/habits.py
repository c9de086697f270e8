from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query

from backend import repositories
from backend.auth import SessionContext
from backend.completions import completion_counts_by_date, completions_for_date
from backend.guards import require_coach, require_active_subscription, ensure_coach_of
from backend.schemas import CompletionTogglePayload
from backend.selection import ALL_PLANS, load_client_selection

router = APIRouter()

HEATMAP_DAYS = 90


@router.get("/v1/completions")
async def list_completions(
    start: date = Query(...),
    end: date = Query(...),
    session: SessionContext = Depends(require_active_subscription),
):
    if end < start:
        raise HTTPException(status_code=400, detail="End date must be after start date")
    items = await repositories.list_completions(session.user_id, start.isoformat(), end.isoformat())
    return {"items": items}


@router.post("/v1/completions/toggle")
async def toggle_completion(payload: CompletionTogglePayload, session: SessionContext = Depends(require_active_subscription)):
    assignment = await repositories.get_assignment(payload.assignment_id)
    if not assignment or assignment.get("client_id") != session.user_id:
        raise HTTPException(status_code=404, detail="Assignment not found")
    day = (payload.day or date.today()).isoformat()
    completed = await repositories.toggle_completion(session.user_id, payload.assignment_id, day)
    return {"assignment_id": payload.assignment_id, "date": day, "completed": completed}


@router.get("/v1/habits")
async def habits_overview(
    day: date | None = Query(None),
    plan_id: str = Query(ALL_PLANS),
    days: int = Query(HEATMAP_DAYS, ge=1, le=366),
    session: SessionContext = Depends(require_active_subscription),
):
    try:
        selection = await load_client_selection(session.user_id, plan_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    target = day or date.today()
    habits = selection.filter(await repositories.list_client_assignments(session.user_id, "habit"))
    start = (target - timedelta(days=days - 1)).isoformat()
    completions = await repositories.list_completions(session.user_id, start, target.isoformat())
    done_today = {row["assignment_id"] for row in completions_for_date(completions, target.isoformat())}
    return {
        "date": target.isoformat(),
        "selected_plan_id": selection.selected_plan_id,
        "plans": selection.plans,
        "habits": [{**habit, "done": habit["id"] in done_today} for habit in habits],
        "counts_by_date": completion_counts_by_date(completions),
    }


@router.get("/v1/coach/clients/{client_id}/completions")
async def client_completions(
    client_id: str,
    start: date = Query(...),
    end: date = Query(...),
    session: SessionContext = Depends(require_coach),
):
    await ensure_coach_of(session, client_id)
    items = await repositories.list_completions(client_id, start.isoformat(), end.isoformat())
    return {"items": items, "counts_by_date": completion_counts_by_date(items)}
