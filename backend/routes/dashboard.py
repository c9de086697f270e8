from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from backend import repositories
from backend.auth import SessionContext
from backend.completions import today_iso
from backend.guards import require_coach, require_active_subscription
from backend.plans import coach_client_stats
from backend.selection import ALL_PLANS, assignment_stats, load_client_selection

router = APIRouter()


@router.get("/v1/dashboard")
async def client_dashboard(
    plan_id: str = Query(ALL_PLANS),
    session: SessionContext = Depends(require_active_subscription),
):
    try:
        selection = await load_client_selection(session.user_id, plan_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    today = today_iso()
    client_info = await repositories.get_client_info(session.user_id)
    upcoming = await repositories.list_upcoming_assignments(session.user_id, today)
    meta = await repositories.list_assignment_meta(session.user_id)

    coach_ids = selection.coach_ids
    primary_coach = (client_info or {}).get("coach_id")
    if primary_coach and primary_coach not in coach_ids:
        coach_ids.append(primary_coach)
    posts = await repositories.list_active_posts_for_coaches(coach_ids, datetime.utcnow().isoformat())

    return {
        "date": today,
        "plans": selection.plans,
        "selected_plan_id": selection.selected_plan_id,
        "client_info": client_info,
        "assignments": selection.filter(upcoming),
        "stats": assignment_stats(selection.filter(meta)),
        "board_posts": posts,
    }


@router.get("/v1/coach/dashboard")
async def coach_dashboard(session: SessionContext = Depends(require_coach)):
    clients = await repositories.list_coach_clients(session.user_id)
    return {
        "profile": session.profile,
        "stats": coach_client_stats(clients),
        "board_posts": await repositories.list_board_posts_for_coach(session.user_id),
    }
