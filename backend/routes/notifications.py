from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from backend import repositories
from backend.auth import SessionContext
from backend.guards import require_coach, ensure_coach_of
from backend.schemas import NotificationRulePayload

router = APIRouter()


@router.get("/v1/coach/notification-rules")
async def list_rules(client_id: str | None = Query(None), session: SessionContext = Depends(require_coach)):
    if client_id:
        await ensure_coach_of(session, client_id)
    return {"items": await repositories.list_rules(session.user_id, client_id)}


@router.post("/v1/coach/notification-rules")
async def create_rule(payload: NotificationRulePayload, session: SessionContext = Depends(require_coach)):
    if payload.client_id:
        await ensure_coach_of(session, payload.client_id)
    return await repositories.create_rule(session.user_id, payload.client_id, payload.scheduled_time, payload.message)


@router.put("/v1/coach/notification-rules/{rule_id}")
async def update_rule(rule_id: str, payload: NotificationRulePayload, session: SessionContext = Depends(require_coach)):
    rule = await repositories.update_rule(rule_id, session.user_id, payload.scheduled_time, payload.message)
    if not rule:
        raise HTTPException(status_code=404, detail="Rule not found")
    return rule


@router.delete("/v1/coach/notification-rules/{rule_id}")
async def delete_rule(rule_id: str, session: SessionContext = Depends(require_coach)):
    if not await repositories.delete_rule(rule_id, session.user_id):
        raise HTTPException(status_code=404, detail="Rule not found")
    return {"ok": True}
