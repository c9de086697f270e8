from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from backend import repositories
from backend.auth import SessionContext
from backend.guards import require_coach, require_active_subscription
from backend.schemas import BoardPostCreate, BoardPostPatch
from backend.services import board_service

router = APIRouter()

POST_NOT_FOUND = "Post non trovato o non autorizzato."


@router.get("/v1/coach/board")
async def list_coach_posts(session: SessionContext = Depends(require_coach)):
    return {"items": await repositories.list_board_posts_for_coach(session.user_id)}


@router.post("/v1/coach/board")
async def create_post(
    payload: BoardPostCreate,
    background_tasks: BackgroundTasks,
    session: SessionContext = Depends(require_coach),
):
    try:
        post = await repositories.create_board_post(session.user_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    background_tasks.add_task(board_service.notify_announcement, session.user_id, post)
    return post


@router.patch("/v1/coach/board/{post_id}")
async def update_post(post_id: str, payload: BoardPostPatch, session: SessionContext = Depends(require_coach)):
    post = await repositories.update_board_post(post_id, session.user_id, payload.model_dump(exclude_unset=True))
    if not post:
        raise HTTPException(status_code=404, detail=POST_NOT_FOUND)
    return post


@router.delete("/v1/coach/board/{post_id}")
async def delete_post(post_id: str, session: SessionContext = Depends(require_coach)):
    if not await repositories.delete_board_post(post_id, session.user_id):
        raise HTTPException(status_code=404, detail=POST_NOT_FOUND)
    return {"ok": True}


@router.get("/v1/board")
async def list_client_posts(session: SessionContext = Depends(require_active_subscription)):
    return {"items": await repositories.list_board_posts_for_client(session.user_id)}
