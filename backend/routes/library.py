from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from backend import repositories
from backend.auth import SessionContext, require_session
from backend.guards import require_coach
from backend.schemas import ContentCreate, ContentPatch
from backend.services import library_service, storage_service, thumbnails

router = APIRouter()


@router.get("/v1/coach/library")
async def list_library(session: SessionContext = Depends(require_coach)):
    return {"items": await repositories.list_content(session.user_id)}


@router.post("/v1/coach/library")
async def add_content(payload: ContentCreate, session: SessionContext = Depends(require_coach)):
    data = payload.model_dump()
    if data["type"] == "video" and not data.get("thumbnail_url"):
        data["thumbnail_url"] = await thumbnails.resolve_thumbnail(data.get("link"))
    try:
        return await repositories.add_content(session.user_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


async def _owned_content(content_id: str, session: SessionContext) -> dict:
    content = await repositories.get_content(content_id)
    if not content or content.get("coach_id") != session.user_id:
        raise HTTPException(status_code=404, detail="Content not found")
    return content


@router.patch("/v1/coach/library/{content_id}")
async def update_content(content_id: str, payload: ContentPatch, session: SessionContext = Depends(require_coach)):
    await _owned_content(content_id, session)
    try:
        return await library_service.update_content(content_id, payload.model_dump(exclude_unset=True))
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/v1/coach/library/{content_id}")
async def delete_content(content_id: str, session: SessionContext = Depends(require_coach)):
    await _owned_content(content_id, session)
    try:
        await library_service.delete_content(content_id)
    except library_service.ContentInUse as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"ok": True}


@router.post("/v1/uploads")
async def upload(
    file: UploadFile = File(...),
    folder: str = Form("uploads"),
    session: SessionContext = Depends(require_session),
):
    data = await file.read()
    url = await storage_service.upload_file(data, file.filename or "upload.bin", folder=folder, content_type=file.content_type)
    if not url:
        raise HTTPException(status_code=502, detail="Upload failed")
    return {"url": url}


@router.get("/v1/thumbnails")
async def thumbnail_for_link(link: str = Query(...), session: SessionContext = Depends(require_session)):
    return {"thumbnail_url": await thumbnails.resolve_thumbnail(link)}
