from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse

from backend.functions.push_dispatcher import DispatchError, dispatch
from backend.functions.push_scheduler import run_scheduler
from backend.schemas import DispatchRequest, SchedulerRequest
from backend.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


async def require_function_key(
    authorization: str | None = Header(default=None),
    apikey: str | None = Header(default=None),
) -> None:
    settings = get_settings()
    accepted = {key for key in (settings.supabase_anon_key, settings.supabase_service_role_key) if key}
    bearer = (authorization or "").removeprefix("Bearer ").strip()
    if bearer not in accepted and (apikey or "") not in accepted:
        raise HTTPException(status_code=401, detail="Invalid function key")


@router.post("/functions/v1/push-dispatcher", dependencies=[Depends(require_function_key)])
async def push_dispatcher(payload: DispatchRequest):
    try:
        return await dispatch(payload.model_dump(exclude_none=True))
    except ValueError as exc:
        return JSONResponse(status_code=DispatchError.status_code, content={"error": str(exc)})
    except Exception as exc:
        logger.exception("push-dispatcher failed: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})


@router.post("/functions/v1/push-scheduler", dependencies=[Depends(require_function_key)])
async def push_scheduler(payload: SchedulerRequest | None = None):
    try:
        return await run_scheduler((payload.time_override if payload else None))
    except ValueError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except Exception as exc:
        logger.exception("push-scheduler failed: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})
