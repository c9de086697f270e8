from __future__ import annotations

from fastapi import Depends, HTTPException

from backend import repositories
from backend.auth import SessionContext, require_session
from backend.completions import today_iso

SUBSCRIPTION_EXPIRED_REDIRECT = "/scaduto"


class SubscriptionExpired(Exception):
    """Raised for clients without an active plan; rendered as a 402 by the app."""

    status_code = 402

    def payload(self) -> dict:
        return {"detail": "Subscription expired", "redirect": SUBSCRIPTION_EXPIRED_REDIRECT}


async def require_coach(session: SessionContext = Depends(require_session)) -> SessionContext:
    if session.role != "coach":
        raise HTTPException(status_code=403, detail="Coach role required")
    return session


async def require_admin(session: SessionContext = Depends(require_session)) -> SessionContext:
    if session.role != "admin":
        raise HTTPException(status_code=403, detail="Admin role required")
    return session


async def require_coach_or_admin(session: SessionContext = Depends(require_session)) -> SessionContext:
    if session.role not in {"coach", "admin"}:
        raise HTTPException(status_code=403, detail="Coach or admin role required")
    return session


async def require_active_subscription(session: SessionContext = Depends(require_session)) -> SessionContext:
    """Clients need at least one active plan; coaches and admins always pass."""
    if session.role in {"coach", "admin"}:
        return session
    plans = await repositories.list_active_plans(session.user_id, today_iso())
    if not plans:
        raise SubscriptionExpired()
    return session


async def ensure_coach_of(session: SessionContext, client_id: str) -> None:
    if not await repositories.is_coach_of(session.user_id, client_id):
        raise HTTPException(status_code=403, detail="Client not linked to this coach")
