from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from backend import repositories
from backend.settings import get_settings

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

RECOVERY_METHODS = {"recovery", "otp"}


@dataclass
class SessionContext:
    user_id: str
    email: str | None
    profile: dict | None = None
    access_token: str | None = field(default=None, repr=False)
    claims: dict = field(default_factory=dict, repr=False)

    @property
    def role(self) -> str | None:
        return (self.profile or {}).get("role")

    @property
    def auth_methods(self) -> set[str]:
        """Sign-in methods recorded in the token's `amr` claim."""
        methods = set()
        for entry in self.claims.get("amr") or []:
            method = entry.get("method") if isinstance(entry, dict) else entry
            if method:
                methods.add(method)
        return methods

    @property
    def is_recovery(self) -> bool:
        return bool(self.auth_methods & RECOVERY_METHODS)


def decode_access_token(token: str) -> dict:
    """Verify a platform access token and return its claims."""
    settings = get_settings()
    return jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=["HS256"],
        options={"verify_aud": False},
    )


async def get_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> SessionContext | None:
    if not credentials or not credentials.credentials:
        return None
    try:
        claims = decode_access_token(credentials.credentials)
    except JWTError as exc:
        logger.info("Rejected access token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid access token") from exc
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid access token")
    profile = await repositories.get_profile(user_id)
    return SessionContext(
        user_id=user_id,
        email=claims.get("email") or (profile or {}).get("email"),
        profile=profile,
        access_token=credentials.credentials,
        claims=claims,
    )


async def require_session(session: SessionContext | None = Depends(get_session)) -> SessionContext:
    if session is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if not session.profile:
        raise HTTPException(status_code=401, detail="Profile not found")
    return session
