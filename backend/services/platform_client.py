from __future__ import annotations

import asyncio
import logging

from supabase import Client, create_client

from backend.settings import get_settings

logger = logging.getLogger(__name__)

_admin_client: Client | None = None


class PlatformAuthError(Exception):
    pass


def _anon_client() -> Client:
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_anon_key)


def get_admin_client() -> Client:
    global _admin_client
    if _admin_client is None:
        settings = get_settings()
        _admin_client = create_client(settings.supabase_url, settings.service_key)
    return _admin_client


def reset_clients() -> None:
    global _admin_client
    _admin_client = None


def _sign_in(email: str, password: str) -> dict:
    response = _anon_client().auth.sign_in_with_password({"email": email, "password": password})
    if not response.session or not response.user:
        raise PlatformAuthError("Invalid login credentials")
    return {
        "access_token": response.session.access_token,
        "refresh_token": response.session.refresh_token,
        "user_id": response.user.id,
        "email": response.user.email,
    }


async def sign_in(email: str, password: str) -> dict:
    try:
        return await asyncio.to_thread(_sign_in, email.strip().lower(), password)
    except PlatformAuthError:
        raise
    except Exception as exc:
        logger.info("Sign-in failed for %s: %s", email, exc)
        raise PlatformAuthError("Invalid login credentials") from exc


async def sign_out(access_token: str) -> None:
    await asyncio.to_thread(get_admin_client().auth.admin.sign_out, access_token)


async def send_password_reset(email: str) -> None:
    settings = get_settings()
    redirect_to = f"{settings.app_base_url.rstrip('/')}/reset-password"
    await asyncio.to_thread(
        _anon_client().auth.reset_password_for_email,
        email.strip().lower(),
        {"redirect_to": redirect_to},
    )


async def update_password(user_id: str, new_password: str) -> None:
    await asyncio.to_thread(
        get_admin_client().auth.admin.update_user_by_id,
        user_id,
        {"password": new_password},
    )


async def change_password(user_id: str, email: str, current_password: str, new_password: str) -> None:
    """Re-authenticate with the current password before setting a new one."""
    await sign_in(email, current_password)
    await update_password(user_id, new_password)


async def update_email(user_id: str, email: str) -> None:
    await asyncio.to_thread(
        get_admin_client().auth.admin.update_user_by_id,
        user_id,
        {"email": email.strip().lower()},
    )


async def call_rpc(name: str, params: dict | None = None):
    response = await asyncio.to_thread(lambda: get_admin_client().rpc(name, params or {}).execute())
    return response.data


def _upload(bucket: str, path: str, data: bytes, content_type: str | None) -> str:
    storage = get_admin_client().storage.from_(bucket)
    file_options = {"cache-control": "3600", "upsert": "false"}
    if content_type:
        file_options["content-type"] = content_type
    storage.upload(path=path, file=data, file_options=file_options)
    return storage.get_public_url(path)


async def upload_object(bucket: str, path: str, data: bytes, content_type: str | None = None) -> str:
    return await asyncio.to_thread(_upload, bucket, path, data, content_type)


async def remove_objects(bucket: str, paths: list[str]) -> None:
    await asyncio.to_thread(get_admin_client().storage.from_(bucket).remove, paths)
