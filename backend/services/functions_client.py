from __future__ import annotations

import logging

import httpx

from backend.settings import get_settings

logger = logging.getLogger(__name__)

PUSH_DISPATCHER = "push-dispatcher"
PUSH_SCHEDULER = "push-scheduler"


class FunctionInvokeError(RuntimeError):
    def __init__(self, name: str, status_code: int, detail: str):
        super().__init__(f"{name} failed with {status_code}: {detail}")
        self.name = name
        self.status_code = status_code
        self.detail = detail


async def invoke_function(name: str, body: dict, timeout: float = 20) -> dict:
    settings = get_settings()
    url = f"{settings.functions_base_url}/{name}"
    headers = {
        "Authorization": f"Bearer {settings.supabase_anon_key}",
        "apikey": settings.supabase_anon_key,
        "Content-Type": "application/json",
    }
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.post(url, json=body, headers=headers)
    if response.status_code >= 300:
        raise FunctionInvokeError(name, response.status_code, response.text)
    if not response.content:
        return {}
    return response.json()


async def invoke_quietly(name: str, body: dict) -> dict | None:
    """Fire-and-forget invocation: failures are logged, never raised."""
    try:
        return await invoke_function(name, body)
    except (FunctionInvokeError, httpx.HTTPError) as exc:
        logger.error("Invoking %s failed: %s", name, exc)
        return None
