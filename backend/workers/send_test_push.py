"""Send a test notification to one user, looked up by e-mail.

Usage: ``python -m backend.workers.send_test_push someone@example.com``
"""
from __future__ import annotations

import asyncio
import logging
import os
import sys

import httpx
from pydantic import ValidationError

from backend import repositories
from backend.db import dispose_engine
from backend.services.functions_client import PUSH_DISPATCHER, FunctionInvokeError, invoke_function
from backend.settings import get_settings

logger = logging.getLogger(__name__)

TEST_TITLE = "Test Notifica 🔔"
TEST_BODY = "Se leggi questo, le notifiche funzionano!"


async def send_test(email: str) -> int:
    try:
        profile = await repositories.get_profile_by_email(email)
    finally:
        await dispose_engine()
    if not profile:
        logger.error("User not found in profiles: %s", email)
        return 1
    try:
        result = await invoke_function(
            PUSH_DISPATCHER,
            {"type": "direct", "user_id": profile["id"], "title": TEST_TITLE, "body": TEST_BODY, "url": "/profile"},
        )
    except (FunctionInvokeError, httpx.HTTPError) as exc:
        logger.error("Dispatch failed: %s", exc)
        return 1
    logger.info("Dispatch result: %s", result)
    return 0


def main(argv: list[str]) -> int:
    logging.basicConfig(
        level=os.getenv("BACKEND_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    if len(argv) < 2:
        logger.error("Usage: python -m backend.workers.send_test_push <email>")
        return 2
    try:
        get_settings()
    except ValidationError as exc:
        logger.error("Missing platform URL or key: %s", exc)
        return 1
    return asyncio.run(send_test(argv[1]))


if __name__ == "__main__":
    sys.exit(main(sys.argv))
