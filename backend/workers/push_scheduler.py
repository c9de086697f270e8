from __future__ import annotations

import asyncio
import logging
import os
import sys

from pydantic import ValidationError

from backend.functions.push_scheduler import run_scheduler
from backend.settings import get_settings

logger = logging.getLogger(__name__)

INTERVAL_SECONDS = 60


async def process_once() -> dict | None:
    try:
        result = await run_scheduler()
    except Exception as exc:
        logger.exception("Scheduler run failed: %s", exc)
        return None
    logger.info("Scheduler result: %s", result)
    return result


async def run_forever() -> None:
    while True:
        await process_once()
        await asyncio.sleep(INTERVAL_SECONDS)


def main() -> int:
    logging.basicConfig(
        level=os.getenv("BACKEND_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    try:
        settings = get_settings()
    except ValidationError as exc:
        logger.error("Missing platform configuration: %s", exc)
        return 1
    if not settings.supabase_url or not settings.supabase_anon_key:
        logger.error("Missing platform URL or key")
        return 1
    asyncio.run(run_forever())
    return 0


if __name__ == "__main__":
    sys.exit(main())
