from __future__ import annotations

import asyncio
import json
import logging

from pywebpush import webpush, WebPushException

from backend import repositories
from backend.settings import get_settings

logger = logging.getLogger(__name__)

GONE_STATUS_CODES = {404, 410}


class PushDeliveryError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _send(subscription: dict, payload: dict) -> None:
    settings = get_settings()
    if not settings.vapid_configured:
        raise PushDeliveryError("VAPID keys not set")
    try:
        webpush(
            subscription_info=subscription,
            data=json.dumps(payload),
            vapid_private_key=settings.vapid_private_key,
            vapid_claims=dict(settings.vapid_claims),
        )
    except WebPushException as exc:
        status_code = getattr(exc.response, "status_code", None)
        raise PushDeliveryError(str(exc), status_code=status_code) from exc


async def send_push(subscription: dict, payload: dict) -> None:
    await asyncio.to_thread(_send, subscription, payload)


async def _deliver_one(row: dict, payload: dict) -> bool:
    try:
        await send_push(row.get("subscription") or {}, payload)
        return True
    except PushDeliveryError as exc:
        if exc.status_code in GONE_STATUS_CODES:
            logger.info("Subscription %s expired for user %s, removing", row.get("id"), row.get("user_id"))
            try:
                await repositories.delete_push_subscription(row["id"])
            except Exception:
                logger.exception("Failed to remove subscription %s", row.get("id"))
        else:
            logger.error("Failed to send to user %s: %s", row.get("user_id"), exc)
        return False
    except Exception:
        logger.exception("Unexpected error sending to user %s", row.get("user_id"))
        return False


async def deliver(subscriptions: list[dict], payload: dict) -> tuple[int, int]:
    """Send ``payload`` to every subscription; returns ``(sent, failed)``."""
    if not subscriptions:
        return 0, 0
    results = await asyncio.gather(*[_deliver_one(row, payload) for row in subscriptions])
    sent = sum(1 for ok in results if ok)
    return sent, len(results) - sent


async def send_to_users(user_ids: list[str], payload: dict) -> tuple[int, int]:
    subscriptions = await repositories.list_push_subscriptions(list(user_ids))
    return await deliver(subscriptions, payload)
