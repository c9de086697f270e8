"""Fan-out of push messages: direct, broadcast, coach announcement and daily reminder."""
from __future__ import annotations

import logging

from backend import repositories
from backend.notifications.times import resolve_time, shares_hour
from backend.services import push_service
from backend.settings import get_settings

logger = logging.getLogger(__name__)

REMINDER_PAYLOAD = {
    "title": "È ora della tua attività! 💪",
    "body": "Ricordati di completare le tue abitudini oggi.",
    "url": "/dashboard",
}


class DispatchError(ValueError):
    status_code = 400


def _payload(title: str, body: str, url: str | None) -> dict:
    payload = {"title": title, "body": body}
    if url:
        payload["url"] = url
    return payload


async def _direct(request: dict) -> dict:
    user_id, title, body = request.get("user_id"), request.get("title"), request.get("body")
    if not user_id or not title or not body:
        raise DispatchError("Missing required fields")
    await push_service.send_to_users([user_id], _payload(title, body, request.get("url")))
    return {"message": "Notification sent"}


async def _broadcast(request: dict) -> dict:
    title, body = request.get("title"), request.get("body")
    if not title or not body:
        raise DispatchError("Missing required fields")
    subscriptions = await repositories.list_push_subscriptions()
    await push_service.deliver(subscriptions, _payload(title, body, request.get("url")))
    return {"message": f"Broadcast sent to {len(subscriptions)} devices"}


async def _announcement(request: dict) -> dict:
    coach_id, title, body = request.get("coach_id"), request.get("title"), request.get("body")
    if not coach_id or not title or not body:
        raise DispatchError("Missing coach_id, title or body")
    recipients = list(request.get("target_client_ids") or [])
    if not recipients:
        recipients = await repositories.list_linked_client_ids(coach_id)
    if not recipients:
        return {"message": "No recipients found"}
    subscriptions = await repositories.list_push_subscriptions(recipients)
    if not subscriptions:
        return {"message": "No subscriptions found for recipients"}
    await push_service.deliver(subscriptions, _payload(title, body, request.get("url")))
    return {"message": f"Announcement sent to {len(subscriptions)} devices"}


async def _cron(request: dict) -> dict:
    time_str = resolve_time(get_settings().push_timezone, request.get("simulated_time"))
    logger.info("Running reminder cron for %s", time_str)
    settings_rows = await repositories.list_enabled_alert_settings()
    user_ids = [row["user_id"] for row in settings_rows if shares_hour(row.get("alert_times"), time_str)]
    for user_id in user_ids:
        await push_service.send_to_users([user_id], dict(REMINDER_PAYLOAD))
    return {"message": f"Cron processed. Sent {len(user_ids)} notifications."}


HANDLERS = {
    "direct": _direct,
    "broadcast": _broadcast,
    "announcement": _announcement,
    "cron": _cron,
}


async def dispatch(request: dict) -> dict:
    handler = HANDLERS.get((request or {}).get("type"))
    if handler is None:
        raise DispatchError("Invalid type")
    return await handler(request)
