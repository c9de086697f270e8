"""Evaluates coach notification rules for the current minute."""
from __future__ import annotations

import logging
from datetime import datetime

from backend import repositories
from backend.notifications.times import resolve_time
from backend.notifications.worker import DEFAULT_TITLE
from backend.services import push_service
from backend.settings import get_settings

logger = logging.getLogger(__name__)


async def rule_recipients(rule: dict) -> list[str]:
    if rule.get("client_id"):
        return [rule["client_id"]]
    primary = await repositories.list_primary_client_ids(rule["coach_id"])
    linked = await repositories.list_linked_client_ids(rule["coach_id"])
    return list(dict.fromkeys([*primary, *linked]))


async def run_scheduler(time_override: str | None = None, now: datetime | None = None) -> dict:
    time_str = resolve_time(get_settings().push_timezone, time_override, now)
    logger.info("Processing notification rules for %s", time_str)
    rules = await repositories.list_rules_at(time_str)
    if not rules:
        return {"message": "No rules for this time", "time": time_str}

    sent = 0
    failed = 0
    for rule in rules:
        targets = await rule_recipients(rule)
        if not targets:
            continue
        enabled = await repositories.filter_alerts_enabled(targets)
        if not enabled:
            continue
        subscriptions = await repositories.list_push_subscriptions(enabled)
        if not subscriptions:
            continue
        ok, ko = await push_service.deliver(subscriptions, {"title": DEFAULT_TITLE, "body": rule["message"]})
        sent += ok
        failed += ko
    return {"message": "Notifications processed", "time": time_str, "sent": sent, "failed": failed}
