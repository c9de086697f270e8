from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable


def _date_part(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if not text:
        return None
    return text.split("T")[0][:10]


def _today_iso(today) -> str:
    if today is None:
        return date.today().isoformat()
    if isinstance(today, (date, datetime)):
        return _date_part(today)
    return str(today)[:10]


def is_plan_active(plan: dict, today=None) -> bool:
    """A plan is active when today falls in [start_date, end_date], both inclusive."""
    start = _date_part(plan.get("start_date"))
    end = _date_part(plan.get("end_date"))
    if not start or not end:
        return False
    today_iso = _today_iso(today)
    return start <= today_iso <= end


def find_active_plan(plans: Iterable[dict], today=None) -> dict | None:
    for plan in plans or []:
        if is_plan_active(plan, today):
            return plan
    return None


def active_plans(plans: Iterable[dict], today=None) -> list[dict]:
    return [plan for plan in plans or [] if is_plan_active(plan, today)]


def latest_plan_end(plans: Iterable[dict]) -> str | None:
    ends = [_date_part(plan.get("end_date")) for plan in plans or []]
    ends = [value for value in ends if value]
    return max(ends) if ends else None


def validate_plan_dates(start_date, end_date) -> None:
    start = _date_part(start_date)
    end = _date_part(end_date)
    if start and end and end < start:
        raise ValueError("End date must be after start date")


def coach_client_stats(clients: Iterable[dict], today=None, expiring_days: int = 7) -> dict:
    """Counts for the coach home: clients still subscribed and those ending within a week."""
    today_iso = _today_iso(today)
    horizon = (date.fromisoformat(today_iso) + timedelta(days=expiring_days)).isoformat()
    active = 0
    expiring = 0
    for client in clients or []:
        end = _date_part(client.get("subscription_end"))
        if not end or end < today_iso:
            continue
        active += 1
        if end < horizon:
            expiring += 1
    return {"active_clients": active, "expiring_clients": expiring}
