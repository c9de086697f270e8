from __future__ import annotations

import re
from datetime import datetime
from zoneinfo import ZoneInfo

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(:[0-5]\d)?$")


def normalize_hhmm(value: str) -> str:
    """Return ``HH:MM`` for a valid clock time, dropping any seconds part."""
    text = str(value or "").strip()
    match = _HHMM.match(text)
    if not match:
        raise ValueError("Time must use the HH:MM format")
    return f"{match.group(1)}:{match.group(2)}"


def current_hhmm(timezone_name: str, now: datetime | None = None) -> str:
    tz = ZoneInfo(timezone_name)
    moment = now.astimezone(tz) if now else datetime.now(tz)
    return moment.strftime("%H:%M")


def resolve_time(timezone_name: str, override: str | None = None, now: datetime | None = None) -> str:
    if override:
        return normalize_hhmm(override)
    return current_hhmm(timezone_name, now)


def shares_hour(alert_times: list[str] | None, time_str: str) -> bool:
    hour = time_str.split(":")[0]
    return any(str(item).startswith(hour) for item in alert_times or [])
