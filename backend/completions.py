from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Iterable


def today_iso() -> str:
    return date.today().isoformat()


def completions_for_date(completions: Iterable[dict], day_iso: str) -> list[dict]:
    return [row for row in completions if row.get("completed_date") == day_iso]


def completion_counts_by_date(completions: Iterable[dict]) -> dict[str, int]:
    return dict(Counter(row.get("completed_date") for row in completions if row.get("completed_date")))


def is_completed_on(completions: Iterable[dict], assignment_id: str, day_iso: str) -> bool:
    return any(
        row.get("assignment_id") == assignment_id and row.get("completed_date") == day_iso
        for row in completions
    )


def find_completion(completions: Iterable[dict], assignment_id: str, day_iso: str) -> dict | None:
    for row in completions:
        if row.get("assignment_id") == assignment_id and row.get("completed_date") == day_iso:
            return row
    return None
