from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from backend import repositories
from backend.completions import today_iso

ALL_PLANS = "all"


@dataclass
class CoachSelection:
    """Plan filter shared by the client pages.

    ``plans`` holds the client's active plans (newest first); the selection is
    either ``"all"`` or one of their ids.
    """

    plans: list[dict] = field(default_factory=list)
    selected_plan_id: str = ALL_PLANS

    def select(self, plan_id: str | None) -> None:
        plan_id = plan_id or ALL_PLANS
        if plan_id != ALL_PLANS and plan_id not in self.plan_ids:
            raise ValueError("Unknown plan")
        self.selected_plan_id = plan_id

    @property
    def plan_ids(self) -> list[str]:
        return [str(plan.get("id")) for plan in self.plans]

    @property
    def coach_ids(self) -> list[str]:
        seen: list[str] = []
        for plan in self.plans:
            coach_id = plan.get("coach_id")
            if coach_id and coach_id not in seen:
                seen.append(coach_id)
        return seen

    def filter(self, items: Iterable[dict]) -> list[dict]:
        items = list(items or [])
        if self.selected_plan_id == ALL_PLANS:
            return items
        return [item for item in items if item.get("plan_id") == self.selected_plan_id]


def assignment_stats(assignments_meta: Iterable[dict]) -> dict:
    assignments_meta = list(assignments_meta or [])
    habit_contents = {
        item.get("content_id")
        for item in assignments_meta
        if item.get("type") == "habit" and item.get("content_id")
    }
    pending_videos = [
        item for item in assignments_meta if item.get("type") == "video" and not item.get("completed")
    ]
    return {"habits": len(habit_contents), "videos": len(pending_videos)}


async def load_client_selection(client_id: str, selected_plan_id: str | None = None) -> CoachSelection:
    plans = await repositories.list_active_plans(client_id, today_iso())
    selection = CoachSelection(plans=plans)
    selection.select(selected_plan_id)
    return selection
