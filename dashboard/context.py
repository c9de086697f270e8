from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class DashboardContext:
    """Per-run view of the signed-in user, rebuilt from the session state on every rerun."""

    payload: Dict[str, Any] = field(default_factory=dict)

    def get(self, key, default=None):
        return self.payload.get(key, default)

    def __getitem__(self, key):
        return self.payload[key]

    @property
    def profile(self):
        return self.payload.get("profile")

    @property
    def role(self):
        return (self.profile or {}).get("role")

    @property
    def user_id(self):
        return (self.payload.get("user") or {}).get("id")

    @property
    def subscription_active(self):
        return bool(self.payload.get("subscription_active"))

    @property
    def active_plans(self):
        return self.payload.get("active_plans") or []
