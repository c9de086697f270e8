"""Page routing and access decisions for the Streamlit UI.

Everything here is pure: given a path and what is known about the signed-in
user, decide which page renders or where to redirect.
"""
from __future__ import annotations

from dataclasses import dataclass, field

LOGIN = "/login"
HOME = "/"
EXPIRED = "/scaduto"
COACH_HOME = "/coach/dashboard"
ADMIN_HOME = "/admin/dashboard"

PUBLIC_PAGES = {
    "/login": "login",
    "/reset-password": "reset_password",
    "/scaduto": "expired",
}
CLIENT_PAGES = {
    "/": "client_dashboard",
    "/habits": "client_habits",
    "/videos": "client_videos",
    "/profile": "settings",
}
COACH_PAGES = {
    "/coach/dashboard": "coach_dashboard",
    "/coach/clients": "coach_clients",
    "/coach/library": "coach_library",
    "/coach/board": "coach_board",
    "/coach/settings": "settings",
}
ADMIN_PAGES = {
    "/admin/dashboard": "admin_dashboard",
    "/admin/coaches": "admin_coaches",
    "/admin/clients": "admin_clients",
    "/admin/content": "admin_content",
}
SECTION_INDEX = {"/coach": COACH_HOME, "/admin": ADMIN_HOME}
CLIENT_DETAIL_PREFIX = "/coach/clients/"


@dataclass
class RouteDecision:
    action: str
    target: str
    page: str | None = None
    params: dict = field(default_factory=dict)

    @property
    def allowed(self) -> bool:
        return self.action == "allow"


def _allow(path: str, page: str, params: dict | None = None) -> RouteDecision:
    return RouteDecision("allow", path, page, params or {})


def _redirect(target: str) -> RouteDecision:
    return RouteDecision("redirect", target)


def normalize_path(path: str | None) -> str:
    path = (path or "").split("?")[0].split("#")[0].strip()
    if not path.startswith("/"):
        path = "/" + path
    while len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path


def subscription_guard(profile: dict | None, subscription_active: bool) -> str | None:
    if not profile:
        return LOGIN
    if profile.get("role") in {"coach", "admin"}:
        return None
    if not subscription_active:
        return EXPIRED
    return None


def coach_guard(profile: dict | None) -> str | None:
    if not profile:
        return LOGIN
    if profile.get("role") != "coach":
        return HOME
    return None


def admin_guard(profile: dict | None) -> str | None:
    if not profile or profile.get("role") != "admin":
        return LOGIN
    return None


def match_page(path: str) -> tuple[str | None, str | None, dict]:
    """Return ``(section, page, params)`` for a normalized path."""
    if path in PUBLIC_PAGES:
        return "public", PUBLIC_PAGES[path], {}
    if path in CLIENT_PAGES:
        return "client", CLIENT_PAGES[path], {}
    if path in COACH_PAGES:
        return "coach", COACH_PAGES[path], {}
    if path.startswith(CLIENT_DETAIL_PREFIX):
        client_id = path[len(CLIENT_DETAIL_PREFIX):]
        if client_id and "/" not in client_id:
            return "coach", "coach_client_detail", {"client_id": client_id}
    if path in ADMIN_PAGES:
        return "admin", ADMIN_PAGES[path], {}
    return None, None, {}


def resolve_route(path: str | None, profile: dict | None = None, subscription_active: bool = False) -> RouteDecision:
    path = normalize_path(path)
    if path in SECTION_INDEX:
        return _redirect(SECTION_INDEX[path])
    section, page, params = match_page(path)
    if section is None:
        return _redirect(HOME)
    if section == "public":
        return _allow(path, page)
    if section == "client":
        redirect = subscription_guard(profile, subscription_active)
    elif section == "coach":
        redirect = coach_guard(profile)
    else:
        redirect = admin_guard(profile)
    if redirect:
        return _redirect(redirect)
    return _allow(path, page, params)


def home_for(profile: dict | None) -> str:
    role = (profile or {}).get("role")
    if role == "coach":
        return COACH_HOME
    if role == "admin":
        return ADMIN_HOME
    return HOME
