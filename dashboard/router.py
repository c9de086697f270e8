import logging

import streamlit as st

from dashboard import guards
from dashboard.navigation import current_path, navigate
from dashboard.data.api_client import ApiError
from dashboard.state import session_slices
from dashboard.views import admin_views, auth_views, client_views, coach_views, settings_view

logger = logging.getLogger(__name__)

PAGE_RENDERERS = {
    "login": auth_views.render_login,
    "reset_password": auth_views.render_reset_password,
    "expired": auth_views.render_expired,
    "client_dashboard": client_views.render_dashboard,
    "client_habits": client_views.render_habits,
    "client_videos": client_views.render_videos,
    "settings": settings_view.render_settings,
    "coach_dashboard": coach_views.render_dashboard,
    "coach_clients": coach_views.render_clients,
    "coach_client_detail": coach_views.render_client_detail,
    "coach_library": coach_views.render_library,
    "coach_board": coach_views.render_board,
    "admin_dashboard": admin_views.render_dashboard,
    "admin_coaches": admin_views.render_coaches,
    "admin_clients": admin_views.render_clients,
    "admin_content": admin_views.render_content,
}

NAV_LINKS = {
    "client": [("Dashboard", "/"), ("Abitudini", "/habits"), ("Video", "/videos"), ("Profilo", "/profile")],
    "coach": [
        ("Dashboard", "/coach/dashboard"),
        ("Clienti", "/coach/clients"),
        ("Libreria", "/coach/library"),
        ("Bacheca", "/coach/board"),
        ("Impostazioni", "/coach/settings"),
    ],
    "admin": [
        ("Dashboard", "/admin/dashboard"),
        ("Coach", "/admin/coaches"),
        ("Clienti", "/admin/clients"),
        ("Contenuti", "/admin/content"),
    ],
}


def _render_sidebar(ctx):
    links = NAV_LINKS.get(ctx.role)
    if not links:
        return
    with st.sidebar:
        name = (ctx.profile or {}).get("full_name") or (ctx.profile or {}).get("email") or ""
        st.markdown(f"**{name}**")
        for label, path in links:
            if st.button(label, key=f"nav.{path}", use_container_width=True):
                navigate(path)
        st.divider()
        if st.button("Esci", key="nav.sign_out", use_container_width=True):
            auth_views.sign_out()
            navigate(guards.LOGIN)


def _render_error_panel(exc):
    st.error("Si è verificato un errore inatteso.")
    st.caption(str(exc))
    cols = st.columns(2)
    with cols[0]:
        if st.button("Riprova", key="router.retry"):
            st.rerun()
    with cols[1]:
        if st.button("Torna alla home", key="router.home"):
            navigate(guards.HOME)


def render_router(ctx):
    decision = guards.resolve_route(current_path(), ctx.profile, ctx.subscription_active)
    if not decision.allowed:
        navigate(decision.target)
        return

    _render_sidebar(ctx)
    renderer = PAGE_RENDERERS[decision.page]
    try:
        renderer(ctx, **decision.params)
    except ApiError as exc:
        if exc.status_code == 401:
            session_slices.clear_all()
            navigate(guards.LOGIN)
        elif exc.status_code == 402:
            navigate(exc.redirect or guards.EXPIRED)
        else:
            logger.warning("API call failed on %s: %s", decision.target, exc)
            _render_error_panel(exc)
    except Exception as exc:
        logger.exception("Page %s failed", decision.page)
        _render_error_panel(exc)
