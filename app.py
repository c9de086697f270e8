import logging
import os

import streamlit as st

from dashboard.context import DashboardContext
from dashboard.data import api_client, repositories
from dashboard.data.api_client import ApiError
from dashboard.logging_config import configure_logging
from dashboard.router import render_router
from dashboard.state import session_slices
from dashboard.theme import inject_theme_css

ENV_FALLBACK_KEYS = {
    ("app", "API_BASE_URL"): "API_BASE_URL",
    ("API_BASE_URL",): "API_BASE_URL",
}

logger = logging.getLogger("dashboard.app")


def get_secret(path, default=None):
    env_key = ENV_FALLBACK_KEYS.get(tuple(path))
    if env_key:
        env_value = os.getenv(env_key)
        if env_value:
            return env_value
    try:
        current = st.secrets
        for key in path:
            if key not in current:
                return default
            current = current[key]
    except FileNotFoundError:
        return default
    return current


def load_session_payload():
    if not session_slices.access_token():
        return {}
    try:
        return repositories.get_session_state() or {}
    except ApiError as exc:
        if exc.status_code != 401:
            raise
        logger.info("Stored session rejected, signing out")
        session_slices.clear_all()
        return {}


st.set_page_config(page_title="LifeHabits", page_icon="🌱", layout="wide")
configure_logging()
api_client.configure(get_secret, session_slices.access_token)
inject_theme_css()

if not api_client.is_enabled():
    st.error("API_BASE_URL non configurato.")
    st.stop()

context = DashboardContext(load_session_payload())
render_router(context)
