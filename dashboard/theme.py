import streamlit as st

THEME_PRESETS = {
    "light": {
        "bg_main": "#f7f7f5",
        "bg_card": "#ffffff",
        "border": "#e3e3de",
        "text_main": "#1c1c1c",
        "text_soft": "#6b6b6b",
        "primary": "#2f855a",
        "primary_soft": "#c6f6d5",
        "danger": "#c53030",
        "plot_grid": "#ececec",
        "heat_empty": "#edf2ee",
    },
    "dark": {
        "bg_main": "#111513",
        "bg_card": "#1a201d",
        "border": "#2d3732",
        "text_main": "#eef3ef",
        "text_soft": "#a6b3ab",
        "primary": "#48bb78",
        "primary_soft": "#22543d",
        "danger": "#fc8181",
        "plot_grid": "#27302b",
        "heat_empty": "#1f2723",
    },
}


def ensure_theme_state():
    if st.session_state.get("ui.theme") not in THEME_PRESETS:
        st.session_state["ui.theme"] = "light"
    return st.session_state["ui.theme"]


def get_active_theme():
    name = ensure_theme_state()
    return name, THEME_PRESETS[name]


def inject_theme_css() -> dict:
    _, theme = get_active_theme()
    st.markdown(
        f"""
<style>
:root {{
    --bg-main: {theme['bg_main']};
    --bg-card: {theme['bg_card']};
    --border: {theme['border']};
    --text-main: {theme['text_main']};
    --text-soft: {theme['text_soft']};
    --primary: {theme['primary']};
    --danger: {theme['danger']};
}}

.stApp {{
    background: var(--bg-main);
    color: var(--text-main);
}}

.section-title {{
    font-size: 14px;
    font-weight: 600;
    margin: 0 0 8px 0;
    color: var(--text-soft);
    text-transform: uppercase;
    letter-spacing: 0.6px;
}}

.card {{
    background: var(--bg-card);
    border: 1px solid var(--border);
    border-radius: 14px;
    padding: 14px 16px;
    margin-bottom: 10px;
}}

.stat-value {{
    font-size: 28px;
    font-weight: 700;
    color: var(--primary);
}}
</style>
""",
        unsafe_allow_html=True,
    )
    return theme
