import streamlit as st

from dashboard.data import repositories
from dashboard.data.api_client import ApiError
from dashboard.visualizations import format_bytes


def _section(title):
    st.markdown(f"<div class='section-title'>{title}</div>", unsafe_allow_html=True)


def _render_system_monitor():
    _section("Sistema")
    try:
        stats = repositories.get_system_stats()
    except ApiError as exc:
        st.warning(f"Statistiche di sistema non disponibili: {exc}")
        return
    cols = st.columns(3)
    cols[0].metric("Database", format_bytes(stats.get("db_size")))
    cols[1].metric("Storage", format_bytes(stats.get("storage_size")))
    cols[2].metric("Utenti", stats.get("user_count", 0))


def render_dashboard(ctx):
    stats = repositories.get_admin_stats()
    _section("Panoramica")
    cols = st.columns(3)
    cols[0].metric("Coach", stats.get("coaches", 0))
    cols[1].metric("Clienti", stats.get("clients", 0))
    cols[2].metric("Piani attivi", stats.get("active_plans", 0))
    st.divider()
    _render_system_monitor()


def _render_rows(kind, rows, describe):
    if not rows:
        st.caption("Nessun elemento.")
    for row in rows:
        cols = st.columns([4, 3, 1])
        title, subtitle = describe(row)
        cols[0].markdown(f"**{title}**")
        cols[1].caption(subtitle)
        if cols[2].button("Elimina", key=f"admin.{kind}.delete.{row['id']}"):
            try:
                repositories.delete_admin_item(kind, row["id"])
                st.rerun()
            except ApiError as exc:
                st.error(str(exc))


def render_coaches(ctx):
    _section("Coach")
    with st.expander("Nuovo coach"):
        with st.form("admin.new_coach", clear_on_submit=True):
            full_name = st.text_input("Nome completo")
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Crea coach"):
                try:
                    repositories.create_coach(email, full_name, password)
                    st.rerun()
                except ApiError as exc:
                    st.error(str(exc))
    _render_rows(
        "coaches",
        repositories.list_admin("coaches"),
        lambda row: (row.get("full_name") or row.get("email"), row.get("email") or ""),
    )


def render_clients(ctx):
    _section("Clienti")
    _render_rows(
        "clients",
        repositories.list_admin("clients"),
        lambda row: (row.get("full_name") or row.get("email"), f"Coach: {row.get('coach_name')}"),
    )


def render_content(ctx):
    _section("Contenuti")
    _render_rows(
        "content",
        repositories.list_admin("content"),
        lambda row: (row.get("title"), f"{row.get('type')} · {row.get('coach_name')}"),
    )
