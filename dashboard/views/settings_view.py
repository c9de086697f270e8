import streamlit as st

from dashboard.data import repositories
from dashboard.data.api_client import ApiError
from dashboard.theme import THEME_PRESETS


def _render_profile(ctx):
    profile = ctx.profile or {}
    st.markdown("<div class='section-title'>Profilo</div>", unsafe_allow_html=True)
    if profile.get("avatar_url"):
        st.image(profile["avatar_url"], width=96)
    avatar = st.file_uploader("Foto profilo", type=["png", "jpg", "jpeg", "webp"], key="settings.avatar")
    if avatar is not None and st.button("Carica foto", key="settings.avatar_upload"):
        repositories.upload_avatar(avatar.name, avatar.getvalue(), avatar.type)
        st.success("Foto aggiornata.")
        st.rerun()

    with st.form("settings.profile"):
        full_name = st.text_input("Nome completo", value=profile.get("full_name") or "")
        if st.form_submit_button("Salva"):
            repositories.update_profile({"full_name": full_name.strip()})
            st.success("Profilo aggiornato.")
            st.rerun()


def _render_account():
    st.markdown("<div class='section-title'>Account</div>", unsafe_allow_html=True)
    with st.form("settings.password"):
        current = st.text_input("Password attuale", type="password")
        new = st.text_input("Nuova password", type="password")
        if st.form_submit_button("Cambia password"):
            try:
                repositories.change_password(current, new)
                st.success("Password aggiornata.")
            except ApiError as exc:
                if exc.status_code not in (400, 422):
                    raise
                st.error("Password attuale errata o nuova password troppo corta.")

    with st.form("settings.email"):
        email = st.text_input("Nuova email")
        if st.form_submit_button("Cambia email"):
            try:
                repositories.change_email(email)
                st.success("Email aggiornata.")
            except ApiError as exc:
                if exc.status_code != 400:
                    raise
                st.error("Indirizzo email non valido.")


def _render_notifications():
    st.markdown("<div class='section-title'>Notifiche</div>", unsafe_allow_html=True)
    settings = repositories.get_alert_settings() or {}
    enabled = st.toggle("Ricevi notifiche", value=bool(settings.get("is_enabled", True)), key="settings.alerts_enabled")
    times_raw = st.text_input(
        "Orari promemoria (HH:MM, separati da virgola)",
        value=", ".join(settings.get("alert_times") or []),
        key="settings.alert_times",
    )
    cols = st.columns(2)
    with cols[0]:
        if st.button("Salva preferenze", key="settings.alerts_save"):
            times = [item.strip() for item in times_raw.split(",") if item.strip()]
            try:
                repositories.set_alert_settings(enabled, times)
                st.success("Preferenze salvate.")
            except ApiError as exc:
                if exc.status_code != 422:
                    raise
                st.error("Usa il formato HH:MM per gli orari.")
    with cols[1]:
        if st.button("Invia notifica di prova", key="settings.test_push"):
            try:
                repositories.send_test_notification()
                st.success("Notifica inviata.")
            except ApiError as exc:
                if exc.status_code != 502:
                    raise
                st.error("Invio non riuscito.")


def _render_theme():
    st.markdown("<div class='section-title'>Aspetto</div>", unsafe_allow_html=True)
    names = list(THEME_PRESETS.keys())
    st.radio("Tema", names, key="ui.theme", horizontal=True)


def render_settings(ctx):
    _render_profile(ctx)
    st.divider()
    _render_account()
    st.divider()
    _render_notifications()
    st.divider()
    _render_theme()
