import logging

import streamlit as st

from dashboard import guards
from dashboard.data import repositories
from dashboard.data.api_client import ApiError
from dashboard.navigation import navigate
from dashboard.state import session_slices

logger = logging.getLogger(__name__)


def sign_out():
    try:
        repositories.sign_out()
    except ApiError as exc:
        logger.warning("Sign-out request failed: %s", exc)
    session_slices.clear_all()


def render_login(ctx):
    if ctx.profile:
        navigate(guards.home_for(ctx.profile))
        return
    st.markdown("<div class='section-title'>Accedi</div>", unsafe_allow_html=True)
    with st.form("login.form"):
        email = st.text_input("Email", key="login.email")
        password = st.text_input("Password", type="password", key="login.password")
        submitted = st.form_submit_button("Accedi", use_container_width=True)
    if submitted:
        try:
            payload = repositories.sign_in(email.strip(), password)
        except ApiError as exc:
            if exc.status_code == 401:
                st.error("Credenziali non valide.")
            else:
                st.error(f"Accesso non riuscito: {exc}")
            return
        session_slices.store_sign_in(payload)
        navigate(guards.home_for(payload.get("profile")))
    if st.button("Password dimenticata?", key="login.forgot"):
        navigate("/reset-password")


def _render_reset_request():
    with st.form("reset.request"):
        email = st.text_input("Email", key="reset.email")
        submitted = st.form_submit_button("Invia link di recupero")
    if submitted:
        repositories.send_password_reset(email.strip())
        st.success("Se l'indirizzo esiste, riceverai un'email con il link di recupero.")


def _render_new_password(recovery_token):
    with st.form("reset.update"):
        password = st.text_input("Nuova password", type="password", key="reset.password")
        confirm = st.text_input("Conferma password", type="password", key="reset.confirm")
        submitted = st.form_submit_button("Aggiorna password")
    if not submitted:
        return
    if password != confirm:
        st.error("Le password non coincidono.")
        return
    if len(password) < 6:
        st.error("La password deve contenere almeno 6 caratteri.")
        return
    repositories.recover_password(recovery_token, password)
    st.success("Password aggiornata. Ora puoi accedere.")
    del st.query_params["access_token"]


def render_reset_password(ctx):
    st.markdown("<div class='section-title'>Recupero password</div>", unsafe_allow_html=True)
    recovery_token = st.query_params.get("access_token")
    if recovery_token:
        _render_new_password(recovery_token)
    else:
        _render_reset_request()
    if st.button("Torna al login", key="reset.back"):
        navigate(guards.LOGIN)


def render_expired(ctx):
    st.markdown("<div class='section-title'>Abbonamento scaduto</div>", unsafe_allow_html=True)
    st.warning("Il tuo piano non è attivo. Contatta il tuo coach per rinnovarlo.")
    if ctx.profile and st.button("Esci", key="expired.sign_out"):
        sign_out()
        navigate(guards.LOGIN)
