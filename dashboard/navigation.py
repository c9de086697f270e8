import streamlit as st

from dashboard import guards


def current_path():
    return guards.normalize_path(st.query_params.get("path", guards.HOME))


def navigate(path):
    st.query_params["path"] = guards.normalize_path(path)
    st.rerun()
