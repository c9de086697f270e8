import streamlit as st


PREFIX = "slice"
AUTH_SLICE = "auth"
SELECTION_SLICE = "selection"


def get_slice(slice_name):
    key = f"{PREFIX}.{slice_name}"
    if key not in st.session_state:
        st.session_state[key] = {}
    return st.session_state[key]


def get_value(slice_name, name, default=None):
    return get_slice(slice_name).get(name, default)


def set_value(slice_name, name, value):
    get_slice(slice_name)[name] = value


def update_slice(slice_name, values):
    get_slice(slice_name).update(values)


def access_token():
    return get_value(AUTH_SLICE, "access_token")


def store_sign_in(payload):
    update_slice(
        AUTH_SLICE,
        {
            "access_token": payload.get("access_token"),
            "refresh_token": payload.get("refresh_token"),
            "user": payload.get("user"),
        },
    )


def selected_plan_id():
    return get_value(SELECTION_SLICE, "plan_id", "all")


def set_selected_plan_id(plan_id):
    set_value(SELECTION_SLICE, "plan_id", plan_id or "all")


def clear_all():
    """Tear down everything tied to the signed-in user."""
    for key in [key for key in st.session_state.keys() if str(key).startswith(f"{PREFIX}.")]:
        del st.session_state[key]
