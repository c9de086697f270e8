from datetime import date

import streamlit as st

from dashboard.data import repositories
from dashboard.state import session_slices
from dashboard.visualizations import completion_heatmap

ALL_PLANS = "all"
ALL_PLANS_LABEL = "Tutti i piani"


def _plan_label(plans, plan_id):
    if plan_id == ALL_PLANS:
        return ALL_PLANS_LABEL
    for plan in plans:
        if plan.get("id") == plan_id:
            return plan.get("name") or plan_id
    return plan_id


def _current_plan_id(ctx):
    selected = session_slices.selected_plan_id()
    if selected != ALL_PLANS and selected not in {plan.get("id") for plan in ctx.active_plans}:
        session_slices.set_selected_plan_id(ALL_PLANS)
        return ALL_PLANS
    return selected


def _on_plan_change():
    session_slices.set_selected_plan_id(st.session_state.get("client.plan_selector"))


def render_plan_selector(ctx):
    plans = ctx.active_plans
    options = [ALL_PLANS] + [plan.get("id") for plan in plans]
    current = _current_plan_id(ctx)
    if len(plans) > 1:
        st.selectbox(
            "Piano",
            options,
            index=options.index(current),
            format_func=lambda plan_id: _plan_label(plans, plan_id),
            key="client.plan_selector",
            on_change=_on_plan_change,
        )
    return current


def _stat_card(label, value):
    st.markdown(
        f"<div class='card'><div class='small-label'>{label}</div><div class='stat-value'>{value}</div></div>",
        unsafe_allow_html=True,
    )


def render_dashboard(ctx):
    plan_id = render_plan_selector(ctx)
    payload = repositories.get_client_dashboard(plan_id)
    name = (ctx.profile or {}).get("full_name") or ""
    st.markdown(f"<div class='section-title'>Ciao {name}</div>", unsafe_allow_html=True)

    stats = payload.get("stats") or {}
    cols = st.columns(2)
    with cols[0]:
        _stat_card("Abitudini", stats.get("habits", 0))
    with cols[1]:
        _stat_card("Video da guardare", stats.get("videos", 0))

    posts = payload.get("board_posts") or []
    if posts:
        st.markdown("<div class='section-title'>Bacheca</div>", unsafe_allow_html=True)
        for post in posts:
            with st.container(border=True):
                st.markdown(f"**{post.get('title')}**")
                if post.get("image_url"):
                    st.image(post["image_url"], use_container_width=True)
                st.markdown(post.get("content") or "", unsafe_allow_html=True)
                author = (post.get("coach") or {}).get("full_name")
                if author:
                    st.caption(author)

    st.markdown("<div class='section-title'>In programma</div>", unsafe_allow_html=True)
    assignments = payload.get("assignments") or []
    if not assignments:
        st.caption("Nessuna attività in programma.")
    for item in assignments:
        st.markdown(f"- {item.get('scheduled_date', '')[:10]} · **{item.get('title')}** ({item.get('type')})")


def _toggle_habit(assignment_id, selected_day):
    repositories.toggle_completion(assignment_id, selected_day)


def render_habits(ctx):
    plan_id = render_plan_selector(ctx)
    selected_day = st.date_input("Data", key="habits.selected_date", value=date.today())
    payload = repositories.get_habits_overview(selected_day, plan_id)

    st.markdown("<div class='section-title'>Abitudini</div>", unsafe_allow_html=True)
    habits = payload.get("habits") or []
    if not habits:
        st.caption("Nessuna abitudine assegnata.")
    for habit in habits:
        st.checkbox(
            habit.get("title") or "Abitudine",
            value=bool(habit.get("done")),
            key=f"habits.done.{habit['id']}.{selected_day.isoformat()}",
            on_change=_toggle_habit,
            args=(habit["id"], selected_day),
            help=habit.get("description") or None,
        )

    fig = completion_heatmap(payload.get("counts_by_date") or {}, selected_day, title="Ultimi 90 giorni")
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def _toggle_video(assignment_id, current):
    repositories.toggle_assignment(assignment_id, current)


def render_videos(ctx):
    plan_id = render_plan_selector(ctx)
    st.markdown("<div class='section-title'>Video</div>", unsafe_allow_html=True)
    videos = repositories.list_client_assignments("video", plan_id)
    if not videos:
        st.caption("Nessun video assegnato.")
    for video in videos:
        with st.container(border=True):
            cols = st.columns([1, 2])
            with cols[0]:
                if video.get("thumbnail_url"):
                    st.image(video["thumbnail_url"], use_container_width=True)
            with cols[1]:
                st.markdown(f"**{video.get('title')}**")
                if video.get("description"):
                    st.caption(video["description"])
                if video.get("link"):
                    st.link_button("Guarda", video["link"])
                st.checkbox(
                    "Visto",
                    value=bool(video.get("completed")),
                    key=f"videos.done.{video['id']}",
                    on_change=_toggle_video,
                    args=(video["id"], bool(video.get("completed"))),
                )
