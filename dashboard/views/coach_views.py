from datetime import date, datetime, time, timedelta

import streamlit as st

from dashboard.data import repositories
from dashboard.data.api_client import ApiError
from dashboard.navigation import navigate
from dashboard.visualizations import completion_heatmap

ASSIGNMENT_TYPES = ["habit", "video", "pdf"]
CONTENT_TYPES = ["habit", "video", "pdf", "post"]
TYPE_LABELS = {"habit": "Abitudine", "video": "Video", "pdf": "PDF", "post": "Post"}


def _section(title):
    st.markdown(f"<div class='section-title'>{title}</div>", unsafe_allow_html=True)


def _client_name(client):
    profile = client.get("profiles") or client
    return profile.get("full_name") or profile.get("email") or client.get("id")


def _show_api_error(exc):
    detail = exc.detail.get("detail") if isinstance(exc.detail, dict) else exc.detail
    st.error(detail if isinstance(detail, str) else str(exc))


def render_dashboard(ctx):
    payload = repositories.get_coach_dashboard()
    stats = payload.get("stats") or {}
    _section("Panoramica")
    cols = st.columns(2)
    cols[0].metric("Clienti attivi", stats.get("active_clients", 0))
    cols[1].metric("In scadenza (7 giorni)", stats.get("expiring_clients", 0))

    _section("Ultimi annunci")
    posts = (payload.get("board_posts") or [])[:5]
    if not posts:
        st.caption("Nessun annuncio pubblicato.")
    for post in posts:
        st.markdown(f"- **{post.get('title')}** · {str(post.get('created_at') or '')[:10]}")


# clients

def render_clients(ctx):
    payload = repositories.list_coach_clients()
    clients = payload.get("items") or []
    _section(f"Clienti ({len(clients)})")

    with st.expander("Nuovo cliente"):
        with st.form("coach.new_client", clear_on_submit=True):
            full_name = st.text_input("Nome completo")
            email = st.text_input("Email")
            if st.form_submit_button("Crea cliente"):
                try:
                    repositories.create_client(email, full_name)
                    st.success("Cliente creato.")
                    st.rerun()
                except ApiError as exc:
                    _show_api_error(exc)

    today_iso = date.today().isoformat()
    for client in clients:
        end = client.get("subscription_end")
        active = bool(end) and end[:10] >= today_iso
        status = f"attivo fino al {end[:10]}" if active else "scaduto"
        cols = st.columns([3, 2, 1])
        cols[0].markdown(f"**{_client_name(client)}**")
        cols[1].caption(status)
        if cols[2].button("Apri", key=f"coach.open.{client['id']}"):
            navigate(f"/coach/clients/{client['id']}")


def _render_plans(client_id, plans):
    _section("Piani")
    for plan in plans:
        cols = st.columns([3, 2, 1])
        cols[0].markdown(f"**{plan.get('name')}**")
        cols[1].caption(f"{str(plan.get('start_date'))[:10]} → {str(plan.get('end_date'))[:10]}")
        if cols[2].button("Elimina", key=f"plan.delete.{plan['id']}"):
            repositories.delete_plan(plan["id"])
            st.rerun()
        with st.expander("Modifica", expanded=False):
            with st.form(f"plan.edit.{plan['id']}"):
                name = st.text_input("Nome", value=plan.get("name") or "")
                end = st.date_input("Fine", value=date.fromisoformat(str(plan.get("end_date"))[:10]))
                if st.form_submit_button("Aggiorna"):
                    try:
                        repositories.update_plan(plan["id"], {"name": name.strip(), "end_date": end.isoformat()})
                        st.rerun()
                    except ApiError as exc:
                        _show_api_error(exc)

    with st.form(f"plan.new.{client_id}", clear_on_submit=True):
        name = st.text_input("Nome piano")
        description = st.text_area("Descrizione", height=80)
        cols = st.columns(2)
        start = cols[0].date_input("Inizio", value=date.today())
        end = cols[1].date_input("Fine", value=date.today() + timedelta(days=30))
        if st.form_submit_button("Aggiungi piano"):
            try:
                repositories.create_plan(
                    {
                        "client_id": client_id,
                        "name": name.strip(),
                        "description": description.strip() or None,
                        "start_date": start.isoformat(),
                        "end_date": end.isoformat(),
                    }
                )
                st.rerun()
            except ApiError as exc:
                _show_api_error(exc)


def _render_assignments(client_id, plans):
    _section("Assegnazioni")
    plan_ids = [plan["id"] for plan in plans]
    plan_names = {plan["id"]: plan.get("name") for plan in plans}
    if not plan_ids:
        st.caption("Crea un piano per assegnare attività.")
        return
    plan_id = st.selectbox(
        "Piano",
        plan_ids,
        format_func=lambda value: plan_names.get(value) or value,
        key=f"assign.plan.{client_id}",
    )
    for item in repositories.list_assignments(client_id, plan_id):
        cols = st.columns([1, 3, 2, 1])
        cols[0].caption(TYPE_LABELS.get(item.get("type"), item.get("type")))
        cols[1].markdown(f"**{item.get('title')}**")
        cols[2].caption(str(item.get("scheduled_date") or "")[:10])
        if cols[3].button("Elimina", key=f"assign.delete.{item['id']}"):
            repositories.delete_assignment(item["id"])
            st.rerun()
        with st.expander("Modifica", expanded=False):
            with st.form(f"assign.edit.{item['id']}"):
                title = st.text_input("Titolo", value=item.get("title") or "")
                scheduled = st.date_input("Data", value=date.fromisoformat(str(item.get("scheduled_date"))[:10]))
                if st.form_submit_button("Aggiorna"):
                    repositories.update_assignment(
                        item["id"], {"title": title.strip(), "scheduled_date": scheduled.isoformat()}
                    )
                    st.rerun()

    library = repositories.list_library()
    with st.form(f"assign.new.{client_id}", clear_on_submit=True):
        content_options = [None] + [item["id"] for item in library if item.get("type") in ASSIGNMENT_TYPES]
        library_by_id = {item["id"]: item for item in library}
        content_id = st.selectbox(
            "Dalla libreria",
            content_options,
            format_func=lambda value: "—" if value is None else library_by_id[value].get("title"),
        )
        kind = st.selectbox("Tipo", ASSIGNMENT_TYPES, format_func=lambda value: TYPE_LABELS[value])
        title = st.text_input("Titolo")
        link = st.text_input("Link")
        scheduled = st.date_input("Data", value=date.today())
        if st.form_submit_button("Assegna"):
            payload = {"type": kind, "title": title.strip(), "link": link.strip() or None}
            if content_id:
                source = library_by_id[content_id]
                payload = {
                    "type": source.get("type"),
                    "title": title.strip() or source.get("title"),
                    "description": source.get("description"),
                    "link": link.strip() or source.get("link"),
                    "thumbnail_url": source.get("thumbnail_url"),
                    "content_id": content_id,
                }
            payload.update({"plan_id": plan_id, "scheduled_date": scheduled.isoformat()})
            try:
                repositories.create_assignment(client_id, payload)
                st.rerun()
            except ApiError as exc:
                _show_api_error(exc)


def _render_rules(client_id):
    _section("Promemoria personali")
    for rule in repositories.list_rules(client_id):
        cols = st.columns([1, 4, 1])
        cols[0].markdown(f"**{rule.get('scheduled_time')}**")
        cols[1].caption(rule.get("message"))
        if cols[2].button("Elimina", key=f"rule.delete.{rule['id']}"):
            repositories.delete_rule(rule["id"])
            st.rerun()
        with st.expander("Modifica", expanded=False):
            with st.form(f"rule.edit.{rule['id']}"):
                at = st.time_input("Ora", value=time.fromisoformat(rule["scheduled_time"]), step=timedelta(minutes=15))
                message = st.text_input("Messaggio", value=rule.get("message") or "")
                if st.form_submit_button("Aggiorna"):
                    try:
                        repositories.update_rule(rule["id"], at.strftime("%H:%M"), message)
                        st.rerun()
                    except ApiError as exc:
                        _show_api_error(exc)
    with st.form(f"rule.new.{client_id}", clear_on_submit=True):
        cols = st.columns([1, 3])
        at = cols[0].time_input("Ora", value=time(9, 0), step=timedelta(minutes=15))
        message = cols[1].text_input("Messaggio")
        if st.form_submit_button("Aggiungi promemoria"):
            try:
                repositories.create_rule(at.strftime("%H:%M"), message, client_id)
                st.rerun()
            except ApiError as exc:
                _show_api_error(exc)


def _render_colleagues(client_id, coaches):
    _section("Coach collegati")
    for coach in coaches:
        cols = st.columns([4, 1])
        cols[0].markdown(coach.get("full_name") or coach.get("email") or coach.get("id"))
        if cols[1].button("Rimuovi", key=f"colleague.remove.{coach['id']}"):
            repositories.unlink_colleague(client_id, coach["id"])
            st.rerun()
    query = st.text_input("Cerca coach", key=f"colleague.search.{client_id}")
    if query.strip():
        for coach in repositories.search_coaches(query.strip()):
            cols = st.columns([4, 1])
            cols[0].markdown(coach.get("full_name") or coach.get("email"))
            if cols[1].button("Collega", key=f"colleague.add.{coach['id']}"):
                repositories.link_colleague(client_id, coach["id"])
                st.rerun()


def render_client_detail(ctx, client_id):
    detail = repositories.get_client_detail(client_id)
    profile = detail.get("profile") or {}
    if st.button("← Clienti", key="client_detail.back"):
        navigate("/coach/clients")
    st.markdown(f"### {profile.get('full_name') or profile.get('email')}")
    st.caption(profile.get("email") or "")

    tabs = st.tabs(["Piani", "Assegnazioni", "Progressi", "Promemoria", "Coach"])
    with tabs[0]:
        _render_plans(client_id, detail.get("plans") or [])
    with tabs[1]:
        _render_assignments(client_id, detail.get("plans") or [])
    with tabs[2]:
        end = date.today()
        payload = repositories.list_client_completions(client_id, end - timedelta(days=89), end)
        fig = completion_heatmap(payload.get("counts_by_date") or {}, end, title="Abitudini completate")
        st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})
    with tabs[3]:
        _render_rules(client_id)
    with tabs[4]:
        _render_colleagues(client_id, detail.get("coaches") or [])

    st.divider()
    if st.button("Elimina cliente", key="client_detail.delete", type="secondary"):
        repositories.delete_client(client_id)
        navigate("/coach/clients")


# library

def render_library(ctx):
    _section("Libreria")
    with st.expander("Nuovo contenuto"):
        with st.form("library.new", clear_on_submit=True):
            kind = st.selectbox("Tipo", CONTENT_TYPES, format_func=lambda value: TYPE_LABELS[value])
            title = st.text_input("Titolo")
            description = st.text_area("Descrizione", height=80)
            link = st.text_input("Link")
            upload = st.file_uploader("Oppure carica un file", key="library.upload")
            if st.form_submit_button("Salva"):
                if upload is not None:
                    link = repositories.upload_file(upload.name, upload.getvalue(), upload.type, folder="library") or link
                try:
                    repositories.add_content(
                        {
                            "type": kind,
                            "title": title.strip(),
                            "description": description.strip() or None,
                            "link": link.strip() or None,
                        }
                    )
                    st.rerun()
                except ApiError as exc:
                    _show_api_error(exc)

    for item in repositories.list_library():
        with st.container(border=True):
            cols = st.columns([1, 3, 1])
            with cols[0]:
                if item.get("thumbnail_url"):
                    st.image(item["thumbnail_url"], use_container_width=True)
                else:
                    st.caption(TYPE_LABELS.get(item.get("type"), item.get("type")))
            with cols[1]:
                st.markdown(f"**{item.get('title')}**")
                if item.get("description"):
                    st.caption(item["description"])
                with st.expander("Modifica", expanded=False):
                    with st.form(f"library.edit.{item['id']}"):
                        title = st.text_input("Titolo", value=item.get("title") or "")
                        description = st.text_area("Descrizione", value=item.get("description") or "", height=80)
                        link = st.text_input("Link", value=item.get("link") or "")
                        if st.form_submit_button("Aggiorna"):
                            try:
                                repositories.update_content(
                                    item["id"],
                                    {"title": title.strip(), "description": description.strip() or None, "link": link.strip() or None},
                                )
                                st.rerun()
                            except ApiError as exc:
                                _show_api_error(exc)
            with cols[2]:
                if st.button("Elimina", key=f"library.delete.{item['id']}"):
                    try:
                        repositories.delete_content(item["id"])
                        st.rerun()
                    except ApiError as exc:
                        _show_api_error(exc)


# board

def render_board(ctx):
    _section("Bacheca")
    clients = repositories.list_coach_clients().get("items") or []
    names = {client["id"]: _client_name(client) for client in clients}
    with st.expander("Nuovo annuncio"):
        with st.form("board.new", clear_on_submit=True):
            title = st.text_input("Titolo")
            content = st.text_area("Testo", height=120)
            targets = st.multiselect("Destinatari", list(names), format_func=lambda value: names[value])
            image = st.file_uploader("Immagine", type=["png", "jpg", "jpeg", "webp"], key="board.image")
            expires = st.date_input("Scade il", value=None)
            if st.form_submit_button("Pubblica"):
                image_url = None
                if image is not None:
                    image_url = repositories.upload_file(image.name, image.getvalue(), image.type, folder="board")
                payload = {
                    "title": title.strip(),
                    "content": content,
                    "image_url": image_url,
                    "target_client_ids": targets or None,
                    "expires_at": datetime.combine(expires, time(23, 59)).isoformat() if expires else None,
                }
                try:
                    repositories.create_board_post(payload)
                    st.rerun()
                except ApiError as exc:
                    _show_api_error(exc)

    for post in repositories.list_coach_board():
        with st.container(border=True):
            st.markdown(f"**{post.get('title')}**")
            st.markdown(post.get("content") or "", unsafe_allow_html=True)
            recipients = [names.get(client_id, client_id) for client_id in post.get("target_client_ids") or []]
            st.caption(", ".join(recipients) if recipients else "Tutti i clienti")
            with st.expander("Modifica", expanded=False):
                with st.form(f"board.edit.{post['id']}"):
                    new_title = st.text_input("Titolo", value=post.get("title") or "")
                    new_content = st.text_area("Testo", value=post.get("content") or "", height=120)
                    if st.form_submit_button("Aggiorna"):
                        try:
                            repositories.update_board_post(post["id"], {"title": new_title.strip(), "content": new_content})
                            st.rerun()
                        except ApiError as exc:
                            _show_api_error(exc)
            if st.button("Elimina", key=f"board.delete.{post['id']}"):
                repositories.delete_board_post(post["id"])
                st.rerun()
