"""Endpoint tests with the data layer patched out."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

REPO = "backend.repositories"
CLIENT_ID = "client-1"
COACH_ID = "coach-1"
ACTIVE_PLAN = {"id": "p1", "client_id": CLIENT_ID, "coach_id": COACH_ID, "start_date": "2026-01-01", "end_date": "2099-12-31"}


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.json() == {"ok": True}


# ---------------------------------------------------------------------------
# Role and subscription guards
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_client_without_active_plan_gets_402(client, login_as):
    login_as("client")
    with patch(f"{REPO}.list_active_plans", AsyncMock(return_value=[])):
        response = await client.get("/v1/dashboard")
    assert response.status_code == 402
    assert response.json() == {"detail": "Subscription expired", "redirect": "/scaduto"}


@pytest.mark.asyncio
async def test_client_cannot_use_coach_routes(client, login_as):
    login_as("client")
    response = await client.get("/v1/coach/clients")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_coach_blocked_from_foreign_client(client, login_as):
    login_as("coach")
    with patch(f"{REPO}.is_coach_of", AsyncMock(return_value=False)):
        response = await client.get(f"/v1/coach/clients/{CLIENT_ID}/plans")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unhandled_errors_become_500(client, login_as):
    login_as("coach")
    with patch(f"{REPO}.list_coach_clients", AsyncMock(side_effect=RuntimeError("db down"))):
        response = await client.get("/v1/coach/clients")
    assert response.status_code == 500
    assert response.json() == {"detail": "Internal error"}


# ---------------------------------------------------------------------------
# Client pages
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_client_dashboard_filters_by_plan(client, login_as):
    login_as("client")
    upcoming = [
        {"id": "a1", "plan_id": "p1", "type": "video", "title": "V1"},
        {"id": "a2", "plan_id": "p2", "type": "video", "title": "V2"},
    ]
    meta = [
        {"type": "habit", "content_id": "h1", "plan_id": "p1"},
        {"type": "video", "completed": False, "plan_id": "p1"},
        {"type": "video", "completed": False, "plan_id": "p2"},
    ]
    plans = [ACTIVE_PLAN, {**ACTIVE_PLAN, "id": "p2", "coach_id": "coach-2"}]
    posts = AsyncMock(return_value=[{"id": "b1", "title": "News"}])
    with patch(f"{REPO}.list_active_plans", AsyncMock(return_value=plans)), \
            patch(f"{REPO}.get_client_info", AsyncMock(return_value={"id": CLIENT_ID, "coach_id": "coach-3"})), \
            patch(f"{REPO}.list_upcoming_assignments", AsyncMock(return_value=upcoming)), \
            patch(f"{REPO}.list_assignment_meta", AsyncMock(return_value=meta)), \
            patch(f"{REPO}.list_active_posts_for_coaches", posts):
        response = await client.get("/v1/dashboard", params={"plan_id": "p1"})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["selected_plan_id"] == "p1"
    assert [item["id"] for item in body["assignments"]] == ["a1"]
    assert body["stats"] == {"habits": 1, "videos": 1}
    assert posts.await_args.args[0] == [COACH_ID, "coach-2", "coach-3"]


@pytest.mark.asyncio
async def test_unknown_plan_selection_is_400(client, login_as):
    login_as("client")
    with patch(f"{REPO}.list_active_plans", AsyncMock(return_value=[ACTIVE_PLAN])):
        response = await client.get("/v1/assignments", params={"plan_id": "nope"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_habits_overview_marks_done_for_day(client, login_as):
    login_as("client")
    habits = [{"id": "h1", "plan_id": "p1", "title": "Acqua"}, {"id": "h2", "plan_id": "p1", "title": "Passi"}]
    completions = [
        {"id": "c1", "assignment_id": "h1", "completed_date": "2026-03-10"},
        {"id": "c2", "assignment_id": "h2", "completed_date": "2026-03-09"},
    ]
    with patch(f"{REPO}.list_active_plans", AsyncMock(return_value=[ACTIVE_PLAN])), \
            patch(f"{REPO}.list_client_assignments", AsyncMock(return_value=habits)), \
            patch(f"{REPO}.list_completions", AsyncMock(return_value=completions)) as listing:
        response = await client.get("/v1/habits", params={"day": "2026-03-10", "days": 30})
    assert response.status_code == 200, response.text
    body = response.json()
    assert [habit["done"] for habit in body["habits"]] == [True, False]
    assert body["counts_by_date"] == {"2026-03-10": 1, "2026-03-09": 1}
    assert listing.await_args.args == (CLIENT_ID, "2026-02-09", "2026-03-10")


@pytest.mark.asyncio
async def test_toggle_completion_for_own_habit(client, login_as):
    login_as("client")
    with patch(f"{REPO}.list_active_plans", AsyncMock(return_value=[ACTIVE_PLAN])), \
            patch(f"{REPO}.get_assignment", AsyncMock(return_value={"id": "h1", "client_id": CLIENT_ID})), \
            patch(f"{REPO}.toggle_completion", AsyncMock(return_value=True)) as toggle:
        response = await client.post("/v1/completions/toggle", json={"assignment_id": "h1", "day": "2026-03-10"})
    assert response.json() == {"assignment_id": "h1", "date": "2026-03-10", "completed": True}
    toggle.assert_awaited_once_with(CLIENT_ID, "h1", "2026-03-10")


@pytest.mark.asyncio
async def test_toggle_completion_for_someone_else(client, login_as):
    login_as("client")
    with patch(f"{REPO}.list_active_plans", AsyncMock(return_value=[ACTIVE_PLAN])), \
            patch(f"{REPO}.get_assignment", AsyncMock(return_value={"id": "h1", "client_id": "other"})):
        response = await client.post("/v1/completions/toggle", json={"assignment_id": "h1"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_toggle_video_flips_current_state(client, login_as):
    login_as("client")
    with patch(f"{REPO}.list_active_plans", AsyncMock(return_value=[ACTIVE_PLAN])), \
            patch(f"{REPO}.set_assignment_completed", AsyncMock(return_value=True)) as update:
        response = await client.post("/v1/assignments/a1/toggle", json={"current": False})
    assert response.json() == {"id": "a1", "completed": True}
    update.assert_awaited_once_with("a1", CLIENT_ID, True)


# ---------------------------------------------------------------------------
# Coach
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_plan_rejects_inverted_dates(client, login_as):
    login_as("coach")
    payload = {"client_id": CLIENT_ID, "name": "Marzo", "start_date": "2026-03-31", "end_date": "2026-03-01"}
    with patch(f"{REPO}.is_coach_of", AsyncMock(return_value=True)), \
            patch(f"{REPO}.create_plan", AsyncMock()) as create:
        response = await client.post("/v1/coach/plans", json=payload)
    assert response.status_code == 400
    create.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_foreign_plan_is_404(client, login_as):
    login_as("coach")
    with patch(f"{REPO}.get_plan", AsyncMock(return_value={"id": "p1", "coach_id": "someone-else"})):
        response = await client.patch("/v1/coach/plans/p1", json={"name": "X"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_coach_clients_include_stats(client, login_as):
    login_as("coach")
    clients = [{"id": CLIENT_ID, "subscription_end": "2099-01-01"}, {"id": "c2", "subscription_end": "2000-01-01"}]
    with patch(f"{REPO}.list_coach_clients", AsyncMock(return_value=clients)):
        response = await client.get("/v1/coach/clients")
    assert response.json()["stats"] == {"active_clients": 1, "expiring_clients": 0}


@pytest.mark.asyncio
async def test_create_client_links_coach(client, login_as):
    login_as("coach")
    profile = {"id": "new-client", "email": "new@example.com", "role": "client"}
    with patch("backend.routes.clients.platform_client.call_rpc", AsyncMock(return_value=None)) as rpc, \
            patch(f"{REPO}.get_profile_by_email", AsyncMock(return_value=profile)), \
            patch(f"{REPO}.ensure_client_info", AsyncMock()) as ensure, \
            patch(f"{REPO}.link_colleague", AsyncMock()) as link:
        response = await client.post("/v1/coach/clients", json={"email": " New@Example.com ", "full_name": "Nuovo"})
    assert response.status_code == 200, response.text
    assert rpc.await_args.args[0] == "create_client_user"
    assert rpc.await_args.args[1]["email"] == "new@example.com"
    ensure.assert_awaited_once_with("new-client", COACH_ID)
    link.assert_awaited_once_with("new-client", COACH_ID)


@pytest.mark.asyncio
async def test_library_video_gets_thumbnail(client, login_as):
    login_as("coach")
    add = AsyncMock(side_effect=lambda coach_id, data: {"id": "x", **data})
    with patch(f"{REPO}.add_content", add):
        response = await client.post(
            "/v1/coach/library",
            json={"type": "video", "title": "Squat", "link": "https://youtu.be/abc123"},
        )
    assert response.status_code == 200, response.text
    assert response.json()["thumbnail_url"] == "https://img.youtube.com/vi/abc123/mqdefault.jpg"


@pytest.mark.asyncio
async def test_library_delete_refused_when_in_use(client, login_as):
    login_as("coach")
    with patch(f"{REPO}.get_content", AsyncMock(return_value={"id": "k1", "coach_id": COACH_ID})), \
            patch(f"{REPO}.count_assignments_for_content", AsyncMock(return_value=3)), \
            patch(f"{REPO}.delete_content", AsyncMock()) as delete:
        response = await client.delete("/v1/coach/library/k1")
    assert response.status_code == 400
    assert "3 assegnazioni" in response.json()["detail"]
    delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_board_post_schedules_announcement(client, login_as):
    login_as("coach")
    post = {"id": "b1", "title": "Novità", "content": "Testo", "target_client_ids": [CLIENT_ID]}
    with patch(f"{REPO}.create_board_post", AsyncMock(return_value=post)), \
            patch("backend.routes.board.board_service.notify_announcement", AsyncMock()) as notify:
        response = await client.post("/v1/coach/board", json={"title": "Novità", "content": "Testo"})
    assert response.status_code == 200, response.text
    notify.assert_awaited_once_with(COACH_ID, post)


@pytest.mark.asyncio
async def test_board_delete_missing_post(client, login_as):
    login_as("coach")
    with patch(f"{REPO}.delete_board_post", AsyncMock(return_value=False)):
        response = await client.delete("/v1/coach/board/b9")
    assert response.status_code == 404
    assert response.json()["detail"] == "Post non trovato o non autorizzato."


@pytest.mark.asyncio
async def test_rule_time_validated(client, login_as):
    login_as("coach")
    response = await client.post("/v1/coach/notification-rules", json={"scheduled_time": "25:00", "message": "Ciao"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_global_rule_created(client, login_as):
    login_as("coach")
    created = {"id": "r1", "scheduled_time": "08:00", "message": "Ciao", "client_id": None}
    with patch(f"{REPO}.create_rule", AsyncMock(return_value=created)) as create:
        response = await client.post("/v1/coach/notification-rules", json={"scheduled_time": "08:00:00", "message": " Ciao "})
    assert response.status_code == 200, response.text
    create.assert_awaited_once_with(COACH_ID, None, "08:00", "Ciao")


# ---------------------------------------------------------------------------
# Settings, admin, functions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_alert_settings_default_enabled(client, login_as):
    login_as("client")
    with patch(f"{REPO}.get_alert_settings", AsyncMock(return_value=None)):
        response = await client.get("/v1/alert-settings")
    assert response.json() == {"user_id": CLIENT_ID, "is_enabled": True, "alert_times": []}


@pytest.mark.asyncio
async def test_push_subscription_requires_endpoint(client, login_as):
    login_as("client")
    with patch(f"{REPO}.save_push_subscription", AsyncMock(side_effect=ValueError("Subscription endpoint missing"))):
        response = await client.post("/v1/push-subscriptions", json={"subscription": {"keys": {}}})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_admin_clients_fill_unassigned_coach(client, login_as):
    login_as("admin")
    with patch(f"{REPO}.list_profiles_by_role", AsyncMock(return_value=[{"id": "c1"}, {"id": "c2"}])), \
            patch(f"{REPO}.list_client_coach_names", AsyncMock(return_value={"c1": "Marta"})):
        response = await client.get("/v1/admin/clients")
    assert [item["coach_name"] for item in response.json()["items"]] == ["Marta", "Unassigned"]


@pytest.mark.asyncio
async def test_system_stats_normalized(client, login_as):
    login_as("coach")
    rpc = AsyncMock(return_value=[{"db_size": "1024", "storage_size": None, "user_count": "7"}])
    with patch("backend.routes.admin.platform_client.call_rpc", rpc):
        response = await client.get("/v1/system/stats")
    assert response.json() == {"db_size": 1024.0, "storage_size": 0.0, "user_count": 7}


@pytest.mark.asyncio
async def test_function_requires_key(client):
    response = await client.post("/functions/v1/push-dispatcher", json={"type": "broadcast"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_function_bad_request_returns_error_body(client):
    headers = {"Authorization": "Bearer anon-key"}
    response = await client.post("/functions/v1/push-dispatcher", json={"type": "nope"}, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid type"}


@pytest.mark.asyncio
async def test_scheduler_function_with_override(client):
    with patch("backend.functions.push_scheduler.repositories.list_rules_at", AsyncMock(return_value=[])):
        response = await client.post(
            "/functions/v1/push-scheduler", json={"time_override": "06:00"}, headers={"apikey": "service-key"}
        )
    assert response.status_code == 200
    assert response.json() == {"message": "No rules for this time", "time": "06:00"}


# ---------------------------------------------------------------------------
# Account recovery and test notifications
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_recover_password_needs_recovery_session(client, login_as):
    login_as("client")
    update = AsyncMock(return_value=None)
    with patch("backend.routes.settings.platform_client.update_password", update):
        response = await client.post("/v1/account/recover-password", json={"new_password": "hijacked123"})
    assert response.status_code == 403
    update.assert_not_awaited()


@pytest.mark.asyncio
async def test_recover_password_with_recovery_link(client, login_as):
    session = login_as("client")
    session.claims = {"amr": [{"method": "recovery", "timestamp": 1760000000}]}
    update = AsyncMock(return_value=None)
    with patch("backend.routes.settings.platform_client.update_password", update):
        response = await client.post("/v1/account/recover-password", json={"new_password": "nuova-password"})
    assert response.status_code == 200, response.text
    update.assert_awaited_once_with(CLIENT_ID, "nuova-password")


@pytest.mark.asyncio
async def test_test_notification_connection_error_is_502(client, login_as):
    login_as("client")
    failing = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
    with patch("backend.routes.settings.invoke_function", failing):
        response = await client.post("/v1/push-subscriptions/test")
    assert response.status_code == 502
    assert response.json()["detail"] == "Notification dispatch failed"
