"""Tests for UI route resolution and role guards."""

import pytest

from dashboard.guards import (
    ADMIN_HOME,
    COACH_HOME,
    EXPIRED,
    HOME,
    LOGIN,
    home_for,
    normalize_path,
    resolve_route,
)

CLIENT = {"id": "c1", "role": "client"}
COACH = {"id": "k1", "role": "coach"}
ADMIN = {"id": "a1", "role": "admin"}


def test_normalize_path():
    assert normalize_path(None) == "/"
    assert normalize_path("habits/") == "/habits"
    assert normalize_path("/coach/clients/?tab=1") == "/coach/clients"


@pytest.mark.parametrize("path", ["/login", "/reset-password", "/scaduto"])
def test_public_pages_always_render(path):
    assert resolve_route(path).allowed


class TestClientPages:
    def test_anonymous_goes_to_login(self):
        decision = resolve_route("/habits")
        assert not decision.allowed
        assert decision.target == LOGIN

    def test_expired_client_redirected(self):
        assert resolve_route("/", CLIENT, subscription_active=False).target == EXPIRED

    def test_active_client_allowed(self):
        decision = resolve_route("/videos", CLIENT, subscription_active=True)
        assert decision.allowed
        assert decision.page == "client_videos"

    @pytest.mark.parametrize("profile", [COACH, ADMIN])
    def test_staff_skip_subscription_check(self, profile):
        assert resolve_route("/profile", profile).allowed


class TestCoachPages:
    def test_client_sent_home(self):
        assert resolve_route("/coach/clients", CLIENT, True).target == HOME

    def test_anonymous_sent_to_login(self):
        assert resolve_route("/coach/library").target == LOGIN

    def test_client_detail_params(self):
        decision = resolve_route("/coach/clients/abc-123", COACH)
        assert decision.allowed
        assert decision.page == "coach_client_detail"
        assert decision.params == {"client_id": "abc-123"}

    def test_section_index_redirects(self):
        assert resolve_route("/coach", COACH).target == COACH_HOME


class TestAdminPages:
    def test_non_admin_sent_to_login(self):
        assert resolve_route("/admin/coaches", COACH).target == LOGIN

    def test_admin_allowed(self):
        assert resolve_route("/admin/content", ADMIN).page == "admin_content"

    def test_section_index_redirects(self):
        assert resolve_route("/admin", ADMIN).target == ADMIN_HOME


def test_unknown_path_goes_home():
    assert resolve_route("/nowhere", CLIENT, True).target == HOME


def test_home_for_role():
    assert home_for(CLIENT) == HOME
    assert home_for(COACH) == COACH_HOME
    assert home_for(ADMIN) == ADMIN_HOME
    assert home_for(None) == HOME
