"""Tests for the dashboard HTTP client."""

from unittest.mock import MagicMock, patch

import pytest

from dashboard.data import api_client
from dashboard.data.api_client import ApiError


@pytest.fixture(autouse=True)
def configured():
    secrets = {("app", "API_BASE_URL"): "http://api.test/"}
    api_client.configure(lambda path, default=None: secrets.get(tuple(path), default), lambda: "stored-token")
    yield
    api_client.configure(None, None)


def _response(status_code, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = b"{}" if payload is not None else b""
    response.json.return_value = payload
    return response


def test_request_sends_bearer_token():
    with patch.object(api_client._SESSION, "request", return_value=_response(200, {"ok": True})) as send:
        assert api_client.request("GET", "/v1/session") == {"ok": True}
    args, kwargs = send.call_args
    assert args == ("GET", "http://api.test/v1/session")
    assert kwargs["headers"] == {"Authorization": "Bearer stored-token"}


def test_explicit_token_wins():
    with patch.object(api_client._SESSION, "request", return_value=_response(200, {})) as send:
        api_client.request("POST", "/v1/account/recover-password", json={}, token="recovery")
    assert send.call_args.kwargs["headers"]["Authorization"] == "Bearer recovery"


def test_error_carries_redirect():
    payload = {"detail": "Subscription expired", "redirect": "/scaduto"}
    with patch.object(api_client._SESSION, "request", return_value=_response(402, payload)):
        with pytest.raises(ApiError) as info:
            api_client.request("GET", "/v1/dashboard")
    assert info.value.status_code == 402
    assert info.value.redirect == "/scaduto"


def test_missing_token_fails_before_sending():
    api_client.configure(lambda path, default=None: "http://api.test", lambda: None)
    with patch.object(api_client._SESSION, "request") as send:
        with pytest.raises(ApiError):
            api_client.request("GET", "/v1/session")
    send.assert_not_called()


def test_empty_body_returns_none():
    with patch.object(api_client._SESSION, "request", return_value=_response(204)):
        assert api_client.request("DELETE", "/v1/coach/board/b1") is None
