"""Tests for bearer token authentication."""

from unittest.mock import AsyncMock, patch

import pytest
from jose import jwt

PROFILE = {"id": "client-1", "role": "client", "email": "client@example.com"}


def _token(claims, secret="test-secret"):
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.mark.asyncio
async def test_missing_token_is_rejected(client):
    response = await client.get("/v1/session")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


@pytest.mark.asyncio
async def test_bad_signature_is_rejected(client):
    headers = {"Authorization": f"Bearer {_token({'sub': 'client-1'}, secret='wrong')}"}
    response = await client.get("/v1/session", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid access token"


@pytest.mark.asyncio
async def test_valid_token_loads_profile_and_plans(client):
    headers = {"Authorization": f"Bearer {_token({'sub': 'client-1', 'aud': 'authenticated'})}"}
    plans = [{"id": "p1", "coach_id": "coach-1"}]
    with patch("backend.auth.repositories.get_profile", AsyncMock(return_value=PROFILE)), \
            patch("backend.routes.session.repositories.list_active_plans", AsyncMock(return_value=plans)):
        response = await client.get("/v1/session", headers=headers)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["user"] == {"id": "client-1", "email": "client@example.com"}
    assert body["active_plans"] == plans
    assert body["subscription_active"] is True


@pytest.mark.asyncio
async def test_token_without_profile(client):
    headers = {"Authorization": f"Bearer {_token({'sub': 'ghost'})}"}
    with patch("backend.auth.repositories.get_profile", AsyncMock(return_value=None)):
        response = await client.get("/v1/session", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Profile not found"
