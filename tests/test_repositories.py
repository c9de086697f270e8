"""Tests for repository helpers that post-process their SQL."""

from unittest.mock import AsyncMock, patch

import pytest

from backend import repositories

SUBSCRIPTION = {"endpoint": "https://push/1", "keys": {"p256dh": "k", "auth": "a"}}


@pytest.mark.asyncio
async def test_resubscribing_returns_the_stored_row():
    stored = {"id": "existing-id", "user_id": "u1", "endpoint": "https://push/1"}
    with patch("backend.repositories._execute", AsyncMock(return_value=1)) as execute, \
            patch("backend.repositories._fetch_one", AsyncMock(return_value=stored)) as fetch:
        result = await repositories.save_push_subscription("u1", SUBSCRIPTION, "pytest")
    assert result["id"] == "existing-id"
    assert "ON CONFLICT(user_id, endpoint)" in execute.await_args.args[0]
    assert fetch.await_args.args[1] == {"user_id": "u1", "endpoint": "https://push/1"}


@pytest.mark.asyncio
async def test_subscription_without_endpoint_is_rejected():
    with pytest.raises(ValueError):
        await repositories.save_push_subscription("u1", {}, None)
