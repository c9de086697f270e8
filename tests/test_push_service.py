"""Tests for web push delivery and dead subscription cleanup."""

from unittest.mock import AsyncMock, patch

import pytest
import requests

from backend.services import push_service
from backend.services.push_service import PushDeliveryError

ROWS = [
    {"id": "s1", "user_id": "u1", "subscription": {"endpoint": "https://push/1"}},
    {"id": "s2", "user_id": "u2", "subscription": {"endpoint": "https://push/2"}},
    {"id": "s3", "user_id": "u3", "subscription": {"endpoint": "https://push/3"}},
]


@pytest.mark.asyncio
async def test_deliver_counts_and_removes_gone_subscriptions():
    async def fake_send(subscription, payload):
        if subscription["endpoint"].endswith("/2"):
            raise PushDeliveryError("gone", status_code=410)
        if subscription["endpoint"].endswith("/3"):
            raise PushDeliveryError("server error", status_code=500)

    delete = AsyncMock(return_value=None)
    with patch("backend.services.push_service.send_push", side_effect=fake_send), \
            patch("backend.services.push_service.repositories.delete_push_subscription", delete):
        sent, failed = await push_service.deliver(ROWS, {"title": "T", "body": "B"})

    assert (sent, failed) == (1, 2)
    delete.assert_awaited_once_with("s2")


@pytest.mark.asyncio
async def test_deliver_nothing():
    assert await push_service.deliver([], {"title": "T"}) == (0, 0)


@pytest.mark.asyncio
async def test_send_to_users_looks_up_subscriptions():
    with patch("backend.services.push_service.repositories.list_push_subscriptions", AsyncMock(return_value=ROWS[:1])) as lookup, \
            patch("backend.services.push_service.send_push", AsyncMock(return_value=None)):
        assert await push_service.send_to_users(["u1"], {"title": "T"}) == (1, 0)
    lookup.assert_awaited_once_with(["u1"])


def test_send_requires_vapid_keys():
    with pytest.raises(PushDeliveryError, match="VAPID"):
        push_service._send({"endpoint": "https://push/1"}, {"title": "T"})


@pytest.mark.asyncio
async def test_deliver_survives_unexpected_send_errors():
    async def fake_send(subscription, payload):
        if subscription["endpoint"].endswith("/1"):
            raise requests.exceptions.ConnectionError("push service unreachable")

    with patch("backend.services.push_service.send_push", side_effect=fake_send):
        assert await push_service.deliver(ROWS[:2], {"title": "T"}) == (1, 1)


@pytest.mark.asyncio
async def test_failed_cleanup_of_gone_subscription_counts_as_failure():
    delete = AsyncMock(side_effect=RuntimeError("db down"))
    with patch("backend.services.push_service.send_push", AsyncMock(side_effect=PushDeliveryError("gone", status_code=404))), \
            patch("backend.services.push_service.repositories.delete_push_subscription", delete):
        assert await push_service.deliver(ROWS[:1], {"title": "T"}) == (0, 1)
    delete.assert_awaited_once_with("s1")
