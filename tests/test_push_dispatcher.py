"""Tests for the push dispatcher message types."""

from unittest.mock import AsyncMock, patch

import pytest

from backend.functions.push_dispatcher import REMINDER_PAYLOAD, DispatchError, dispatch

SUBS = [
    {"id": "s1", "user_id": "client-1", "subscription": {"endpoint": "https://push/1"}},
    {"id": "s2", "user_id": "client-2", "subscription": {"endpoint": "https://push/2"}},
]


@pytest.mark.asyncio
async def test_unknown_type_rejected():
    with pytest.raises(DispatchError, match="Invalid type"):
        await dispatch({"type": "sms"})
    with pytest.raises(DispatchError):
        await dispatch({})


@pytest.mark.asyncio
async def test_direct_requires_fields():
    with pytest.raises(DispatchError, match="Missing required fields"):
        await dispatch({"type": "direct", "user_id": "u1", "title": "T"})


@pytest.mark.asyncio
async def test_direct_sends_to_user():
    with patch("backend.functions.push_dispatcher.push_service.send_to_users", AsyncMock(return_value=(1, 0))) as send:
        result = await dispatch({"type": "direct", "user_id": "u1", "title": "T", "body": "B", "url": "/x"})
    assert result == {"message": "Notification sent"}
    send.assert_awaited_once_with(["u1"], {"title": "T", "body": "B", "url": "/x"})


@pytest.mark.asyncio
async def test_broadcast_reaches_every_subscription():
    with patch("backend.functions.push_dispatcher.repositories.list_push_subscriptions", AsyncMock(return_value=SUBS)), \
            patch("backend.functions.push_dispatcher.push_service.deliver", AsyncMock(return_value=(2, 0))) as deliver:
        result = await dispatch({"type": "broadcast", "title": "T", "body": "B"})
    assert result == {"message": "Broadcast sent to 2 devices"}
    deliver.assert_awaited_once_with(SUBS, {"title": "T", "body": "B"})


@pytest.mark.asyncio
async def test_announcement_uses_explicit_targets():
    lookup = AsyncMock(return_value=SUBS[:1])
    with patch("backend.functions.push_dispatcher.repositories.list_push_subscriptions", lookup), \
            patch("backend.functions.push_dispatcher.repositories.list_linked_client_ids", AsyncMock()) as linked, \
            patch("backend.functions.push_dispatcher.push_service.deliver", AsyncMock(return_value=(1, 0))):
        result = await dispatch(
            {"type": "announcement", "coach_id": "coach-1", "title": "T", "body": "B", "target_client_ids": ["client-1"]}
        )
    assert result == {"message": "Announcement sent to 1 devices"}
    lookup.assert_awaited_once_with(["client-1"])
    linked.assert_not_awaited()


@pytest.mark.asyncio
async def test_announcement_falls_back_to_linked_clients():
    with patch("backend.functions.push_dispatcher.repositories.list_linked_client_ids", AsyncMock(return_value=[])):
        result = await dispatch({"type": "announcement", "coach_id": "coach-1", "title": "T", "body": "B"})
    assert result == {"message": "No recipients found"}


@pytest.mark.asyncio
async def test_announcement_without_subscriptions():
    with patch("backend.functions.push_dispatcher.repositories.list_linked_client_ids", AsyncMock(return_value=["c1"])), \
            patch("backend.functions.push_dispatcher.repositories.list_push_subscriptions", AsyncMock(return_value=[])):
        result = await dispatch({"type": "announcement", "coach_id": "coach-1", "title": "T", "body": "B"})
    assert result == {"message": "No subscriptions found for recipients"}


@pytest.mark.asyncio
async def test_announcement_requires_coach():
    with pytest.raises(DispatchError, match="Missing coach_id"):
        await dispatch({"type": "announcement", "title": "T", "body": "B"})


@pytest.mark.asyncio
async def test_cron_reminds_users_with_matching_hour():
    rows = [
        {"user_id": "u1", "alert_times": ["09:00"]},
        {"user_id": "u2", "alert_times": ["18:00"]},
        {"user_id": "u3", "alert_times": ["09:45", "20:00"]},
    ]
    with patch("backend.functions.push_dispatcher.repositories.list_enabled_alert_settings", AsyncMock(return_value=rows)), \
            patch("backend.functions.push_dispatcher.push_service.send_to_users", AsyncMock(return_value=(1, 0))) as send:
        result = await dispatch({"type": "cron", "simulated_time": "09:30"})
    assert result == {"message": "Cron processed. Sent 2 notifications."}
    assert [call.args[0] for call in send.await_args_list] == [["u1"], ["u3"]]
    assert send.await_args_list[0].args[1] == REMINDER_PAYLOAD


@pytest.mark.asyncio
async def test_cron_rejects_malformed_simulated_time():
    with pytest.raises(ValueError):
        await dispatch({"type": "cron", "simulated_time": "9"})
