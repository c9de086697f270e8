"""Tests for the scheduler worker loop body."""

from unittest.mock import AsyncMock, patch

import pytest

from backend.workers import push_scheduler, send_test_push


@pytest.mark.asyncio
async def test_process_once_returns_result():
    result = {"message": "No rules for this time", "time": "10:00"}
    with patch("backend.workers.push_scheduler.run_scheduler", AsyncMock(return_value=result)):
        assert await push_scheduler.process_once() == result


@pytest.mark.asyncio
async def test_process_once_survives_failures():
    with patch("backend.workers.push_scheduler.run_scheduler", AsyncMock(side_effect=RuntimeError("db down"))):
        assert await push_scheduler.process_once() is None


@pytest.mark.asyncio
async def test_send_test_looks_up_profile_and_releases_engine():
    invoke = AsyncMock(return_value={"sent": 1, "failed": 0})
    with patch("backend.workers.send_test_push.repositories.get_profile_by_email", AsyncMock(return_value={"id": "u1"})) as lookup, \
            patch("backend.workers.send_test_push.dispose_engine", AsyncMock()) as dispose, \
            patch("backend.workers.send_test_push.invoke_function", invoke):
        assert await send_test_push.send_test("Someone@Example.com") == 0
    lookup.assert_awaited_once_with("Someone@Example.com")
    dispose.assert_awaited_once()
    assert invoke.await_args.args[1]["user_id"] == "u1"


@pytest.mark.asyncio
async def test_send_test_unknown_email_still_releases_engine():
    with patch("backend.workers.send_test_push.repositories.get_profile_by_email", AsyncMock(return_value=None)), \
            patch("backend.workers.send_test_push.dispose_engine", AsyncMock()) as dispose, \
            patch("backend.workers.send_test_push.invoke_function", AsyncMock()) as invoke:
        assert await send_test_push.send_test("nobody@example.com") == 1
    dispose.assert_awaited_once()
    invoke.assert_not_awaited()
