"""Unit tests for clock time helpers used by reminders."""

from datetime import datetime, timezone

import pytest

from backend.notifications.times import current_hhmm, normalize_hhmm, resolve_time, shares_hour


@pytest.mark.parametrize("raw, expected", [("07:30", "07:30"), (" 23:59 ", "23:59"), ("08:15:42", "08:15")])
def test_normalize_hhmm(raw, expected):
    assert normalize_hhmm(raw) == expected


@pytest.mark.parametrize("raw", ["7:30", "24:00", "12:60", "", None, "noon"])
def test_normalize_hhmm_rejects_bad_input(raw):
    with pytest.raises(ValueError):
        normalize_hhmm(raw)


def test_current_hhmm_converts_to_timezone():
    moment = datetime(2026, 1, 15, 8, 5, tzinfo=timezone.utc)
    assert current_hhmm("Europe/Rome", moment) == "09:05"


def test_resolve_time_prefers_override():
    moment = datetime(2026, 1, 15, 8, 5, tzinfo=timezone.utc)
    assert resolve_time("Europe/Rome", "18:00", moment) == "18:00"
    assert resolve_time("Europe/Rome", None, moment) == "09:05"


def test_shares_hour():
    assert shares_hour(["09:00", "18:30"], "18:05")
    assert not shares_hour(["09:00"], "10:00")
    assert not shares_hour(None, "10:00")
