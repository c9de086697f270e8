"""Tests for the completion heatmap frame."""

from datetime import date

from dashboard.visualizations import completion_frame, format_bytes


def test_completion_frame_covers_window():
    frame = completion_frame({"2026-03-09": 2, "2026-03-15": 1}, date(2026, 3, 15), days=7)
    assert list(frame["iso"]) == [f"2026-03-{day:02d}" for day in range(9, 16)]
    assert list(frame["count"]) == [2, 0, 0, 0, 0, 0, 1]
    # 2026-03-09 is a Monday
    assert list(frame["weekday"]) == list(range(7))
    assert set(frame["week"]) == {0}


def test_completion_frame_week_index():
    frame = completion_frame({}, date(2026, 3, 16), days=8)
    assert frame["week"].iloc[0] == 0
    assert frame["week"].iloc[-1] == 1


def test_format_bytes():
    assert format_bytes(0) == "0 B"
    assert format_bytes(1536) == "1.50 KB"
    assert format_bytes(5 * 1024 * 1024, decimals=0) == "5 MB"
