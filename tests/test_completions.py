"""Unit tests for per-day completion helpers."""

from backend.completions import (
    completion_counts_by_date,
    completions_for_date,
    find_completion,
    is_completed_on,
)

ROWS = [
    {"id": "c1", "assignment_id": "a1", "completed_date": "2026-03-01"},
    {"id": "c2", "assignment_id": "a2", "completed_date": "2026-03-01"},
    {"id": "c3", "assignment_id": "a1", "completed_date": "2026-03-02"},
]


def test_completions_for_date():
    assert [row["id"] for row in completions_for_date(ROWS, "2026-03-01")] == ["c1", "c2"]
    assert completions_for_date(ROWS, "2026-03-05") == []


def test_counts_by_date():
    assert completion_counts_by_date(ROWS) == {"2026-03-01": 2, "2026-03-02": 1}
    assert completion_counts_by_date([]) == {}


def test_completion_is_tracked_per_day():
    assert is_completed_on(ROWS, "a1", "2026-03-02")
    assert not is_completed_on(ROWS, "a2", "2026-03-02")
    assert find_completion(ROWS, "a1", "2026-03-02")["id"] == "c3"
    assert find_completion(ROWS, "a3", "2026-03-01") is None
