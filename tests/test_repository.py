"""Tests for the in-memory event store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.domain.errors import ConflictError, NotFoundError
from app.domain.models import EventStatus
from app.repos.memory import EventRepository

_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def repo() -> EventRepository:
    return EventRepository()


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


def test_create_assigns_id_and_pending_status(repo):
    event_id = repo.create("Standup", "Daily sync", _NOW + timedelta(hours=1))

    stored = repo.get(event_id)
    assert stored is not None
    assert stored.id == event_id
    assert stored.status == EventStatus.PENDING
    assert stored.title == "Standup"
    assert stored.description == "Daily sync"


def test_create_ids_are_unique(repo):
    ids = {
        repo.create(f"Event {i}", "", _NOW + timedelta(hours=2 * i)) for i in range(5)
    }
    assert len(ids) == 5


def test_create_conflict_inserts_nothing(repo):
    first = repo.create("First", "", _NOW + timedelta(minutes=10))

    with pytest.raises(ConflictError) as excinfo:
        repo.create("Second", "", _NOW + timedelta(minutes=50))

    assert excinfo.value.conflicting_ids == [first]
    assert excinfo.value.kind == "conflict"
    assert len(repo.list()) == 1


def test_naive_scheduled_time_is_treated_as_utc(repo):
    repo.create("Aware", "", _NOW)
    with pytest.raises(ConflictError):
        repo.create("Naive", "", _NOW.replace(tzinfo=None) + timedelta(minutes=30))


def test_custom_conflict_window():
    repo = EventRepository(conflict_window=timedelta(minutes=15))
    repo.create("First", "", _NOW)
    repo.create("Second", "", _NOW + timedelta(minutes=15))
    with pytest.raises(ConflictError):
        repo.create("Third", "", _NOW + timedelta(minutes=20))


def test_scenario_conflicts_and_completed_exemption(repo):
    """A at +10m ok, B at +50m conflicts, C at +130m ok, D reuses A's slot once A completes."""
    a1 = repo.create("A", "", _NOW + timedelta(minutes=10))

    with pytest.raises(ConflictError):
        repo.create("B", "", _NOW + timedelta(minutes=50))

    repo.create("C", "", _NOW + timedelta(minutes=130))

    repo.set_status(a1, EventStatus.COMPLETED)
    d = repo.create("D", "", _NOW + timedelta(minutes=10))

    assert [e.title for e in repo.list()] == ["A", "C", "D"]
    assert repo.get(d).status == EventStatus.PENDING


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


def test_list_preserves_insertion_order_and_count(repo):
    titles = ["one", "two", "three"]
    for i, title in enumerate(titles):
        repo.create(title, "", _NOW + timedelta(hours=3 * i))

    assert [e.title for e in repo.list()] == titles


def test_list_filters_by_exact_status(repo):
    a = repo.create("A", "", _NOW)
    b = repo.create("B", "", _NOW + timedelta(hours=2))
    repo.create("C", "", _NOW + timedelta(hours=4))
    repo.set_status(a, EventStatus.COMPLETED)
    repo.set_status(b, "Completed")

    assert [e.id for e in repo.list(EventStatus.COMPLETED)] == [a]
    assert [e.id for e in repo.list("Completed")] == [b]
    assert [e.title for e in repo.list(EventStatus.PENDING)] == ["C"]
    assert repo.list("missing") == []


def test_list_returns_snapshot(repo):
    event_id = repo.create("A", "", _NOW)
    snapshot = repo.list()

    repo.set_status(event_id, EventStatus.ONGOING)

    assert snapshot[0].status == EventStatus.PENDING
    assert repo.list()[0].status == EventStatus.ONGOING


# ---------------------------------------------------------------------------
# set_status
# ---------------------------------------------------------------------------


def test_set_status_unknown_id_raises(repo):
    repo.create("A", "", _NOW)

    with pytest.raises(NotFoundError) as excinfo:
        repo.set_status("does-not-exist", EventStatus.COMPLETED)

    assert excinfo.value.event_id == "does-not-exist"
    assert excinfo.value.kind == "not_found"
    assert [e.status for e in repo.list()] == [EventStatus.PENDING]


def test_set_status_allows_any_transition(repo):
    event_id = repo.create("A", "", _NOW)

    assert repo.set_status(event_id, EventStatus.COMPLETED).status == "completed"
    assert repo.set_status(event_id, EventStatus.PENDING).status == "pending"
    updated = repo.set_status(event_id, "postponed")

    assert updated.id == event_id
    assert updated.status == "postponed"
    assert repo.get(event_id).status == "postponed"


# ---------------------------------------------------------------------------
# scans
# ---------------------------------------------------------------------------


def test_scan_due_soon_selects_pending_within_horizon(repo):
    due = repo.create("Due", "", _NOW + timedelta(minutes=3))
    repo.create("Later", "", _NOW + timedelta(minutes=90))
    overdue = repo.create("Overdue", "", _NOW - timedelta(hours=2))
    ongoing = repo.create("Ongoing", "", _NOW + timedelta(hours=3))
    repo.set_status(ongoing, EventStatus.ONGOING)

    result = repo.scan_due_soon(_NOW, timedelta(minutes=5))

    assert {e.id for e in result} == {due, overdue}
    # Scanning never mutates.
    assert repo.get(due).status == EventStatus.PENDING


def test_scan_due_soon_threshold_is_inclusive(repo):
    edge = repo.create("Edge", "", _NOW + timedelta(minutes=5))
    assert [e.id for e in repo.scan_due_soon(_NOW, timedelta(minutes=5))] == [edge]


def test_scan_due_soon_accepts_naive_now(repo):
    due = repo.create("Due", "", _NOW + timedelta(minutes=3))
    repo.create("Later", "", _NOW + timedelta(minutes=90))
    naive_now = _NOW.replace(tzinfo=None)

    assert [e.id for e in repo.scan_due_soon(naive_now, timedelta(minutes=5))] == [due]


def test_scan_completed_repeats_until_logged(repo):
    event_id = repo.create("A", "", _NOW)
    repo.set_status(event_id, EventStatus.COMPLETED)

    assert [e.id for e in repo.scan_completed()] == [event_id]
    assert [e.id for e in repo.scan_completed()] == [event_id]

    repo.mark_logged([event_id])

    assert [e.id for e in repo.scan_completed()] == [event_id]
    assert repo.scan_completed(unlogged_only=True) == []
