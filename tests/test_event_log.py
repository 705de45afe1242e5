import pytest

from core.event_log import EventLogStore
from core.events import EventKind, MatchEvent
from core.exceptions import StorageFailure


def make_event(kind, at, match_id="m1", player_id=None, event_id=None):
    return MatchEvent(
        match_id=match_id,
        kind=kind,
        match_minute=1,
        occurred_at_ms=at,
        player_id=player_id,
        id=event_id,
    )


# ---------------------------------------------------------
# Append
# ---------------------------------------------------------

def test_append_assigns_id():
    store = EventLogStore()

    stored = store.append(make_event(EventKind.KICKOFF, 1))

    assert stored.id
    assert store.list("m1") == [stored]


def test_append_keeps_existing_id():
    store = EventLogStore()

    stored = store.append(make_event(EventKind.KICKOFF, 1, event_id="fixed"))

    assert stored.id == "fixed"


def test_append_preserves_order():
    store = EventLogStore()

    kinds = [EventKind.KICKOFF, EventKind.GOAL_OPPONENT, EventKind.PAUSE]
    for i, kind in enumerate(kinds):
        store.append(make_event(kind, i + 1))

    assert [e.kind for e in store.list("m1")] == kinds


def test_logs_are_per_match():
    store = EventLogStore()

    store.append(make_event(EventKind.KICKOFF, 1, match_id="m1"))
    store.append(make_event(EventKind.KICKOFF, 2, match_id="m2"))
    store.append(make_event(EventKind.GOAL_OPPONENT, 3, match_id="m2"))

    assert store.count("m1") == 1
    assert store.count("m2") == 2
    assert store.list("unknown") == []


def test_full_log_raises_storage_failure_and_keeps_log():
    store = EventLogStore(max_events_per_match=2)

    store.append(make_event(EventKind.KICKOFF, 1))
    store.append(make_event(EventKind.GOAL_OPPONENT, 2))

    with pytest.raises(StorageFailure):
        store.append(make_event(EventKind.PAUSE, 3))

    assert store.count("m1") == 2


# ---------------------------------------------------------
# Remove last
# ---------------------------------------------------------

def test_remove_last_on_empty_log():
    store = EventLogStore()

    assert store.remove_last("m1") is None


def test_remove_last_is_unconditional():
    store = EventLogStore()

    store.append(make_event(EventKind.KICKOFF, 1))
    pause = store.append(make_event(EventKind.PAUSE, 2))

    removed = store.remove_last("m1")

    assert removed == pause
    assert [e.kind for e in store.list("m1")] == [EventKind.KICKOFF]


def test_remove_last_only_touches_its_match():
    store = EventLogStore()

    store.append(make_event(EventKind.KICKOFF, 1, match_id="m1"))
    store.append(make_event(EventKind.KICKOFF, 2, match_id="m2"))

    store.remove_last("m2")

    assert store.count("m1") == 1
    assert store.count("m2") == 0


# ---------------------------------------------------------
# Listing
# ---------------------------------------------------------

def test_load_sorts_by_timestamp():
    store = EventLogStore()

    store.load("m1", [
        make_event(EventKind.GOAL_OWN, 30, player_id="p1"),
        make_event(EventKind.KICKOFF, 10),
        make_event(EventKind.GOAL_OPPONENT, 20),
    ])

    assert [e.occurred_at_ms for e in store.list("m1")] == [10, 20, 30]


def test_list_is_a_copy():
    store = EventLogStore()
    store.append(make_event(EventKind.KICKOFF, 1))

    listing = store.list("m1")
    listing.clear()

    assert store.count("m1") == 1
