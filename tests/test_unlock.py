from datetime import timedelta

import pytest

from roadmap_tracker.events import ACHIEVEMENT_UNLOCKED, ACHIEVEMENTS_UNLOCKED, EventBus
from roadmap_tracker.store import SqliteStore
from roadmap_tracker.unlock import announce_batch, apply_unlocks, can_mark_complete, mark_complete
from conftest import TODAY, make_achievement


@pytest.fixture
def store(tmp_db):
    store = SqliteStore(tmp_db)
    store.prepare()
    return store


@pytest.fixture
def bus_events():
    bus = EventBus()
    events = []
    bus.subscribe(ACHIEVEMENT_UNLOCKED, lambda a: events.append(("one", a.id)))
    bus.subscribe(ACHIEVEMENTS_UNLOCKED, lambda batch: events.append(("many", [a.id for a in batch])))
    return bus, events


def test_apply_unlocks_persists_and_emits(store, bus_events):
    bus, events = bus_events
    achievements = store.load_achievements()
    unlocked = apply_unlocks(store, achievements, ["hours-10", "leetcode-10"], TODAY, bus)
    assert [a.id for a in unlocked] == ["hours-10", "leetcode-10"]
    assert events == [("one", "hours-10"), ("one", "leetcode-10")]
    in_memory = {a.id: a for a in achievements}
    assert in_memory["hours-10"].unlocked
    assert in_memory["hours-10"].unlocked_date == TODAY
    stored = {a.id: a for a in store.load_achievements()}
    assert stored["leetcode-10"].unlocked


def test_apply_unlocks_is_idempotent(store, bus_events):
    bus, events = bus_events
    achievements = store.load_achievements()
    apply_unlocks(store, achievements, ["hours-10"], TODAY, bus)
    again = apply_unlocks(store, achievements, ["hours-10"], TODAY + timedelta(days=1), bus)
    assert again == []
    assert events == [("one", "hours-10")]
    assert {a.id: a for a in store.load_achievements()}["hours-10"].unlocked_date == TODAY


def test_apply_unlocks_skips_unknown_ids(store):
    achievements = store.load_achievements()
    assert apply_unlocks(store, achievements, ["first-log"], TODAY) == []


def test_announce_batch_only_for_several(bus_events):
    bus, events = bus_events
    announce_batch(bus, [make_achievement("a")])
    assert events == []
    announce_batch(bus, [make_achievement("a"), make_achievement("b")])
    assert events == [("many", ["a", "b"])]


def test_can_mark_complete():
    assert can_mark_complete(make_achievement("github-commit"))
    assert can_mark_complete(make_achievement("achievement-4f2a"))
    assert not can_mark_complete(make_achievement("hours-10"))


def test_mark_complete_unlocks_and_retires(store, bus_events):
    bus, events = bus_events
    achievements = store.load_achievements()
    done = mark_complete(store, achievements, "github-commit", TODAY, bus)
    assert done.unlocked
    assert not done.is_active
    assert events == [("one", "github-commit")]
    assert not {a.id: a for a in achievements}["github-commit"].is_active
