"""Commit unlock decisions to the store and notify subscribers."""
import logging
from datetime import date
from typing import Optional

from roadmap_tracker.events import ACHIEVEMENT_UNLOCKED, ACHIEVEMENTS_UNLOCKED, EventBus
from roadmap_tracker.models import Achievement
from roadmap_tracker.rules import MANUAL_ACHIEVEMENT_IDS
from roadmap_tracker.seed import default_achievement_ids
from roadmap_tracker.store import BaseStore

logger = logging.getLogger(__name__)


def _replace(achievements: list[Achievement], stored: Achievement) -> None:
    for i, a in enumerate(achievements):
        if a.id == stored.id:
            achievements[i] = stored
            return


def apply_unlocks(
    store: BaseStore,
    achievements: list[Achievement],
    ids: list[str],
    today: date,
    bus: Optional[EventBus] = None,
) -> list[Achievement]:
    """Unlock ``ids`` in the given order and return the achievements newly unlocked.

    ``achievements`` is updated in place as each unlock is persisted. Ids that
    are unknown or already unlocked are skipped, so calling this twice with
    the same ids unlocks and emits nothing the second time.
    """
    by_id = {a.id: a for a in achievements}
    unlocked = []
    for achievement_id in ids:
        current = by_id.get(achievement_id)
        if current is None or current.unlocked:
            continue
        stored = store.record_unlock(achievement_id, today)
        _replace(achievements, stored)
        by_id[achievement_id] = stored
        unlocked.append(stored)
        logger.info("Unlocked %s (+%d points)", stored.id, stored.points)
        if bus is not None:
            bus.emit(ACHIEVEMENT_UNLOCKED, stored)
    return unlocked


def announce_batch(bus: Optional[EventBus], unlocked: list[Achievement]) -> None:
    """Emit one combined notification when a single action unlocked several achievements."""
    if bus is not None and len(unlocked) > 1:
        bus.emit(ACHIEVEMENTS_UNLOCKED, list(unlocked))


def can_mark_complete(achievement: Achievement) -> bool:
    """Manual achievements and generated ones can only be completed by the user."""
    return (
        achievement.id in MANUAL_ACHIEVEMENT_IDS
        or achievement.id not in default_achievement_ids()
    )


def mark_complete(
    store: BaseStore,
    achievements: list[Achievement],
    achievement_id: str,
    today: date,
    bus: Optional[EventBus] = None,
) -> Achievement:
    """Unlock an achievement by hand and retire it from the available pool."""
    apply_unlocks(store, achievements, [achievement_id], today, bus)
    stored = store.retire_achievement(achievement_id)
    _replace(achievements, stored)
    return stored
