"""The engine session: owns the in-memory snapshot and runs every user action.

Each action goes through the persistence port, re-evaluates achievements and
notifies subscribers through the event bus. Store failures never escape a
session method: they are logged, recorded in ``last_error`` and the method
returns None.
"""
import dataclasses
import logging
import random
from datetime import date, datetime
from typing import Callable, Optional

from roadmap_tracker.config import POOL_FLOOR
from roadmap_tracker.evaluator import evaluate
from roadmap_tracker.events import METRICS_UPDATED, EventBus
from roadmap_tracker.exceptions import StoreError
from roadmap_tracker.focus import build_focus_log
from roadmap_tracker.metrics import build_user_metrics, get_level, get_next_level
from roadmap_tracker.models import (
    PROJECT_STATUSES, Achievement, AchievementTemplate, DailyLog, Level, Phase, Project, UserMetrics,
)
from roadmap_tracker.pool import available, replenish
from roadmap_tracker.progress import normalize_phase
from roadmap_tracker.seed import load_default_achievements, load_default_phases, load_templates
from roadmap_tracker.store import BaseStore, CacheStore
from roadmap_tracker.unlock import announce_batch, apply_unlocks, can_mark_complete, mark_complete

logger = logging.getLogger(__name__)


class RoadmapSession:
    def __init__(
        self,
        store: BaseStore,
        cache: Optional[CacheStore] = None,
        bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = datetime.now,
        pool_floor: int = POOL_FLOOR,
        templates: Optional[tuple[AchievementTemplate, ...]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.cache = cache
        self.bus = bus or EventBus()
        self.clock = clock
        self.pool_floor = pool_floor
        self.templates = templates if templates is not None else load_templates()
        self.rng = rng or random.Random()
        self.active: Optional[BaseStore] = None
        self.offline = False
        self.last_error: Optional[str] = None
        self._phases: list[Phase] = []
        self._logs: list[DailyLog] = []
        self._achievements: list[Achievement] = []
        self._metrics = UserMetrics()

    # -- accessors --

    @property
    def today(self) -> date:
        return self.clock().date()

    @property
    def phases(self) -> list[Phase]:
        return list(self._phases)

    @property
    def daily_logs(self) -> list[DailyLog]:
        return list(self._logs)

    @property
    def achievements(self) -> list[Achievement]:
        return list(self._achievements)

    @property
    def available_achievements(self) -> list[Achievement]:
        return available(self._achievements)

    @property
    def unlocked_achievements(self) -> list[Achievement]:
        return [a for a in self._achievements if a.unlocked]

    @property
    def metrics(self) -> UserMetrics:
        return self._metrics

    @property
    def level(self) -> Level:
        return get_level(self._metrics.total_points)

    @property
    def next_level(self) -> Optional[Level]:
        return get_next_level(self._metrics.total_points)

    def find_phase(self, phase_id: str) -> Optional[Phase]:
        return next((p for p in self._phases if p.id == phase_id), None)

    def find_achievement(self, achievement_id: str) -> Optional[Achievement]:
        return next((a for a in self._achievements if a.id == achievement_id), None)

    # -- loading --

    def _load_from(self, store: BaseStore) -> None:
        phases = [normalize_phase(p) for p in store.load_phases()]
        logs = store.load_daily_logs()
        achievements = store.load_achievements()
        self._phases, self._logs, self._achievements = phases, logs, achievements
        self._metrics = build_user_metrics(logs, phases, achievements, self.today)

    def _checkpoint(self) -> None:
        """Refresh the last-known-good cache after a successful primary operation."""
        if self.cache is None or self.active is not self.store:
            return
        try:
            self.cache.save_snapshot(self._phases, self._logs, self._achievements, self._metrics)
        except StoreError:
            logger.warning("Could not refresh cache at %s", self.cache.cache_path, exc_info=True)

    def bootstrap(self) -> bool:
        """Load state from the primary store, then the cache, then packaged seed data.

        Returns True when a writable store is in use.
        """
        try:
            self.store.prepare()
            self._load_from(self.store)
        except StoreError as e:
            logger.error("Primary store unavailable: %s", e)
            self.last_error = f"Failed to load data: {e}"
        else:
            self.active = self.store
            self.offline = False
            self.last_error = None
            self._checkpoint()
            self.bus.emit(METRICS_UPDATED, self._metrics)
            return True

        self.offline = True
        if self.cache is not None:
            try:
                self._load_from(self.cache)
            except StoreError as e:
                logger.error("Cache unavailable: %s", e)
            else:
                logger.warning("Working from cached data at %s", self.cache.cache_path)
                self.active = self.cache
                self.bus.emit(METRICS_UPDATED, self._metrics)
                return True

        logger.warning("No store available, starting from packaged seed data")
        self._phases = [normalize_phase(p) for p in load_default_phases()]
        self._logs = []
        self._achievements = load_default_achievements()
        self._metrics = build_user_metrics([], self._phases, self._achievements, self.today)
        self.active = None
        if self.cache is not None:
            try:
                self.cache.save_snapshot(self._phases, self._logs, self._achievements, self._metrics)
                self.active = self.cache
            except StoreError:
                logger.exception("Could not create cache at %s", self.cache.cache_path)
        self.bus.emit(METRICS_UPDATED, self._metrics)
        return self.active is not None

    # -- plumbing --

    def _run(self, action: str, operation: Callable[[BaseStore], object]):
        if self.active is None:
            self.last_error = f"Failed to {action}: no data store is available"
            logger.error(self.last_error)
            return None
        try:
            result = operation(self.active)
        except StoreError as e:
            logger.exception("Failed to %s", action)
            self.last_error = f"Failed to {action}: {e}"
            return None
        self.last_error = None
        self._checkpoint()
        return result

    def _reject(self, message: str) -> None:
        logger.warning(message)
        self.last_error = message

    def _replace_phase(self, phase: Phase) -> None:
        for i, p in enumerate(self._phases):
            if p.id == phase.id:
                self._phases[i] = phase
                return
        self._phases.append(phase)

    def _refresh(self, store: BaseStore) -> list[Achievement]:
        """Evaluate until nothing more unlocks, then store fresh metrics and notify."""
        unlocked = []
        while True:
            metrics = build_user_metrics(self._logs, self._phases, self._achievements, self.today)
            ids = evaluate(metrics, self._logs, self._phases, self._achievements)
            newly = apply_unlocks(store, self._achievements, ids, self.today, self.bus)
            if not newly:
                break
            unlocked.extend(newly)
        announce_batch(self.bus, unlocked)
        self._metrics = store.recompute_user_metrics(self.today)
        self.bus.emit(METRICS_UPDATED, self._metrics)
        return unlocked

    def _after_change(self, result):
        """Re-evaluate after a committed change. The change stands even if this fails."""
        if result is not None and self._run("update achievements", self._refresh) is None:
            self._metrics = build_user_metrics(self._logs, self._phases, self._achievements, self.today)
            self.bus.emit(METRICS_UPDATED, self._metrics)
        return result

    # -- actions --

    def add_daily_log(self, entry: DailyLog) -> Optional[DailyLog]:
        if entry.hours_spent < 0 or entry.leetcode_problems < 0:
            self._reject("Hours and problems solved cannot be negative")
            return None
        if entry.logged_at is None:
            entry = dataclasses.replace(entry, logged_at=self.clock())

        def operation(store):
            stored = store.append_daily_log(entry)
            self._logs.append(stored)
            return stored

        return self._after_change(self._run("save daily log", operation))

    def _phase_action(self, action: str, call: Callable[[BaseStore], Phase]) -> Optional[Phase]:
        def operation(store):
            phase = call(store)
            self._replace_phase(phase)
            return phase

        return self._after_change(self._run(action, operation))

    def _find_project(self, project_id: str) -> Optional[Project]:
        return next((p for ph in self._phases for p in ph.projects if p.id == project_id), None)

    def set_topic_completed(self, topic_id: str, completed: bool) -> Optional[Phase]:
        return self._phase_action(
            "update topic", lambda store: store.set_topic_completed(topic_id, completed)
        )

    def set_resource_completed(self, resource_id: str, completed: bool) -> Optional[Phase]:
        return self._phase_action(
            "update resource", lambda store: store.set_resource_completed(resource_id, completed)
        )

    def set_project_status(self, project_id: str, status: str) -> Optional[Phase]:
        if status not in PROJECT_STATUSES:
            self._reject(f"Unknown project status: {status}")
            return None
        return self._phase_action(
            "update project", lambda store: store.set_project_status(project_id, status)
        )

    def add_project(
        self,
        phase_id: str,
        name: str,
        description: str = "",
        technologies: Optional[list[str]] = None,
        github_url: Optional[str] = None,
        live_url: Optional[str] = None,
    ) -> Optional[Phase]:
        if not name.strip():
            self._reject("Project name is required")
            return None
        project = Project(
            id="", name=name.strip(), description=description,
            technologies=list(technologies or []), is_custom=True,
            github_url=github_url, live_url=live_url,
        )
        return self._phase_action("add project", lambda store: store.add_project(phase_id, project))

    def delete_project(self, project_id: str) -> Optional[Phase]:
        """Remove a user-added project. Roadmap projects cannot be deleted."""
        project = self._find_project(project_id)
        if project is None:
            self._reject(f"Unknown project: {project_id}")
            return None
        if not project.is_custom:
            self._reject(f"{project.name} is part of the roadmap and cannot be deleted")
            return None
        return self._phase_action("delete project", lambda store: store.delete_project(project_id))

    def mark_complete(self, achievement_id: str) -> Optional[Achievement]:
        achievement = self.find_achievement(achievement_id)
        if achievement is None:
            self._reject(f"Unknown achievement: {achievement_id}")
            return None
        if not can_mark_complete(achievement):
            self._reject(f"{achievement.title} unlocks automatically from your progress")
            return None

        def operation(store):
            return mark_complete(store, self._achievements, achievement_id, self.today, self.bus)

        return self._after_change(self._run("complete achievement", operation))

    def replenish_pool(self) -> Optional[Achievement]:
        """Add one generated achievement when fewer than ``pool_floor`` are available."""
        new = replenish(self.templates, self._achievements, self.pool_floor, self.rng)
        if new is None:
            logger.debug("Pool has %d available achievements, no replenishment needed",
                         len(self.available_achievements))
            return None

        def operation(store):
            stored = store.add_achievement(new)
            self._achievements.append(stored)
            logger.info("Generated achievement %s (%s)", stored.id, stored.title)
            return stored

        return self._run("generate achievement", operation)

    def reset_achievements(self) -> Optional[list[Achievement]]:
        """Lock every achievement and drop generated ones. Callers confirm with the user first."""
        def operation(store):
            self._achievements = store.reset_achievements()
            self._metrics = store.recompute_user_metrics(self.today)
            logger.info("Achievements reset to %d defaults", len(self._achievements))
            self.bus.emit(METRICS_UPDATED, self._metrics)
            return list(self._achievements)

        return self._run("reset achievements", operation)

    def complete_focus_session(
        self, started_at: Optional[datetime], ended_at: Optional[datetime] = None
    ) -> Optional[DailyLog]:
        entry = build_focus_log(self._phases, started_at, ended_at or self.clock())
        if entry is None:
            self._reject("No phase to log the focus session against")
            return None
        return self.add_daily_log(entry)
