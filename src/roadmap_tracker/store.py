"""Persistence port and its two implementations.

``SqliteStore`` is the primary store. ``CacheStore`` keeps a last-known-good
JSON snapshot that the session falls back to when the primary store cannot
be reached. Both raise ``StoreError`` (or a subclass) on failure.
"""
import json
import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from roadmap_tracker.db import get_connection, init_db
from roadmap_tracker.exceptions import NotFound, StoreError, StoreUnavailable
from roadmap_tracker.metrics import build_user_metrics
from roadmap_tracker.models import (
    PROJECT_STATUSES, Achievement, DailyLog, Phase, Project, Resource, Topic, UserMetrics,
)
from roadmap_tracker.pool import reset_catalog
from roadmap_tracker.progress import refresh_phase
from roadmap_tracker.seed import (
    default_achievement_ids, load_default_achievements, seed_achievements, seed_all,
)

logger = logging.getLogger(__name__)


SNAPSHOT_KEYS = ("phases", "daily_logs", "achievements")


def _check_status(status: str) -> None:
    if status not in PROJECT_STATUSES:
        raise ValueError(f"Unknown project status: {status}")


@contextmanager
def _decoding(source):
    """Turn stored data that cannot be read back into models into StoreUnavailable."""
    try:
        yield
    except (KeyError, ValueError, TypeError) as e:
        raise StoreUnavailable(f"Unreadable data in {source}: {e!r}") from e


class BaseStore(ABC):
    """Operations the engine requires from a persistence backend."""

    def prepare(self) -> None:
        """Make the backend ready for use. Raises StoreUnavailable when it cannot be."""

    @abstractmethod
    def load_phases(self) -> list[Phase]:
        pass

    @abstractmethod
    def load_daily_logs(self) -> list[DailyLog]:
        pass

    @abstractmethod
    def load_achievements(self) -> list[Achievement]:
        pass

    @abstractmethod
    def load_user_metrics(self) -> UserMetrics:
        pass

    @abstractmethod
    def append_daily_log(self, entry: DailyLog) -> DailyLog:
        """Store a new log entry and return it with its assigned id."""

    @abstractmethod
    def set_topic_completed(self, topic_id: str, completed: bool) -> Phase:
        """Return the owning phase with recomputed progress."""

    @abstractmethod
    def set_resource_completed(self, resource_id: str, completed: bool) -> Phase:
        pass

    @abstractmethod
    def set_project_status(self, project_id: str, status: str) -> Phase:
        """Return the owning phase with recomputed progress."""

    @abstractmethod
    def add_project(self, phase_id: str, project: Project) -> Phase:
        pass

    @abstractmethod
    def delete_project(self, project_id: str) -> Phase:
        """Remove a user-added project and return its phase with recomputed progress."""

    @abstractmethod
    def record_unlock(self, achievement_id: str, on_date: date) -> Achievement:
        pass

    @abstractmethod
    def retire_achievement(self, achievement_id: str) -> Achievement:
        pass

    @abstractmethod
    def add_achievement(self, achievement: Achievement) -> Achievement:
        pass

    @abstractmethod
    def recompute_user_metrics(self, today: date) -> UserMetrics:
        pass

    @abstractmethod
    def reset_achievements(self) -> list[Achievement]:
        """Lock and reactivate every achievement and drop all non-default ones."""


class SqliteStore(BaseStore):
    def __init__(self, db_path: str):
        self.db_path = db_path

    def prepare(self) -> None:
        """Create tables and seed the curriculum on first use."""
        try:
            init_db(self.db_path)
            seed_all(self.db_path)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailable(f"Cannot open database {self.db_path}: {e}") from e

    @contextmanager
    def _connect(self):
        try:
            conn = get_connection(self.db_path)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Cannot open database {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    # -- reads --

    def _load_phase(self, conn, phase_row) -> Phase:
        with _decoding(self.db_path):
            return self._build_phase(conn, phase_row)

    def _build_phase(self, conn, phase_row) -> Phase:
        topics = []
        for t in conn.execute(
            "SELECT * FROM topics WHERE phase_id = ? ORDER BY order_index", (phase_row["id"],)
        ).fetchall():
            resources = [
                Resource(
                    id=r["id"], name=r["name"], url=r["url"] or "",
                    type=r["type"], completed=bool(r["completed"]),
                )
                for r in conn.execute(
                    "SELECT * FROM resources WHERE topic_id = ? ORDER BY order_index", (t["id"],)
                ).fetchall()
            ]
            topics.append(Topic(
                id=t["id"], name=t["name"], description=t["description"] or "",
                completed=bool(t["completed"]), resources=resources,
            ))
        projects = [
            Project(
                id=p["id"], name=p["name"], description=p["description"] or "",
                status=p["status"], technologies=json.loads(p["technologies"] or "[]"),
                is_custom=bool(p["is_custom"]), github_url=p["github_url"], live_url=p["live_url"],
            )
            for p in conn.execute(
                "SELECT * FROM projects WHERE phase_id = ? ORDER BY order_index", (phase_row["id"],)
            ).fetchall()
        ]
        phase = Phase.from_dict(dict(phase_row))
        phase.topics = topics
        phase.projects = projects
        return phase

    def _phase_by_id(self, conn, phase_id: str) -> Phase:
        row = conn.execute("SELECT * FROM phases WHERE id = ?", (phase_id,)).fetchone()
        if row is None:
            raise NotFound(f"Unknown phase: {phase_id}")
        return self._load_phase(conn, row)

    def _save_progress(self, conn, phase_id: str) -> Phase:
        phase = refresh_phase(self._phase_by_id(conn, phase_id))
        conn.execute(
            "UPDATE phases SET progress = ?, status = ? WHERE id = ?",
            (phase.progress, phase.status, phase.id),
        )
        return phase

    def load_phases(self) -> list[Phase]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM phases ORDER BY order_index").fetchall()
            return [self._load_phase(conn, row) for row in rows]

    def load_daily_logs(self) -> list[DailyLog]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM daily_logs ORDER BY date, id").fetchall()
        return [self._log_from_row(r) for r in rows]

    def _log_from_row(self, row) -> DailyLog:
        with _decoding(self.db_path):
            return DailyLog.from_dict({**dict(row), "activities": json.loads(row["activities"] or "[]")})

    def _achievement_from_row(self, row) -> Achievement:
        with _decoding(self.db_path):
            return Achievement.from_dict({**dict(row), "order": row["order_index"]})

    def load_achievements(self) -> list[Achievement]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM achievements ORDER BY order_index").fetchall()
        return [self._achievement_from_row(r) for r in rows]

    def load_user_metrics(self) -> UserMetrics:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM user_stats WHERE id = 1").fetchone()
        if row is None:
            return UserMetrics()
        with _decoding(self.db_path):
            return UserMetrics.from_dict(dict(row))

    # -- writes --

    def append_daily_log(self, entry: DailyLog) -> DailyLog:
        logged_at = entry.logged_at or datetime.now()
        with self._connect() as conn:
            cursor = conn.execute(
                """INSERT INTO daily_logs
                (date, phase_id, topic_id, project_id, hours_spent, leetcode_problems, activities,
                 key_takeaway, reading_minutes, project_work_minutes, leetcode_minutes,
                 networking_minutes, logged_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    entry.date.isoformat(), entry.phase_id, entry.topic_id, entry.project_id,
                    entry.hours_spent, entry.leetcode_problems, json.dumps(entry.activities),
                    entry.key_takeaway, entry.reading_minutes, entry.project_work_minutes,
                    entry.leetcode_minutes, entry.networking_minutes, logged_at.isoformat(),
                ),
            )
            row = conn.execute("SELECT * FROM daily_logs WHERE id = ?", (cursor.lastrowid,)).fetchone()
        return self._log_from_row(row)

    def set_topic_completed(self, topic_id: str, completed: bool) -> Phase:
        with self._connect() as conn:
            row = conn.execute("SELECT phase_id FROM topics WHERE id = ?", (topic_id,)).fetchone()
            if row is None:
                raise NotFound(f"Unknown topic: {topic_id}")
            conn.execute("UPDATE topics SET completed = ? WHERE id = ?", (int(completed), topic_id))
            return self._save_progress(conn, row["phase_id"])

    def set_resource_completed(self, resource_id: str, completed: bool) -> Phase:
        with self._connect() as conn:
            row = conn.execute(
                """SELECT t.phase_id FROM resources r JOIN topics t ON r.topic_id = t.id
                WHERE r.id = ?""",
                (resource_id,),
            ).fetchone()
            if row is None:
                raise NotFound(f"Unknown resource: {resource_id}")
            conn.execute(
                "UPDATE resources SET completed = ? WHERE id = ?", (int(completed), resource_id)
            )
            return self._phase_by_id(conn, row["phase_id"])

    def set_project_status(self, project_id: str, status: str) -> Phase:
        _check_status(status)
        with self._connect() as conn:
            row = conn.execute("SELECT phase_id FROM projects WHERE id = ?", (project_id,)).fetchone()
            if row is None:
                raise NotFound(f"Unknown project: {project_id}")
            conn.execute("UPDATE projects SET status = ? WHERE id = ?", (status, project_id))
            return self._save_progress(conn, row["phase_id"])

    def add_project(self, phase_id: str, project: Project) -> Phase:
        _check_status(project.status)
        project_id = project.id or f"custom-{uuid.uuid4().hex[:12]}"
        with self._connect() as conn:
            self._phase_by_id(conn, phase_id)
            next_order = conn.execute(
                "SELECT COALESCE(MAX(order_index), 0) + 1 FROM projects WHERE phase_id = ?",
                (phase_id,),
            ).fetchone()[0]
            conn.execute(
                """INSERT INTO projects
                (id, phase_id, name, description, status, technologies, is_custom,
                 github_url, live_url, order_index)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    project_id, phase_id, project.name, project.description, project.status,
                    json.dumps(project.technologies), int(project.is_custom),
                    project.github_url, project.live_url, next_order,
                ),
            )
            return self._save_progress(conn, phase_id)

    def delete_project(self, project_id: str) -> Phase:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT phase_id, is_custom FROM projects WHERE id = ?", (project_id,)
            ).fetchone()
            if row is None:
                raise NotFound(f"Unknown project: {project_id}")
            if not row["is_custom"]:
                raise ValueError(f"Only custom projects can be deleted: {project_id}")
            conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
            return self._save_progress(conn, row["phase_id"])

    def _achievement(self, conn, achievement_id: str) -> Achievement:
        row = conn.execute("SELECT * FROM achievements WHERE id = ?", (achievement_id,)).fetchone()
        if row is None:
            raise NotFound(f"Unknown achievement: {achievement_id}")
        return self._achievement_from_row(row)

    def record_unlock(self, achievement_id: str, on_date: date) -> Achievement:
        with self._connect() as conn:
            self._achievement(conn, achievement_id)
            # An earlier unlock keeps its first date.
            conn.execute(
                "UPDATE achievements SET unlocked = 1, unlocked_date = ? WHERE id = ? AND unlocked = 0",
                (on_date.isoformat(), achievement_id),
            )
            return self._achievement(conn, achievement_id)

    def retire_achievement(self, achievement_id: str) -> Achievement:
        with self._connect() as conn:
            self._achievement(conn, achievement_id)
            conn.execute("UPDATE achievements SET is_active = 0 WHERE id = ?", (achievement_id,))
            return self._achievement(conn, achievement_id)

    def add_achievement(self, achievement: Achievement) -> Achievement:
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO achievements
                (id, title, description, icon, category, points, requirement,
                 unlocked, unlocked_date, is_active, order_index)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    achievement.id, achievement.title, achievement.description, achievement.icon,
                    achievement.category, achievement.points, achievement.requirement,
                    int(achievement.unlocked),
                    achievement.unlocked_date.isoformat() if achievement.unlocked_date else None,
                    int(achievement.is_active), achievement.order,
                ),
            )
            return self._achievement(conn, achievement.id)

    def recompute_user_metrics(self, today: date) -> UserMetrics:
        metrics = build_user_metrics(
            self.load_daily_logs(), self.load_phases(), self.load_achievements(), today,
        )
        values = metrics.to_dict()
        columns = list(values)
        with self._connect() as conn:
            conn.execute(
                f"""INSERT INTO user_stats (id, {", ".join(columns)}, updated_at)
                VALUES (1, {", ".join("?" for _ in columns)}, ?)
                ON CONFLICT(id) DO UPDATE SET {", ".join(f"{c}=excluded.{c}" for c in columns)},
                updated_at=excluded.updated_at""",
                (*values.values(), datetime.now().isoformat()),
            )
        return metrics

    def reset_achievements(self) -> list[Achievement]:
        defaults = default_achievement_ids()
        with self._connect() as conn:
            conn.execute("UPDATE achievements SET unlocked = 0, unlocked_date = NULL, is_active = 1")
            placeholders = ", ".join("?" for _ in defaults)
            removed = conn.execute(
                f"DELETE FROM achievements WHERE id NOT IN ({placeholders})", tuple(defaults)
            ).rowcount
        logger.info("Removed %d generated achievements", removed)
        try:
            seed_achievements(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return self.load_achievements()


class CacheStore(BaseStore):
    """JSON snapshot of the last state read from or written to the primary store."""

    def __init__(self, cache_path: str):
        self.cache_path = Path(cache_path)
        self._data: Optional[dict] = None

    def has_snapshot(self) -> bool:
        return self.cache_path.exists()

    def save_snapshot(
        self,
        phases: list[Phase],
        logs: list[DailyLog],
        achievements: list[Achievement],
        metrics: UserMetrics,
    ) -> None:
        self._data = {
            "saved_at": datetime.now().isoformat(),
            "phases": [p.to_dict() for p in phases],
            "daily_logs": [log.to_dict() for log in logs],
            "achievements": [a.to_dict() for a in achievements],
            "user_metrics": metrics.to_dict(),
        }
        self._write()

    def _write(self) -> None:
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Cannot write cache {self.cache_path}: {e}") from e

    def _snapshot(self) -> dict:
        if self._data is None:
            try:
                self._data = json.loads(self.cache_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                raise StoreUnavailable(f"No usable cache at {self.cache_path}: {e}") from e
            if not isinstance(self._data, dict) or any(
                not isinstance(self._data.get(key), list) for key in SNAPSHOT_KEYS
            ):
                self._data = None
                raise StoreUnavailable(f"No usable cache at {self.cache_path}: incomplete snapshot")
        return self._data

    def load_phases(self) -> list[Phase]:
        with _decoding(self.cache_path):
            return [Phase.from_dict(p) for p in self._snapshot()["phases"]]

    def load_daily_logs(self) -> list[DailyLog]:
        with _decoding(self.cache_path):
            return [DailyLog.from_dict(log) for log in self._snapshot()["daily_logs"]]

    def load_achievements(self) -> list[Achievement]:
        with _decoding(self.cache_path):
            return [Achievement.from_dict(a) for a in self._snapshot()["achievements"]]

    def load_user_metrics(self) -> UserMetrics:
        with _decoding(self.cache_path):
            return UserMetrics.from_dict(self._snapshot().get("user_metrics") or {})

    def _store_phases(self, phases: list[Phase]) -> None:
        self._snapshot()["phases"] = [p.to_dict() for p in phases]
        self._write()

    def _store_achievements(self, achievements: list[Achievement]) -> None:
        self._snapshot()["achievements"] = [a.to_dict() for a in achievements]
        self._write()

    def append_daily_log(self, entry: DailyLog) -> DailyLog:
        logs = self.load_daily_logs()
        stored = DailyLog.from_dict({
            **entry.to_dict(),
            "id": max((log.id or 0 for log in logs), default=0) + 1,
            "logged_at": (entry.logged_at or datetime.now()).isoformat(),
        })
        self._snapshot()["daily_logs"].append(stored.to_dict())
        self._write()
        return stored

    def _update_phase(self, match, apply) -> Phase:
        phases = self.load_phases()
        for phase in phases:
            item = match(phase)
            if item is not None:
                apply(item)
                refresh_phase(phase)
                self._store_phases(phases)
                return phase
        raise NotFound("Unknown item")

    def set_topic_completed(self, topic_id: str, completed: bool) -> Phase:
        return self._update_phase(
            lambda ph: next((t for t in ph.topics if t.id == topic_id), None),
            lambda t: setattr(t, "completed", completed),
        )

    def set_resource_completed(self, resource_id: str, completed: bool) -> Phase:
        return self._update_phase(
            lambda ph: next((r for t in ph.topics for r in t.resources if r.id == resource_id), None),
            lambda r: setattr(r, "completed", completed),
        )

    def set_project_status(self, project_id: str, status: str) -> Phase:
        _check_status(status)
        return self._update_phase(
            lambda ph: next((p for p in ph.projects if p.id == project_id), None),
            lambda p: setattr(p, "status", status),
        )

    def add_project(self, phase_id: str, project: Project) -> Phase:
        _check_status(project.status)
        if not project.id:
            project.id = f"custom-{uuid.uuid4().hex[:12]}"
        return self._update_phase(
            lambda ph: ph.projects if ph.id == phase_id else None,
            lambda projects: projects.append(project),
        )

    def delete_project(self, project_id: str) -> Phase:
        def match(phase):
            project = next((p for p in phase.projects if p.id == project_id), None)
            if project is not None and not project.is_custom:
                raise ValueError(f"Only custom projects can be deleted: {project_id}")
            return phase if project is not None else None

        def remove(phase):
            phase.projects = [p for p in phase.projects if p.id != project_id]

        return self._update_phase(match, remove)

    def _update_achievement(self, achievement_id: str, apply) -> Achievement:
        achievements = self.load_achievements()
        for a in achievements:
            if a.id == achievement_id:
                apply(a)
                self._store_achievements(achievements)
                return a
        raise NotFound(f"Unknown achievement: {achievement_id}")

    def record_unlock(self, achievement_id: str, on_date: date) -> Achievement:
        def unlock(a: Achievement) -> None:
            if not a.unlocked:
                a.unlocked = True
                a.unlocked_date = on_date
        return self._update_achievement(achievement_id, unlock)

    def retire_achievement(self, achievement_id: str) -> Achievement:
        return self._update_achievement(achievement_id, lambda a: setattr(a, "is_active", False))

    def add_achievement(self, achievement: Achievement) -> Achievement:
        self._snapshot()["achievements"].append(achievement.to_dict())
        self._write()
        return achievement

    def recompute_user_metrics(self, today: date) -> UserMetrics:
        metrics = build_user_metrics(
            self.load_daily_logs(), self.load_phases(), self.load_achievements(), today,
        )
        self._snapshot()["user_metrics"] = metrics.to_dict()
        self._write()
        return metrics

    def reset_achievements(self) -> list[Achievement]:
        achievements = reset_catalog(self.load_achievements(), load_default_achievements())
        self._store_achievements(achievements)
        return achievements
