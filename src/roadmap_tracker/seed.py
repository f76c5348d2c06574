"""Seed the database with the curriculum and the default achievement catalog."""
import json
from functools import lru_cache
from pathlib import Path

from roadmap_tracker.db import get_connection
from roadmap_tracker.models import Achievement, AchievementTemplate, Phase

CONTENT_DIR = Path(__file__).parent / "content"


def _read_content(name: str) -> dict:
    return json.loads((CONTENT_DIR / name).read_text(encoding="utf-8"))


def load_default_phases() -> list[Phase]:
    return [Phase.from_dict(p) for p in _read_content("phases.json")["phases"]]


def load_default_achievements() -> list[Achievement]:
    data = _read_content("achievements.json")["achievements"]
    return [Achievement.from_dict({**a, "order": i}) for i, a in enumerate(data, 1)]


@lru_cache(maxsize=None)
def default_achievement_ids() -> frozenset:
    return frozenset(a.id for a in load_default_achievements())


@lru_cache(maxsize=None)
def load_templates() -> tuple[AchievementTemplate, ...]:
    return tuple(AchievementTemplate(**t) for t in _read_content("templates.json")["templates"])


def is_seeded(db_path: str) -> bool:
    """Check whether the database has already been seeded with phases."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM phases").fetchone()[0]
    conn.close()
    return count > 0


def seed_phases(db_path: str) -> None:
    """Insert phases with their topics, resources and projects from phases.json."""
    conn = get_connection(db_path)
    for p_index, phase in enumerate(load_default_phases(), 1):
        conn.execute(
            """INSERT OR IGNORE INTO phases
            (id, title, description, start_date, end_date, weeks, progress, status,
             leetcode_target, leetcode_completed, order_index)
            VALUES (?, ?, ?, ?, ?, ?, 0, 'not-started', ?, 0, ?)""",
            (
                phase.id, phase.title, phase.description,
                phase.start_date.isoformat() if phase.start_date else None,
                phase.end_date.isoformat() if phase.end_date else None,
                phase.weeks, phase.leetcode_target, p_index,
            ),
        )
        for t_index, topic in enumerate(phase.topics, 1):
            conn.execute(
                "INSERT OR IGNORE INTO topics (id, phase_id, name, description, order_index) VALUES (?, ?, ?, ?, ?)",
                (topic.id, phase.id, topic.name, topic.description, t_index),
            )
            for r_index, resource in enumerate(topic.resources, 1):
                conn.execute(
                    "INSERT OR IGNORE INTO resources (id, topic_id, name, url, type, order_index) VALUES (?, ?, ?, ?, ?, ?)",
                    (resource.id, topic.id, resource.name, resource.url, resource.type, r_index),
                )
        for j_index, project in enumerate(phase.projects, 1):
            conn.execute(
                """INSERT OR IGNORE INTO projects
                (id, phase_id, name, description, status, technologies, is_custom, order_index)
                VALUES (?, ?, ?, ?, 'not-started', ?, 0, ?)""",
                (project.id, phase.id, project.name, project.description,
                 json.dumps(project.technologies), j_index),
            )
    conn.commit()
    conn.close()


def seed_achievements(db_path: str) -> None:
    """Insert the default achievement catalog, all locked and active."""
    conn = get_connection(db_path)
    for a in load_default_achievements():
        conn.execute(
            """INSERT OR IGNORE INTO achievements
            (id, title, description, icon, category, points, requirement, unlocked, is_active, order_index)
            VALUES (?, ?, ?, ?, ?, ?, ?, 0, 1, ?)""",
            (a.id, a.title, a.description, a.icon, a.category, a.points, a.requirement, a.order),
        )
    conn.commit()
    conn.close()


def seed_all(db_path: str) -> None:
    """Run all seed functions in order."""
    if is_seeded(db_path):
        return
    seed_phases(db_path)
    seed_achievements(db_path)
