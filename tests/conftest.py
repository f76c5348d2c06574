from datetime import date, datetime

import pytest

from roadmap_tracker.models import Achievement, DailyLog, Phase, Project, Topic

# A Wednesday, at noon
NOW = datetime(2026, 10, 14, 12, 0)
TODAY = NOW.date()


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tracker.db")
    return db_path


@pytest.fixture
def tmp_cache(tmp_path):
    """Provide a temporary path for the JSON fallback cache."""
    return str(tmp_path / "cache.json")


def make_log(day: date, hours: float = 1.0, problems: int = 0, phase_id: str = "phase-1",
             logged_at: datetime = None) -> DailyLog:
    return DailyLog(
        date=day, phase_id=phase_id, hours_spent=hours, leetcode_problems=problems,
        logged_at=logged_at or datetime.combine(day, NOW.time()),
    )


def make_phase(phase_id: str = "p1", topics: int = 0, done_topics: int = 0,
               projects: int = 0, done_projects: int = 0) -> Phase:
    return Phase(
        id=phase_id,
        title=f"Phase {phase_id}",
        topics=[Topic(id=f"{phase_id}-t{i}", name=f"Topic {i}", completed=i < done_topics)
                for i in range(topics)],
        projects=[Project(id=f"{phase_id}-p{i}", name=f"Project {i}",
                          status="completed" if i < done_projects else "not-started")
                  for i in range(projects)],
    )


def make_achievement(achievement_id: str, points: int = 50, unlocked: bool = False,
                     is_active: bool = True, order: int = 0, title: str = None) -> Achievement:
    return Achievement(
        id=achievement_id, title=title or achievement_id.replace("-", " ").title(),
        description="", icon="*", category="special", points=points,
        unlocked=unlocked, unlocked_date=TODAY if unlocked else None,
        is_active=is_active, order=order,
    )
