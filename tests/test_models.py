from datetime import date, datetime

from roadmap_tracker.models import Achievement, DailyLog, Phase, UserMetrics


def test_phase_from_dict_builds_nested_items():
    phase = Phase.from_dict({
        "id": "phase-1",
        "title": "Foundations",
        "start_date": "2025-08-08",
        "topics": [{"id": "t1", "name": "HTML", "resources": [{"id": "1", "name": "MDN"}]}],
        "projects": [{"id": "p1", "name": "Portfolio", "technologies": ["HTML"]}],
    })
    assert phase.start_date == date(2025, 8, 8)
    assert phase.topics[0].resources[0].name == "MDN"
    assert phase.projects[0].status == "not-started"
    assert phase.projects[0].technologies == ["HTML"]


def test_phase_progress_nan_becomes_none():
    assert Phase.from_dict({"id": "x", "title": "X", "progress": float("nan")}).progress is None
    assert Phase.from_dict({"id": "x", "title": "X", "progress": "NaN"}).progress is None
    assert Phase.from_dict({"id": "x", "title": "X", "progress": None}).progress is None
    assert Phase.from_dict({"id": "x", "title": "X", "progress": 40}).progress == 40


def test_daily_log_to_dict_uses_iso_strings():
    log = DailyLog(date=date(2026, 10, 14), phase_id="phase-1", hours_spent=2.5,
                   logged_at=datetime(2026, 10, 14, 7, 30))
    data = log.to_dict()
    assert data["date"] == "2026-10-14"
    assert data["logged_at"] == "2026-10-14T07:30:00"
    assert DailyLog.from_dict(data) == log


def test_achievement_from_dict_defaults():
    a = Achievement.from_dict({"id": "hours-10", "title": "Dedicated Learner", "points": 50})
    assert not a.unlocked
    assert a.is_active
    assert a.unlocked_date is None
    assert a.category == "special"


def test_user_metrics_from_dict_ignores_unknown_columns():
    metrics = UserMetrics.from_dict({
        "id": 1, "updated_at": "2026-10-14T12:00:00",
        "total_hours": 3.5, "last_activity_date": "2026-10-13",
    })
    assert metrics.total_hours == 3.5
    assert metrics.last_activity_date == date(2026, 10, 13)
    assert metrics.level == "Bronze"
