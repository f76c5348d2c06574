from datetime import timedelta

from roadmap_tracker.metrics import (
    build_user_metrics, calc_longest_streak, calc_streak, calc_total_points, calc_totals,
    get_level, get_next_level, points_to_next_level,
)
from conftest import TODAY, make_achievement, make_log, make_phase


def days_ago(*offsets):
    return [make_log(TODAY - timedelta(days=n)) for n in offsets]


def test_streak_counts_consecutive_days_ending_today():
    assert calc_streak(days_ago(0, 1, 2), TODAY) == 3


def test_streak_stops_at_gap():
    assert calc_streak(days_ago(0, 2), TODAY) == 1


def test_streak_is_zero_without_log_today():
    assert calc_streak(days_ago(1, 2, 3), TODAY) == 0
    assert calc_streak([], TODAY) == 0


def test_streak_counts_a_day_once():
    assert calc_streak(days_ago(0, 0, 1), TODAY) == 2


def test_longest_streak_anywhere_in_history():
    assert calc_longest_streak(days_ago(0, 10, 11, 12, 13, 20)) == 4
    assert calc_longest_streak([]) == 0


def test_totals_keep_fractional_hours():
    logs = [make_log(TODAY, hours=1.25, problems=2), make_log(TODAY, hours=0.5, problems=3)]
    assert calc_totals(logs) == {"total_hours": 1.75, "total_problems_solved": 5}


def test_total_points_counts_only_unlocked():
    achievements = [make_achievement("a", 50, unlocked=True), make_achievement("b", 100)]
    assert calc_total_points(achievements) == 50


def test_level_bands():
    assert get_level(500).name == "Bronze"
    assert get_level(501).name == "Silver"
    assert get_level(1501).name == "Gold"
    assert get_level(3001).name == "Platinum"
    assert get_level(5000).name == "Diamond"


def test_points_to_next_level():
    assert points_to_next_level(0) == 501
    assert points_to_next_level(1500) == 1
    assert points_to_next_level(5000) == 0
    assert get_next_level(6000) is None


def test_build_user_metrics():
    logs = days_ago(0, 1)
    phases = [make_phase("p1", projects=1, done_projects=1), make_phase("p2", topics=2, done_topics=1)]
    achievements = [make_achievement("a", 600, unlocked=True), make_achievement("b", 100)]
    metrics = build_user_metrics(logs, phases, achievements, TODAY)
    assert metrics.current_streak == 2
    assert metrics.longest_streak == 2
    assert metrics.total_hours == 2.0
    assert metrics.total_points == 600
    assert metrics.level == "Silver"
    assert metrics.points_to_next_level == 901
    assert metrics.total_achievements_unlocked == 1
    assert metrics.total_projects_completed == 1
    assert metrics.total_topics_completed == 1
    assert metrics.total_phases_completed == 1
    assert metrics.last_activity_date == TODAY
