"""Streaks, totals, points and levels derived from the activity log."""
from datetime import date, timedelta
from typing import Iterable, Optional

from roadmap_tracker.models import Achievement, DailyLog, Level, Phase, UserMetrics
from roadmap_tracker.progress import is_phase_complete

LEVELS = (
    Level("Bronze", "🥉", 0),
    Level("Silver", "🥈", 501),
    Level("Gold", "🥇", 1501),
    Level("Platinum", "🏅", 3001),
    Level("Diamond", "💎", 5000),
)


def calc_streak(logs: Iterable[DailyLog], today: date) -> int:
    """Count consecutive days with at least one log, walking back from today."""
    logged_days = {log.date for log in logs}
    streak = 0
    day = today
    while day in logged_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def calc_longest_streak(logs: Iterable[DailyLog]) -> int:
    days = sorted({log.date for log in logs})
    longest = 0
    run = 0
    previous = None
    for day in days:
        if previous is not None and day - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day
    return longest


def calc_totals(logs: Iterable[DailyLog]) -> dict:
    total_hours = 0.0
    total_problems = 0
    for log in logs:
        total_hours += log.hours_spent
        total_problems += log.leetcode_problems
    return {"total_hours": total_hours, "total_problems_solved": total_problems}


def calc_total_points(achievements: Iterable[Achievement]) -> int:
    return sum(a.points for a in achievements if a.unlocked)


def get_level(total_points: int) -> Level:
    current = LEVELS[0]
    for level in LEVELS:
        if total_points >= level.min_points:
            current = level
    return current


def get_next_level(total_points: int) -> Optional[Level]:
    for level in LEVELS:
        if level.min_points > total_points:
            return level
    return None


def points_to_next_level(total_points: int) -> int:
    nxt = get_next_level(total_points)
    return nxt.min_points - total_points if nxt else 0


def build_user_metrics(
    logs: list[DailyLog],
    phases: list[Phase],
    achievements: list[Achievement],
    today: date,
) -> UserMetrics:
    totals = calc_totals(logs)
    total_points = calc_total_points(achievements)
    return UserMetrics(
        current_streak=calc_streak(logs, today),
        longest_streak=calc_longest_streak(logs),
        total_hours=totals["total_hours"],
        total_problems_solved=totals["total_problems_solved"],
        total_points=total_points,
        level=get_level(total_points).name,
        points_to_next_level=points_to_next_level(total_points),
        total_achievements_unlocked=sum(1 for a in achievements if a.unlocked),
        total_projects_completed=sum(
            1 for ph in phases for p in ph.projects if p.status == "completed"
        ),
        total_topics_completed=sum(1 for ph in phases for t in ph.topics if t.completed),
        total_phases_completed=sum(1 for ph in phases if is_phase_complete(ph)),
        last_activity_date=max((log.date for log in logs), default=None),
    )
