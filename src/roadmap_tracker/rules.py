"""Achievement rule catalog.

Each rule binds one achievement id to a predicate over a ``RuleContext``.
The table order is the order in which unlocks are applied.
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from roadmap_tracker.models import DailyLog, Phase, UserMetrics
from roadmap_tracker.progress import is_phase_complete

# Achievements the engine cannot observe; unlocked only by "mark complete".
MANUAL_ACHIEVEMENT_IDS = frozenset({
    "github-commit", "linkedin-post", "blog-post", "open-source", "help-others",
    "code-reviewer", "conference-speaker", "podcast-guest", "tech-conference",
    "hackathon-winner", "startup-founder", "tech-lead", "cto",
})

MAX_PHASES = 10


@dataclass
class RuleContext:
    metrics: UserMetrics
    logs: list[DailyLog]
    phases: list[Phase]

    @property
    def completed_projects(self) -> int:
        return sum(1 for ph in self.phases for p in ph.projects if p.status == "completed")

    @property
    def completed_topics(self) -> int:
        return sum(1 for ph in self.phases for t in ph.topics if t.completed)

    @property
    def completed_resources(self) -> int:
        return sum(
            1 for ph in self.phases for t in ph.topics for r in t.resources if r.completed
        )


def has_perfect_week(logs: list[DailyLog], length: int = 7) -> bool:
    """True when ``length`` consecutive calendar dates all have a log."""
    days = sorted({log.date for log in logs})
    run = 0
    previous = None
    for day in days:
        run = run + 1 if previous and day - previous == timedelta(days=1) else 1
        if run >= length:
            return True
        previous = day
    return False


def _all_phases_complete(ctx: RuleContext) -> bool:
    return bool(ctx.phases) and all(is_phase_complete(ph) for ph in ctx.phases)


def _all_topics_complete(ctx: RuleContext) -> bool:
    topics = [t for ph in ctx.phases for t in ph.topics]
    return bool(topics) and all(t.completed for t in topics)


def _phase_complete(index: int) -> Callable[[RuleContext], bool]:
    def check(ctx: RuleContext) -> bool:
        return index < len(ctx.phases) and is_phase_complete(ctx.phases[index])
    return check


def _any_log(predicate: Callable[[DailyLog], bool]) -> Callable[[RuleContext], bool]:
    def check(ctx: RuleContext) -> bool:
        return any(predicate(log) for log in ctx.logs)
    return check


def _logged_before(hour: int) -> Callable[[DailyLog], bool]:
    return lambda log: log.logged_at is not None and log.logged_at.hour < hour


def _logged_from(hour: int) -> Callable[[DailyLog], bool]:
    return lambda log: log.logged_at is not None and log.logged_at.hour >= hour


def _threshold(attr: str, value: float) -> Callable[[RuleContext], bool]:
    def check(ctx: RuleContext) -> bool:
        return getattr(ctx.metrics, attr) >= value
    return check


def _count(attr: str, value: int) -> Callable[[RuleContext], bool]:
    def check(ctx: RuleContext) -> bool:
        return getattr(ctx, attr) >= value
    return check


RULES: list[tuple[str, Callable[[RuleContext], bool]]] = [
    # daily
    ("first-log", lambda ctx: len(ctx.logs) >= 1),
    ("first-week", lambda ctx: len(ctx.logs) >= 7),
    ("first-month", lambda ctx: len(ctx.logs) >= 30),
    ("perfect-week", lambda ctx: has_perfect_week(ctx.logs)),
    # streak
    ("streak-3", _threshold("current_streak", 3)),
    ("week-streak", _threshold("current_streak", 7)),
    ("streak-14", _threshold("current_streak", 14)),
    ("month-streak", _threshold("current_streak", 30)),
    ("streak-60", _threshold("current_streak", 60)),
    ("streak-100", _threshold("current_streak", 100)),
    # time
    ("hours-10", _threshold("total_hours", 10)),
    ("hours-25", _threshold("total_hours", 25)),
    ("hours-50", _threshold("total_hours", 50)),
    ("hours-100", _threshold("total_hours", 100)),
    ("hours-200", _threshold("total_hours", 200)),
    ("hours-500", _threshold("total_hours", 500)),
    ("hours-1000", _threshold("total_hours", 1000)),
    # leetcode
    ("leetcode-10", _threshold("total_problems_solved", 10)),
    ("leetcode-25", _threshold("total_problems_solved", 25)),
    ("leetcode-50", _threshold("total_problems_solved", 50)),
    ("leetcode-75", _threshold("total_problems_solved", 75)),
    ("leetcode-100", _threshold("total_problems_solved", 100)),
    ("leetcode-150", _threshold("total_problems_solved", 150)),
    ("leetcode-300", _threshold("total_problems_solved", 300)),
    # project
    ("first-project", _count("completed_projects", 1)),
    ("three-projects", _count("completed_projects", 3)),
    ("five-projects", _count("completed_projects", 5)),
    ("ten-projects", _count("completed_projects", 10)),
    # phase
    *[(f"phase-{i + 1}-complete", _phase_complete(i)) for i in range(MAX_PHASES)],
    ("all-phases", _all_phases_complete),
    # progress
    ("first-topic", _count("completed_topics", 1)),
    ("five-topics", _count("completed_topics", 5)),
    ("ten-topics", _count("completed_topics", 10)),
    ("all-topics", _all_topics_complete),
    ("first-resource", _count("completed_resources", 1)),
    ("ten-resources", _count("completed_resources", 10)),
    ("twenty-resources", _count("completed_resources", 20)),
    # milestone
    ("first-100-points", _threshold("total_points", 100)),
    ("first-500-points", _threshold("total_points", 500)),
    ("first-1000-points", _threshold("total_points", 1000)),
    ("first-2000-points", _threshold("total_points", 2000)),
    # special
    ("early-bird", _any_log(_logged_before(8))),
    ("night-owl", _any_log(_logged_from(22))),
    ("weekend-warrior", _any_log(lambda log: log.date.weekday() >= 5)),
    ("marathon-session", _any_log(lambda log: log.hours_spent >= 4)),
    ("consistency-king", _threshold("current_streak", 14)),
]

RULE_IDS = tuple(rule_id for rule_id, _ in RULES)
