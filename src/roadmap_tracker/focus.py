"""Turn a finished focus timer into a daily log entry."""
from datetime import datetime
from typing import Optional

from roadmap_tracker.models import DailyLog, Phase

FOCUS_MINUTES = 25
# 25 minutes, as stored in hours
MIN_FOCUS_HOURS = 0.42


def current_phase(phases: list[Phase]) -> Optional[Phase]:
    for phase in phases:
        if phase.status == "in-progress":
            return phase
    return phases[0] if phases else None


def build_focus_log(
    phases: list[Phase], started_at: Optional[datetime], ended_at: datetime
) -> Optional[DailyLog]:
    """Build the log for a completed focus session, or None when there is no phase to log against.

    A session without a recorded start counts as the minimum length.
    """
    phase = current_phase(phases)
    if phase is None:
        return None
    elapsed = (ended_at - started_at).total_seconds() / 3600 if started_at else 0.0
    topic = next((t for t in phase.topics if not t.completed), None)
    return DailyLog(
        date=ended_at.date(),
        phase_id=phase.id,
        topic_id=topic.id if topic else None,
        hours_spent=round(max(elapsed, MIN_FOCUS_HOURS), 2),
        leetcode_problems=0,
        activities=[f"Pomodoro study session - {topic.name if topic else phase.title}"],
        logged_at=ended_at,
    )
