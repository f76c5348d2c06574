"""Phase completion percentages."""
import math

from roadmap_tracker.models import Phase


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calc_progress(
    total_topics: int,
    completed_topics: int,
    total_projects: int,
    completed_projects: int,
) -> int:
    """Topics and projects each contribute half of a phase's 0-100 progress."""
    topic_share = completed_topics / total_topics * 50 if total_topics > 0 else 0
    project_share = completed_projects / total_projects * 50 if total_projects > 0 else 0
    return round_half_up(topic_share + project_share)


def calc_phase_progress(phase: Phase) -> int:
    return calc_progress(
        total_topics=len(phase.topics),
        completed_topics=sum(1 for t in phase.topics if t.completed),
        total_projects=len(phase.projects),
        completed_projects=sum(1 for p in phase.projects if p.status == "completed"),
    )


def get_phase_status(progress: int) -> str:
    if progress >= 100:
        return "completed"
    elif progress > 0:
        return "in-progress"
    return "not-started"


def is_phase_complete(phase: Phase) -> bool:
    """All topics and all projects done. An empty phase is never complete."""
    if not phase.topics and not phase.projects:
        return False
    return (
        all(t.completed for t in phase.topics)
        and all(p.status == "completed" for p in phase.projects)
    )


def refresh_phase(phase: Phase) -> Phase:
    """Recompute progress and status in place after a topic or project change."""
    phase.progress = calc_phase_progress(phase)
    phase.status = get_phase_status(phase.progress)
    return phase


def normalize_phase(phase: Phase) -> Phase:
    """Replace a missing or not-a-number progress value loaded from legacy data."""
    progress = phase.progress
    if progress is None or (isinstance(progress, float) and math.isnan(progress)):
        phase.progress = calc_phase_progress(phase)
    return phase
