"""Runs the rule catalog against the current state."""
import logging

from roadmap_tracker.models import Achievement, DailyLog, Phase, UserMetrics
from roadmap_tracker.rules import MANUAL_ACHIEVEMENT_IDS, RULES, RuleContext

logger = logging.getLogger(__name__)


def evaluate(
    metrics: UserMetrics,
    logs: list[DailyLog],
    phases: list[Phase],
    achievements: list[Achievement],
) -> list[str]:
    """Return ids of locked achievements whose rule is now satisfied, in catalog order.

    Never mutates its inputs and never raises. Rules whose id is missing from
    ``achievements`` or already unlocked are skipped.
    """
    locked = {a.id for a in achievements if not a.unlocked}
    ctx = RuleContext(metrics=metrics, logs=logs, phases=phases)
    to_unlock = []
    for rule_id, predicate in RULES:
        if rule_id not in locked or rule_id in MANUAL_ACHIEVEMENT_IDS:
            continue
        try:
            satisfied = predicate(ctx)
        except Exception:
            logger.warning("Rule %s failed to evaluate", rule_id, exc_info=True)
            satisfied = False
        if satisfied:
            to_unlock.append(rule_id)
    return to_unlock
