"""Achievement pool: replenishment from templates and catalog reset."""
import random
import uuid
from dataclasses import replace
from typing import Iterable, Optional

from roadmap_tracker.models import Achievement, AchievementTemplate


def available(achievements: Iterable[Achievement]) -> list[Achievement]:
    return [a for a in achievements if a.is_active and not a.unlocked]


def needs_replenishment(achievements: list[Achievement], floor: int) -> bool:
    return len(available(achievements)) < floor


def pick_template(
    templates: tuple[AchievementTemplate, ...],
    existing_titles: set[str],
    rng: Optional[random.Random] = None,
) -> AchievementTemplate:
    """Choose a template whose title is not taken yet.

    When every title is taken, a random template gets a numeric suffix on its
    title and description, bumped until the title is unique.
    """
    rng = rng or random.Random()
    unused = [t for t in templates if t.title not in existing_titles]
    if unused:
        return rng.choice(unused)

    base = rng.choice(templates)
    n = sum(1 for title in existing_titles if title.startswith(base.title)) + 1
    while f"{base.title} {n}" in existing_titles:
        n += 1
    return replace(base, title=f"{base.title} {n}", description=f"{base.description} ({n})")


def synthesize_achievement(
    templates: tuple[AchievementTemplate, ...],
    achievements: list[Achievement],
    rng: Optional[random.Random] = None,
) -> Achievement:
    template = pick_template(templates, {a.title for a in achievements}, rng)
    return Achievement(
        id=f"achievement-{uuid.uuid4().hex[:12]}",
        title=template.title,
        description=template.description,
        icon=template.icon,
        category=template.category,
        points=template.points,
        requirement=template.description,
        unlocked=False,
        unlocked_date=None,
        is_active=True,
        order=max((a.order for a in achievements), default=0) + 1,
    )


def replenish(
    templates: tuple[AchievementTemplate, ...],
    achievements: list[Achievement],
    floor: int,
    rng: Optional[random.Random] = None,
) -> Optional[Achievement]:
    """Return one new achievement when the pool is below ``floor``, else None."""
    if not needs_replenishment(achievements, floor):
        return None
    return synthesize_achievement(templates, achievements, rng)


def reset_catalog(
    achievements: list[Achievement], defaults: list[Achievement]
) -> list[Achievement]:
    """Locked, active copy of the default catalog, keeping display fields of survivors."""
    kept = {a.id: a for a in achievements}
    reset = []
    for default in defaults:
        a = kept.get(default.id, default)
        reset.append(replace(a, unlocked=False, unlocked_date=None, is_active=True))
    return reset
