from roadmap_tracker.db import init_db, get_connection
from roadmap_tracker.rules import MANUAL_ACHIEVEMENT_IDS
from roadmap_tracker.seed import (
    default_achievement_ids, is_seeded, load_default_achievements, load_default_phases,
    load_templates, seed_achievements, seed_all, seed_phases,
)


def test_default_phases_content():
    phases = load_default_phases()
    assert [p.id for p in phases] == ["phase-1", "phase-2", "phase-3", "phase-4", "phase-5"]
    assert len(phases[0].topics) == 4
    assert len(phases[0].projects) == 4
    assert sum(len(p.topics) for p in phases) == 16


def test_default_achievements_are_locked_and_ordered():
    achievements = load_default_achievements()
    assert len(achievements) == 54
    assert [a.order for a in achievements] == list(range(1, 55))
    assert all(not a.unlocked and a.is_active for a in achievements)
    assert len(default_achievement_ids()) == 54


def test_templates_have_distinct_titles():
    templates = load_templates()
    assert len(templates) == 73
    assert len({t.title for t in templates}) == len(templates)
    assert all(t.points > 0 for t in templates)


def test_social_achievements_are_manual():
    ids = default_achievement_ids()
    assert {"github-commit", "linkedin-post", "blog-post"} <= ids
    assert {"github-commit", "linkedin-post", "blog-post"} <= MANUAL_ACHIEVEMENT_IDS


def test_seed_phases(tmp_db):
    init_db(tmp_db)
    seed_phases(tmp_db)
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM phases").fetchone()[0] == 5
    assert conn.execute("SELECT COUNT(*) FROM topics").fetchone()[0] == 16
    assert conn.execute("SELECT COUNT(*) FROM projects").fetchone()[0] == 14
    first = conn.execute("SELECT * FROM phases ORDER BY order_index").fetchone()
    assert first["id"] == "phase-1"
    assert first["status"] == "not-started"
    conn.close()


def test_is_seeded(tmp_db):
    init_db(tmp_db)
    assert not is_seeded(tmp_db)
    seed_phases(tmp_db)
    assert is_seeded(tmp_db)


def test_seed_achievements_is_idempotent(tmp_db):
    init_db(tmp_db)
    seed_achievements(tmp_db)
    seed_achievements(tmp_db)
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM achievements").fetchone()[0] == 54
    conn.close()


def test_seed_all_runs_once(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    seed_all(tmp_db)
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM phases").fetchone()[0] == 5
    assert conn.execute("SELECT COUNT(*) FROM achievements").fetchone()[0] == 54
    conn.close()
