"""Tests for database initialization and connection management."""
from roadmap_tracker.db import init_db, get_connection


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    expected = {
        "phases", "topics", "resources", "projects",
        "daily_logs", "achievements", "user_stats",
    }
    assert expected.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_init_db_creates_parent_directory(tmp_path):
    db_path = str(tmp_path / "nested" / "tracker.db")
    init_db(db_path)
    assert (tmp_path / "nested" / "tracker.db").exists()


def test_get_connection_returns_row_factory(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO user_stats (id, total_points) VALUES (1, 250)")
    row = conn.execute("SELECT id, total_points, level FROM user_stats").fetchone()
    assert row["total_points"] == 250
    assert row["level"] == "Bronze"
    conn.close()
