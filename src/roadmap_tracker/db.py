"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

from roadmap_tracker.config import DEFAULT_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS phases (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    start_date TEXT,
    end_date TEXT,
    weeks INTEGER DEFAULT 0,
    progress REAL DEFAULT 0,
    status TEXT DEFAULT 'not-started',
    leetcode_target INTEGER DEFAULT 0,
    leetcode_completed INTEGER DEFAULT 0,
    order_index INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS topics (
    id TEXT PRIMARY KEY,
    phase_id TEXT NOT NULL REFERENCES phases(id),
    name TEXT NOT NULL,
    description TEXT,
    completed INTEGER DEFAULT 0,
    order_index INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS resources (
    id TEXT PRIMARY KEY,
    topic_id TEXT NOT NULL REFERENCES topics(id),
    name TEXT NOT NULL,
    url TEXT,
    type TEXT DEFAULT 'documentation',
    completed INTEGER DEFAULT 0,
    order_index INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    phase_id TEXT NOT NULL REFERENCES phases(id),
    name TEXT NOT NULL,
    description TEXT,
    status TEXT DEFAULT 'not-started',
    technologies TEXT DEFAULT '[]',
    is_custom INTEGER DEFAULT 0,
    github_url TEXT,
    live_url TEXT,
    order_index INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS daily_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    phase_id TEXT NOT NULL,
    topic_id TEXT,
    project_id TEXT,
    hours_spent REAL NOT NULL DEFAULT 0,
    leetcode_problems INTEGER NOT NULL DEFAULT 0,
    activities TEXT DEFAULT '[]',
    key_takeaway TEXT,
    reading_minutes INTEGER,
    project_work_minutes INTEGER,
    leetcode_minutes INTEGER,
    networking_minutes INTEGER,
    logged_at TEXT
);

CREATE TABLE IF NOT EXISTS achievements (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    icon TEXT,
    category TEXT NOT NULL,
    points INTEGER NOT NULL,
    requirement TEXT,
    unlocked INTEGER DEFAULT 0,
    unlocked_date TEXT,
    is_active INTEGER DEFAULT 1,
    order_index INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS user_stats (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    current_streak INTEGER DEFAULT 0,
    longest_streak INTEGER DEFAULT 0,
    total_hours REAL DEFAULT 0,
    total_problems_solved INTEGER DEFAULT 0,
    total_points INTEGER DEFAULT 0,
    level TEXT DEFAULT 'Bronze',
    points_to_next_level INTEGER DEFAULT 501,
    total_achievements_unlocked INTEGER DEFAULT 0,
    total_projects_completed INTEGER DEFAULT 0,
    total_topics_completed INTEGER DEFAULT 0,
    total_phases_completed INTEGER DEFAULT 0,
    last_activity_date TEXT,
    updated_at TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
