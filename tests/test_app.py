from unittest.mock import patch

import pytest

from roadmap_tracker import app
from roadmap_tracker.app import (
    build_session, cmd_achievements, cmd_complete, cmd_dashboard, cmd_focus, cmd_generate,
    cmd_log, cmd_projects, cmd_reset, cmd_topics, get_progress_color,
)
from roadmap_tracker.exceptions import StoreError
from conftest import NOW


@pytest.fixture
def session(tmp_db, tmp_cache):
    session = build_session(tmp_db, tmp_cache)
    session.clock = lambda: NOW
    session.bootstrap()
    return session


def test_get_progress_color():
    assert get_progress_color(0) == "dim"
    assert get_progress_color(40) == "yellow"
    assert get_progress_color(100) == "green"


def test_cmd_log_appends_entry(session):
    with patch("roadmap_tracker.app.IntPrompt.ask", side_effect=[1, 3]), \
         patch("roadmap_tracker.app.FloatPrompt.ask", return_value=10.5), \
         patch("roadmap_tracker.app.Prompt.ask", side_effect=["Flexbox; Grid", "Grid is 2D"]):
        cmd_log(session)
    log = session.daily_logs[0]
    assert log.hours_spent == 10.5
    assert log.leetcode_problems == 3
    assert log.activities == ["Flexbox", "Grid"]
    assert log.key_takeaway == "Grid is 2D"
    assert session.find_achievement("hours-10").unlocked


def test_unlock_is_printed(session, capsys):
    with patch("roadmap_tracker.app.IntPrompt.ask", side_effect=[1, 0]), \
         patch("roadmap_tracker.app.FloatPrompt.ask", return_value=12.0), \
         patch("roadmap_tracker.app.Prompt.ask", side_effect=["", ""]):
        cmd_log(session)
    out = capsys.readouterr().out
    assert "Achievement Unlocked" in out
    assert "Dedicated Learner" in out


def test_cmd_topics_toggles(session):
    with patch("roadmap_tracker.app.IntPrompt.ask", side_effect=[1, 2]):
        cmd_topics(session)
    assert session.find_phase("phase-1").topics[1].completed


def test_cmd_projects_sets_status(session):
    with patch("roadmap_tracker.app.IntPrompt.ask", return_value=1), \
         patch("roadmap_tracker.app.Prompt.ask", side_effect=["1", "completed"]):
        cmd_projects(session)
    assert session.find_phase("phase-1").projects[0].status == "completed"
    assert session.find_achievement("first-project").unlocked


def test_cmd_projects_adds_custom(session):
    with patch("roadmap_tracker.app.IntPrompt.ask", return_value=2), \
         patch("roadmap_tracker.app.Prompt.ask", side_effect=["add", "Notes API", "", "Go, SQL"]):
        cmd_projects(session)
    added = session.find_phase("phase-2").projects[-1]
    assert added.name == "Notes API"
    assert added.is_custom
    assert added.technologies == ["Go", "SQL"]


def test_cmd_focus_abandon_logs_nothing(session):
    with patch("roadmap_tracker.app.Prompt.ask", return_value="abandon"):
        cmd_focus(session)
    assert session.daily_logs == []


def test_cmd_focus_logs_session(session):
    with patch("roadmap_tracker.app.Prompt.ask", return_value=""):
        cmd_focus(session)
    assert len(session.daily_logs) == 1
    assert session.daily_logs[0].activities[0].startswith("Pomodoro study session - ")


def test_cmd_complete_marks_social_achievement(session):
    with patch("roadmap_tracker.app.IntPrompt.ask", return_value=1):
        cmd_complete(session)
    assert session.find_achievement("github-commit").unlocked


def test_cmd_generate_reports_full_pool(session, capsys):
    cmd_generate(session)
    assert "nothing to add" in capsys.readouterr().out
    session.pool_floor = 100
    cmd_generate(session)
    assert len(session.achievements) == 55


def test_cmd_reset_requires_confirmation(session):
    session.mark_complete("github-commit")
    with patch("roadmap_tracker.app.Confirm.ask", return_value=False):
        cmd_reset(session)
    assert session.find_achievement("github-commit").unlocked
    with patch("roadmap_tracker.app.Confirm.ask", return_value=True):
        cmd_reset(session)
    assert not session.find_achievement("github-commit").unlocked


def test_store_error_is_printed(session, capsys):
    with patch("roadmap_tracker.app.IntPrompt.ask", return_value=1), \
         patch("roadmap_tracker.app.Prompt.ask", side_effect=["1", "completed"]), \
         patch.object(session.store, "set_project_status", side_effect=StoreError("locked")):
        cmd_projects(session)
    assert "Failed to update project: locked" in capsys.readouterr().out


def test_read_only_commands_render(session, capsys):
    cmd_dashboard(session)
    cmd_achievements(session)
    out = capsys.readouterr().out
    assert "Roadmap Dashboard" in out
    assert "Available (54)" in out


def test_main_quits(tmp_path, monkeypatch):
    monkeypatch.setattr(app, "DEFAULT_DB_PATH", str(tmp_path / "tracker.db"))
    monkeypatch.setattr(app, "DEFAULT_CACHE_PATH", str(tmp_path / "cache.json"))
    monkeypatch.setattr(app, "setup_logger", lambda *args, **kwargs: None)
    with patch("roadmap_tracker.app.Prompt.ask", side_effect=["bogus", "quit"]):
        app.main()
    assert (tmp_path / "tracker.db").exists()


def test_cmd_projects_deletes_custom(session):
    session.add_project("phase-2", "Notes API")
    with patch("roadmap_tracker.app.IntPrompt.ask", return_value=2), \
         patch("roadmap_tracker.app.Prompt.ask", side_effect=["delete", "4"]), \
         patch("roadmap_tracker.app.Confirm.ask", return_value=True):
        cmd_projects(session)
    assert len(session.find_phase("phase-2").projects) == 3
    assert not any(p.is_custom for p in session.find_phase("phase-2").projects)


def test_commands_without_phases(session, capsys):
    session._phases = []
    with patch("roadmap_tracker.app.IntPrompt.ask") as ask:
        cmd_log(session)
        cmd_topics(session)
        cmd_projects(session)
    ask.assert_not_called()
    assert "No phases to choose from" in capsys.readouterr().out
    assert session.daily_logs == []


def test_failed_unlock_is_reported_after_log(session, capsys):
    with patch("roadmap_tracker.app.IntPrompt.ask", side_effect=[1, 0]), \
         patch("roadmap_tracker.app.FloatPrompt.ask", return_value=12.0), \
         patch("roadmap_tracker.app.Prompt.ask", side_effect=["", ""]), \
         patch.object(session.store, "record_unlock", side_effect=StoreError("locked")):
        cmd_log(session)
    out = capsys.readouterr().out
    assert "Logged 12h" in out
    assert "Failed to update achievements: locked" in out
