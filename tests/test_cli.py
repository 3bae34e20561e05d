from __future__ import annotations

import json
from datetime import date, timedelta

import pytest
from typer.testing import CliRunner

from support_hours.cli.main import app
from support_hours.core.logging_config import reset_logging
from support_hours.core.models import SessionStatus
from support_hours.core.repository import SessionsRepository

runner = CliRunner()


@pytest.fixture(autouse=True)
def _close_log_handlers():
    yield
    reset_logging()


def _invoke(data_dir, *args):
    return runner.invoke(app, ["--data-dir", str(data_dir), *args])


def _create_args(day="2024-02-01", start="09:00", end="10:00", worker="w1"):
    return [
        "sessions",
        "create",
        "--resident",
        "r1",
        "--worker",
        worker,
        "--property",
        "p1",
        "--type",
        "mental_health",
        "--date",
        day,
        "--start",
        start,
        "--end",
        end,
    ]


def test_create_session(data_dir, directory):
    result = _invoke(data_dir, *_create_args())
    assert result.exit_code == 0, result.output
    assert "Created session" in result.output
    sessions = SessionsRepository(data_dir / "sessions.jsonl").get_all_sessions()
    assert len(sessions) == 1
    assert sessions[0].duration_minutes == 60


def test_conflicting_session_exits_with_error(data_dir, directory):
    assert _invoke(data_dir, *_create_args()).exit_code == 0
    result = _invoke(data_dir, *_create_args(start="09:30", end="10:30"))
    assert result.exit_code == 1
    assert "already scheduled" in result.output
    assert _invoke(data_dir, *_create_args(start="10:00", end="11:00")).exit_code == 0


def test_invalid_input_lists_fields(data_dir, directory):
    result = _invoke(data_dir, *_create_args(start="23:00", end="01:00"))
    assert result.exit_code == 1
    assert "end_time" in result.output


def test_update_and_show_session(data_dir, directory):
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    assert _invoke(data_dir, *_create_args(day=tomorrow)).exit_code == 0
    session = SessionsRepository(data_dir / "sessions.jsonl").get_all_sessions()[0]

    result = _invoke(data_dir, "sessions", "update", session.session_id, "--status", "completed", "--end", "10:30")
    assert result.exit_code == 0, result.output
    updated = SessionsRepository(data_dir / "sessions.jsonl").find_by_id(session.session_id)
    assert updated.status is SessionStatus.COMPLETED
    assert updated.duration_minutes == 90

    result = _invoke(data_dir, "sessions", "show", session.session_id)
    assert result.exit_code == 0
    assert "Completed" in result.output


def test_locked_session_cannot_be_updated_but_can_be_deleted(data_dir, directory):
    assert _invoke(data_dir, *_create_args(day="2024-02-01")).exit_code == 0
    session = SessionsRepository(data_dir / "sessions.jsonl").get_all_sessions()[0]
    result = _invoke(data_dir, "sessions", "update", session.session_id, "--status", "completed")
    assert result.exit_code == 1
    assert "no longer be changed" in result.output

    result = _invoke(data_dir, "sessions", "delete", session.session_id)
    assert result.exit_code == 0, result.output
    assert SessionsRepository(data_dir / "sessions.jsonl").get_all_sessions() == []


def test_missing_session(data_dir, directory):
    result = _invoke(data_dir, "sessions", "delete", "missing")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_directory_commands(data_dir):
    result = _invoke(data_dir, "properties", "add", "Oak House", "--capacity", "4")
    assert result.exit_code == 0, result.output
    assert "Added property" in result.output
    result = _invoke(data_dir, "properties", "list")
    assert result.exit_code == 0
    assert "Oak House" in result.output

    records = json.loads((data_dir / "properties.json").read_text(encoding="utf-8"))
    property_id = records[0]["property_id"]
    assert _invoke(data_dir, "residents", "add", "Alice", "--property", property_id, "--hours", "8").exit_code == 0
    assert _invoke(data_dir, "residents", "add", "Bob", "--property", "nowhere").exit_code == 1
    assert _invoke(data_dir, "workers", "add", "Sam", "--week-hours", "20", "--specialization", "mental_health").exit_code == 0
    assert _invoke(data_dir, "workers", "list").exit_code == 0


def test_calendar_and_reports(data_dir, directory):
    assert _invoke(data_dir, *_create_args()).exit_code == 0
    result = _invoke(data_dir, "calendar", "--year", "2024", "--month", "2")
    assert result.exit_code == 0, result.output
    assert "February 2024" in result.output

    for view in ("weekly", "daily"):
        result = _invoke(data_dir, "calendar", "--view", view, "--date", "2024-02-01", "--week", "2024-02-01")
        assert result.exit_code == 0, result.output

    for report in ("overview", "residents", "support-types", "properties", "workers", "daily"):
        result = _invoke(data_dir, "report", report, "--year", "2024", "--month", "2")
        assert result.exit_code == 0, result.output

    result = _invoke(data_dir, "sessions", "list", "--from", "2024-02-01", "--to", "2024-02-29")
    assert result.exit_code == 0, result.output


def test_export_csv(data_dir, directory, tmp_path):
    target = tmp_path / "summary.csv"
    result = _invoke(data_dir, "export", "--year", "2024", "--month", "2", "--output", str(target))
    assert result.exit_code == 0, result.output
    assert target.read_text(encoding="utf-8").splitlines()[0].startswith('"Resident Name","Property"')


def test_export_defaults_to_exports_folder(data_dir, directory):
    result = _invoke(data_dir, "export", "--year", "2024", "--month", "2", "--format", "json")
    assert result.exit_code == 0, result.output
    assert (data_dir / "exports" / "monthly-summary-2024-02.json").exists()


def test_storage_failure_exit_code(data_dir):
    (data_dir / "properties.json").write_text("{broken", encoding="utf-8")
    result = _invoke(data_dir, "properties", "list")
    assert result.exit_code == 2
    assert "Storage failure" in result.output


def test_invalid_settings_exit_code(data_dir):
    (data_dir / "settings.json").write_text('{"log_level": "CHATTY"}', encoding="utf-8")
    result = _invoke(data_dir, "properties", "list")
    assert result.exit_code == 1
    assert "Settings error" in result.output


def test_directory_update_and_deactivate(data_dir, directory):
    result = _invoke(data_dir, "properties", "update", "p1", "--capacity", "6", "--address", "1 Oak Lane")
    assert result.exit_code == 0, result.output
    assert _invoke(data_dir, "properties", "update", "p1", "--capacity", "80").exit_code == 1

    result = _invoke(data_dir, "properties", "deactivate", "p2")
    assert result.exit_code == 1
    assert "active residents" in result.output

    assert _invoke(data_dir, "residents", "update", "r2", "--property", "p1", "--hours", "12").exit_code == 0
    assert _invoke(data_dir, "residents", "update", "r2", "--property", "p9").exit_code == 1
    assert _invoke(data_dir, "properties", "deactivate", "p2").exit_code == 0

    assert _invoke(data_dir, "workers", "update", "w2", "--week-hours", "15").exit_code == 0
    assert _invoke(data_dir, "workers", "deactivate", "w2").exit_code == 0
    assert _invoke(data_dir, "residents", "deactivate", "r1").exit_code == 0
    assert _invoke(data_dir, "workers", "deactivate", "w9").exit_code == 1

    properties = {p["property_id"]: p for p in json.loads((data_dir / "properties.json").read_text(encoding="utf-8"))}
    assert properties["p1"]["max_capacity"] == 6
    assert properties["p1"]["address"] == "1 Oak Lane"
    assert properties["p2"]["is_active"] is False
    residents = {r["resident_id"]: r for r in json.loads((data_dir / "residents.json").read_text(encoding="utf-8"))}
    assert residents["r2"]["property_id"] == "p1"
    assert residents["r2"]["monthly_support_hours"] == 12
    assert residents["r1"]["is_active"] is False
    workers = {w["worker_id"]: w for w in json.loads((data_dir / "support_workers.json").read_text(encoding="utf-8"))}
    assert workers["w2"]["max_hours_per_week"] == 15
    assert workers["w2"]["is_active"] is False


def test_today_and_upcoming_sessions(data_dir, directory):
    result = _invoke(data_dir, "sessions", "today")
    assert result.exit_code == 0, result.output
    assert "No sessions scheduled today." in result.output

    today = date.today()
    assert _invoke(data_dir, *_create_args(day=today.isoformat(), start="00:00", end="00:30")).exit_code == 0
    assert _invoke(data_dir, *_create_args(day=(today + timedelta(days=3)).isoformat())).exit_code == 0

    result = _invoke(data_dir, "sessions", "today")
    assert result.exit_code == 0, result.output
    assert "Today's sessions" in result.output

    result = _invoke(data_dir, "sessions", "upcoming")
    assert result.exit_code == 0, result.output
    assert "next 7 days" in result.output

    result = _invoke(data_dir, "sessions", "upcoming", "--property", "p2")
    assert result.exit_code == 0, result.output
    assert "No planned sessions" in result.output
