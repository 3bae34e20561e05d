from __future__ import annotations

import json
from datetime import date

import pytest
from openpyxl import load_workbook

from support_hours.core.models import Property, Resident, SessionStatus, SupportWorker
from support_hours.core.reports import (
    CSV_HEADERS,
    ExportFormat,
    ReportService,
    compose_monthly_summary,
    export_filename,
    monthly_summary_csv,
    support_type_distribution,
    worker_rollups,
    write_export,
)
from support_hours.core.utilization import Period

PROPERTIES = [
    Property(name="Oak House", max_capacity=4, property_id="p1"),
    Property(name="Elm Court", max_capacity=0, property_id="p2"),
]
RESIDENTS = [
    Resident(name="Bob", property_id="p2", monthly_support_hours=0, resident_id="r2"),
    Resident(name="Alice", property_id="p1", monthly_support_hours=2, resident_id="r1"),
]
WORKERS = [
    SupportWorker(name="Sam", max_hours_per_week=10, max_hours_per_month=40, worker_id="w1"),
    SupportWorker(name="Jo", max_hours_per_week=10, max_hours_per_month=40, worker_id="w2"),
]


@pytest.fixture
def february_sessions(make_session):
    return [
        make_session("09:00", "10:30", status=SessionStatus.COMPLETED),
        make_session("11:00", "12:00", status=SessionStatus.PLANNED),
        make_session(
            "09:00",
            "11:00",
            day=date(2024, 2, 2),
            resident="r2",
            property_id="p2",
            support_type="activity_group",
            status=SessionStatus.CANCELLED,
        ),
        make_session("14:00", "15:00", day=date(2024, 3, 1), status=SessionStatus.COMPLETED),
    ]


def _summary(sessions, property_id=None):
    return compose_monthly_summary(
        2024,
        2,
        properties=PROPERTIES,
        residents=RESIDENTS,
        workers=WORKERS,
        sessions=sessions,
        property_id=property_id,
    )


def test_resident_rows(february_sessions):
    summary = _summary(february_sessions)
    assert [row.resident_name for row in summary.residents] == ["Alice", "Bob"]
    alice = summary.residents[0]
    assert alice.property_name == "Oak House"
    assert alice.hours_used == 1.5
    assert alice.hours_planned == 1.0
    assert alice.remaining_hours == 0.5
    assert alice.utilization_pct == 75.0
    bob = summary.residents[1]
    assert bob.utilization_pct == 0.0
    assert bob.hours_cancelled == 2.0


def test_overview(february_sessions):
    overview = _summary(february_sessions).overview
    assert overview.sessions_in_period == 3
    assert overview.hours_in_period == 1.5
    assert overview.total_allocated_hours == 2
    assert overview.utilization_pct == 75.0
    assert overview.total_residents == 2


def test_support_type_distribution_counts_all_statuses(february_sessions):
    rows = support_type_distribution(february_sessions[:3])
    assert [row.support_type for row in rows] == ["mental_health", "activity_group"]
    assert rows[0].total_hours == 2.5
    assert rows[0].avg_duration_minutes == 75.0
    assert rows[1].cancelled_count == 1


def test_property_rollups(february_sessions):
    rows = _summary(february_sessions).properties
    assert [row.property_id for row in rows] == ["p1", "p2"]
    assert rows[0].occupancy_pct == 25.0
    assert rows[0].total_hours == 1.5
    assert rows[1].occupancy_pct == 0.0
    assert rows[1].cancelled_sessions == 1


def test_worker_rollups_guard_idle_workers(february_sessions):
    rows = worker_rollups(WORKERS, february_sessions, Period.for_month(2024, 2))
    sam, jo = rows
    assert sam.worker_name == "Sam"
    assert sam.hours_worked == 1.5
    assert sam.working_days == 2
    assert sam.avg_hours_per_day == 0.8
    assert sam.completion_rate == 33.3
    assert sam.unique_residents == 2
    assert jo.working_days == 0
    assert jo.avg_hours_per_day == 0.0
    assert jo.utilization_pct == 0.0


def test_property_scope(february_sessions):
    summary = _summary(february_sessions, property_id="p2")
    assert [row.resident_name for row in summary.residents] == ["Bob"]
    assert [row.property_id for row in summary.properties] == ["p2"]
    assert summary.overview.sessions_in_period == 1


def test_csv_export(february_sessions):
    text = monthly_summary_csv(_summary(february_sessions))
    lines = text.splitlines()
    assert lines[0] == ",".join(f'"{header}"' for header in CSV_HEADERS)
    assert lines[0].startswith('"Resident Name","Property","Allocated Hours"')
    assert lines[1] == '"Alice","Oak House","2","1.5","75.0%","0.5"'
    assert lines[2] == '"Bob","Elm Court","0","0.0","0.0%","0.0"'


def test_export_filenames():
    assert export_filename(2024, 2) == "monthly-summary-2024-02.csv"
    assert export_filename(2024, 11, ExportFormat.EXCEL) == "monthly-summary-2024-11.xlsx"
    assert _summary([]).filename(ExportFormat.JSON) == "monthly-summary-2024-02.json"


def test_write_json_export(tmp_path, february_sessions):
    target = write_export(_summary(february_sessions), ExportFormat.JSON, tmp_path / "out" / "summary.json")
    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["month"] == 2
    assert payload["residents"][0]["resident_name"] == "Alice"
    assert len(payload["sessions"]) == 3


def test_write_excel_export(tmp_path, february_sessions):
    target = write_export(_summary(february_sessions), ExportFormat.EXCEL, tmp_path / "summary.xlsx")
    workbook = load_workbook(target)
    assert workbook.sheetnames == ["Residents", "Support Types", "Properties", "Workers", "Metadata"]
    residents = workbook["Residents"]
    assert residents.cell(row=1, column=2).value == "resident_name"
    assert residents.cell(row=2, column=2).value == "Alice"


def test_report_service_reads_stores(repository, directory, make_session):
    repository.create(make_session("09:00", "10:30", status=SessionStatus.COMPLETED))
    repository.create(make_session("09:00", "10:00", day=date(2024, 3, 4), status=SessionStatus.COMPLETED))
    service = ReportService(repository, directory)
    summary = service.monthly_summary(2024, 2)
    assert summary.overview.sessions_in_period == 1
    daily = service.daily_utilization(2024, 2)
    assert [row.session_date for row in daily] == [date(2024, 2, 1)]
    assert daily[0].total_hours == 1.5
    assert service.daily_utilization(2024, 2, property_id="p2") == []
