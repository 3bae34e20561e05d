"""Summary tables composed from session and directory data."""

from __future__ import annotations

import csv
import io
import json
import logging
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence, TypeVar

from .directory import Directory
from .filters import SessionFilter
from .formatting import format_hours, format_number, format_percent, month_title, percentage, round_half_up
from .models import Property, Resident, Session, SessionStatus, SupportWorker
from .repository import SessionStore
from .utilization import (
    Period,
    count_sessions,
    completed_hours,
    in_period,
    minutes_with_status,
    property_occupancy,
    resident_utilization,
    worker_utilization,
)

LOGGER = logging.getLogger("support_hours.reports")

CSV_HEADERS = ["Resident Name", "Property", "Allocated Hours", "Hours Used", "Utilization Rate", "Remaining Hours"]

RowT = TypeVar("RowT")


class ExportFormat(Enum):
    CSV = "csv"
    JSON = "json"
    EXCEL = "excel"

    @property
    def extension(self) -> str:
        return "xlsx" if self is ExportFormat.EXCEL else self.value

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES[self]


_CONTENT_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.JSON: "application/json",
    ExportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


# ---------------------------------------------------------------------------
# Rows


@dataclass(frozen=True, slots=True)
class ResidentUtilizationRow:
    resident_id: str
    resident_name: str
    property_name: str
    allocated_hours: float
    hours_used: float
    hours_planned: float
    hours_cancelled: float
    remaining_hours: float
    utilization_pct: float
    completed_sessions: int
    no_show_sessions: int


@dataclass(frozen=True, slots=True)
class SupportTypeRow:
    support_type: str
    session_count: int
    total_hours: float
    avg_duration_minutes: float
    completed_count: int
    cancelled_count: int
    no_show_count: int


@dataclass(frozen=True, slots=True)
class PropertyRow:
    property_id: str
    property_name: str
    max_capacity: int
    current_residents: int
    occupancy_pct: float
    total_sessions: int
    total_hours: float
    completed_sessions: int
    cancelled_sessions: int


@dataclass(frozen=True, slots=True)
class WorkerRow:
    worker_id: str
    worker_name: str
    max_hours_per_month: float
    total_sessions: int
    hours_worked: float
    utilization_pct: float
    completed_sessions: int
    cancelled_sessions: int
    no_show_sessions: int
    completion_rate: float
    unique_residents: int
    working_days: int
    avg_hours_per_day: float
    avg_session_minutes: float
    support_types: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DailyRow:
    session_date: date
    total_sessions: int
    total_hours: float
    completed_sessions: int
    cancelled_sessions: int
    no_show_sessions: int
    unique_residents: int
    unique_workers: int


@dataclass(frozen=True, slots=True)
class OverviewStats:
    total_residents: int
    total_workers: int
    total_properties: int
    sessions_in_period: int
    hours_in_period: float
    total_allocated_hours: float
    utilization_pct: float


@dataclass(slots=True)
class MonthlySummary:
    year: int
    month: int
    property_id: str | None
    overview: OverviewStats
    residents: list[ResidentUtilizationRow]
    support_types: list[SupportTypeRow]
    properties: list[PropertyRow]
    workers: list[WorkerRow]
    sessions: list[Session] = field(default_factory=list)

    @property
    def title(self) -> str:
        return f"Monthly Summary - {month_title(self.year, self.month)}"

    def filename(self, export_format: ExportFormat = ExportFormat.CSV) -> str:
        return export_filename(self.year, self.month, export_format)


# ---------------------------------------------------------------------------
# Composition


def sort_rows(rows: Iterable[RowT], metric: Callable[[RowT], Any], *, descending: bool = True) -> list[RowT]:
    return sorted(rows, key=metric, reverse=descending)


def overview_stats(
    residents: Sequence[Resident],
    workers: Sequence[SupportWorker],
    properties: Sequence[Property],
    sessions: Sequence[Session],
    period: Period,
) -> OverviewStats:
    active_residents = [resident for resident in residents if resident.is_active]
    within = in_period(sessions, period)
    hours = completed_hours(within)
    allocated = sum(resident.monthly_support_hours for resident in active_residents)
    return OverviewStats(
        total_residents=len(active_residents),
        total_workers=sum(1 for worker in workers if worker.is_active),
        total_properties=sum(1 for prop in properties if prop.is_active),
        sessions_in_period=len(within),
        hours_in_period=round_half_up(hours, 2),
        total_allocated_hours=allocated,
        utilization_pct=percentage(hours, allocated),
    )


def resident_rows(
    residents: Sequence[Resident],
    properties: Sequence[Property],
    sessions: Sequence[Session],
    period: Period,
) -> list[ResidentUtilizationRow]:
    names = {prop.property_id: prop.name for prop in properties}
    by_resident = _group(in_period(sessions, period), lambda s: s.resident_id)
    rows: list[ResidentUtilizationRow] = []
    for resident in residents:
        if not resident.is_active:
            continue
        own = by_resident.get(resident.resident_id, [])
        record = resident_utilization(resident, own, period)
        counts = count_sessions(own)
        rows.append(
            ResidentUtilizationRow(
                resident_id=resident.resident_id,
                resident_name=resident.name,
                property_name=names.get(resident.property_id or "", ""),
                allocated_hours=record.allocated,
                hours_used=record.used,
                hours_planned=round_half_up(minutes_with_status(own, SessionStatus.PLANNED) / 60, 2),
                hours_cancelled=round_half_up(minutes_with_status(own, SessionStatus.CANCELLED) / 60, 2),
                remaining_hours=record.remaining,
                utilization_pct=record.utilization_pct,
                completed_sessions=counts.completed,
                no_show_sessions=counts.no_show,
            )
        )
    return sort_rows(rows, lambda row: row.resident_name.lower(), descending=False)


def support_type_distribution(sessions: Sequence[Session]) -> list[SupportTypeRow]:
    rows: list[SupportTypeRow] = []
    for support_type, group in _group(sessions, lambda s: s.support_type).items():
        counts = count_sessions(group)
        total_minutes = sum(session.duration_minutes for session in group)
        rows.append(
            SupportTypeRow(
                support_type=support_type,
                session_count=counts.total,
                total_hours=round_half_up(total_minutes / 60, 2),
                avg_duration_minutes=round_half_up(total_minutes / counts.total, 1),
                completed_count=counts.completed,
                cancelled_count=counts.cancelled,
                no_show_count=counts.no_show,
            )
        )
    return sort_rows(rows, lambda row: (row.total_hours, row.support_type))


def property_rollups(
    properties: Sequence[Property],
    residents: Sequence[Resident],
    sessions: Sequence[Session],
) -> list[PropertyRow]:
    by_property = _group(sessions, lambda s: s.property_id)
    rows: list[PropertyRow] = []
    for prop in properties:
        if not prop.is_active:
            continue
        own = by_property.get(prop.property_id, [])
        occupancy = property_occupancy(prop, residents)
        counts = count_sessions(own)
        rows.append(
            PropertyRow(
                property_id=prop.property_id,
                property_name=prop.name,
                max_capacity=prop.max_capacity,
                current_residents=occupancy.current_residents,
                occupancy_pct=occupancy.occupancy_pct,
                total_sessions=counts.total,
                total_hours=round_half_up(completed_hours(own), 2),
                completed_sessions=counts.completed,
                cancelled_sessions=counts.cancelled,
            )
        )
    return sort_rows(rows, lambda row: row.total_hours)


def worker_rollups(
    workers: Sequence[SupportWorker],
    sessions: Sequence[Session],
    period: Period,
) -> list[WorkerRow]:
    by_worker = _group(in_period(sessions, period), lambda s: s.support_worker_id)
    rows: list[WorkerRow] = []
    for worker in workers:
        if not worker.is_active:
            continue
        own = by_worker.get(worker.worker_id, [])
        record = worker_utilization(worker, own, period)
        counts = count_sessions(own)
        working_days = len({session.session_date for session in own})
        completed_minutes = [s.duration_minutes for s in own if s.status is SessionStatus.COMPLETED]
        rows.append(
            WorkerRow(
                worker_id=worker.worker_id,
                worker_name=worker.name,
                max_hours_per_month=worker.max_hours_per_month,
                total_sessions=counts.total,
                hours_worked=record.used,
                utilization_pct=record.utilization_pct,
                completed_sessions=counts.completed,
                cancelled_sessions=counts.cancelled,
                no_show_sessions=counts.no_show,
                completion_rate=counts.completion_rate,
                unique_residents=len({session.resident_id for session in own}),
                working_days=working_days,
                avg_hours_per_day=round_half_up(record.used / working_days, 1) if working_days else 0.0,
                avg_session_minutes=(
                    round_half_up(sum(completed_minutes) / len(completed_minutes), 1) if completed_minutes else 0.0
                ),
                support_types=tuple(sorted({session.support_type for session in own})),
            )
        )
    return sort_rows(rows, lambda row: row.hours_worked)


def daily_utilization(sessions: Sequence[Session]) -> list[DailyRow]:
    rows: list[DailyRow] = []
    for session_date, group in sorted(_group(sessions, lambda s: s.session_date).items()):
        counts = count_sessions(group)
        rows.append(
            DailyRow(
                session_date=session_date,
                total_sessions=counts.total,
                total_hours=round_half_up(sum(s.duration_minutes for s in group) / 60, 2),
                completed_sessions=counts.completed,
                cancelled_sessions=counts.cancelled,
                no_show_sessions=counts.no_show,
                unique_residents=len({s.resident_id for s in group}),
                unique_workers=len({s.support_worker_id for s in group}),
            )
        )
    return rows


def compose_monthly_summary(
    year: int,
    month: int,
    *,
    properties: Sequence[Property],
    residents: Sequence[Resident],
    workers: Sequence[SupportWorker],
    sessions: Sequence[Session],
    property_id: str | None = None,
) -> MonthlySummary:
    period = Period.for_month(year, month)
    scoped_sessions = in_period(sessions, period)
    scoped_properties = list(properties)
    scoped_residents = list(residents)
    if property_id:
        scoped_sessions = [s for s in scoped_sessions if s.property_id == property_id]
        scoped_properties = [p for p in properties if p.property_id == property_id]
        scoped_residents = [r for r in residents if r.property_id == property_id]
    return MonthlySummary(
        year=year,
        month=month,
        property_id=property_id,
        overview=overview_stats(scoped_residents, workers, scoped_properties, scoped_sessions, period),
        residents=resident_rows(scoped_residents, properties, scoped_sessions, period),
        support_types=support_type_distribution(scoped_sessions),
        properties=property_rollups(scoped_properties, residents, scoped_sessions),
        workers=worker_rollups(workers, scoped_sessions, period),
        sessions=sorted(scoped_sessions, key=lambda s: (s.session_date, s.start_time, s.session_id)),
    )


class ReportService:
    """Loads the period's records from the stores and composes reports from them."""

    def __init__(self, sessions: SessionStore, directory: Directory, logger: logging.Logger | None = None) -> None:
        self._sessions = sessions
        self._directory = directory
        self._logger = logger or LOGGER

    def monthly_summary(self, year: int, month: int, property_id: str | None = None) -> MonthlySummary:
        period = Period.for_month(year, month)
        self._logger.info(
            "Composing monthly summary",
            extra={"event": "report_monthly_summary", "year": year, "month": month, "property_id": property_id},
        )
        return compose_monthly_summary(
            year,
            month,
            properties=self._directory.properties.list_all(),
            residents=self._directory.residents.list_all(),
            workers=self._directory.workers.list_all(),
            sessions=self._sessions.find_by_date_range(period.start, period.end),
            property_id=property_id,
        )

    def daily_utilization(self, year: int, month: int, property_id: str | None = None) -> list[DailyRow]:
        period = Period.for_month(year, month)
        filters = SessionFilter().where_equal("property_id", property_id)
        return daily_utilization(self._sessions.find_by_date_range(period.start, period.end, filters))


# ---------------------------------------------------------------------------
# Serialization


def export_filename(year: int, month: int, export_format: ExportFormat = ExportFormat.CSV) -> str:
    return f"monthly-summary-{year}-{month:02d}.{export_format.extension}"


def resident_csv_rows(rows: Sequence[ResidentUtilizationRow]) -> list[list[str]]:
    return [
        [
            row.resident_name,
            row.property_name,
            format_number(row.allocated_hours),
            format_hours(row.hours_used),
            format_percent(row.utilization_pct),
            format_hours(row.remaining_hours),
        ]
        for row in rows
    ]


def monthly_summary_csv(summary: MonthlySummary) -> str:
    """Header plus one fully quoted line per resident."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    writer.writerows(resident_csv_rows(summary.residents))
    return buffer.getvalue()


def summary_to_dict(summary: MonthlySummary) -> dict[str, Any]:
    return {
        "year": summary.year,
        "month": summary.month,
        "property_id": summary.property_id,
        "overview": asdict(summary.overview),
        "residents": [asdict(row) for row in summary.residents],
        "support_types": [asdict(row) for row in summary.support_types],
        "properties": [asdict(row) for row in summary.properties],
        "workers": [{**asdict(row), "support_types": list(row.support_types)} for row in summary.workers],
        "sessions": [session.to_json_dict() for session in summary.sessions],
    }


def write_export(summary: MonthlySummary, export_format: ExportFormat, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    LOGGER.info(
        "Writing report export",
        extra={"event": "report_export", "format": export_format.value, "path": str(path)},
    )
    if export_format is ExportFormat.CSV:
        path.write_text(monthly_summary_csv(summary), encoding="utf-8", newline="")
    elif export_format is ExportFormat.JSON:
        with path.open("w", encoding="utf-8") as handle:
            json.dump(summary_to_dict(summary), handle, indent=2, ensure_ascii=False, default=str)
            handle.write("\n")
    elif export_format is ExportFormat.EXCEL:
        _write_excel(summary, path)
    else:  # pragma: no cover - exhaustive enum
        raise ValueError(f"Unsupported export format: {export_format}")
    return path


def _write_excel(summary: MonthlySummary, path: Path) -> None:
    from openpyxl import Workbook  # type: ignore[import]
    from openpyxl.utils import get_column_letter  # type: ignore[import]

    workbook = Workbook()
    payload = summary_to_dict(summary)
    sheet = workbook.active
    sheet.title = "Residents"
    first = True
    for section in ("residents", "support_types", "properties", "workers"):
        rows = payload[section]
        if not first:
            sheet = workbook.create_sheet(section.replace("_", " ").title())
        first = False
        columns = list(rows[0]) if rows else []
        sheet.append(columns)
        for row in rows:
            sheet.append([_cell_value(row.get(column)) for column in columns])
        for index, column_name in enumerate(columns, start=1):
            max_length = max([len(str(column_name))] + [len(str(row.get(column_name, ""))) for row in rows])
            sheet.column_dimensions[get_column_letter(index)].width = max(10, min(max_length + 2, 60))

    metadata = workbook.create_sheet("Metadata")
    metadata.append(["Report", summary.title])
    metadata.append(["Property", summary.property_id or "All properties"])
    metadata.append(["Generated", datetime.now().isoformat(timespec="seconds")])
    metadata.append(["Sessions", len(summary.sessions)])
    for key, value in payload["overview"].items():
        metadata.append([key, value])

    workbook.save(path)


def _cell_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return value


def _group(sessions: Iterable[Session], key: Callable[[Session], Any]) -> dict[Any, list[Session]]:
    groups: dict[Any, list[Session]] = defaultdict(list)
    for session in sessions:
        groups[key(session)].append(session)
    return dict(groups)
