"""Command line interface: directory records, session scheduling, calendars, reports and exports."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from support_hours.core import calendar_grid
from support_hours.core.directory import Directory
from support_hours.core.exceptions import (
    ConflictError,
    NotFoundError,
    RepositoryError,
    SessionLockedError,
    SettingsError,
    ValidationError,
)
from support_hours.core.filters import session_filter
from support_hours.core.formatting import (
    format_duration,
    format_hours,
    format_number,
    format_percent,
    format_time_range,
    status_label,
    support_type_label,
)
from support_hours.core.logging_config import configure_from_settings
from support_hours.core.models import Property, Resident, Session, SupportWorker
from support_hours.core.paths import app_data_dir, exports_dir, set_app_data_directory
from support_hours.core.reports import ExportFormat, MonthlySummary, ReportService, write_export
from support_hours.core.repository import SessionsRepository
from support_hours.core.scheduling import UPCOMING_DAYS, SessionService
from support_hours.core.settings import Settings, SettingsManager
from support_hours.core.time_segments import format_clock

app = typer.Typer(add_completion=False, no_args_is_help=True, help="Support hours scheduling and reporting.")
properties_app = typer.Typer(no_args_is_help=True, help="Manage properties.")
residents_app = typer.Typer(no_args_is_help=True, help="Manage residents.")
workers_app = typer.Typer(no_args_is_help=True, help="Manage support workers.")
sessions_app = typer.Typer(no_args_is_help=True, help="Schedule and edit support sessions.")
report_app = typer.Typer(no_args_is_help=True, help="Monthly reports.")
app.add_typer(properties_app, name="properties")
app.add_typer(residents_app, name="residents")
app.add_typer(workers_app, name="workers")
app.add_typer(sessions_app, name="sessions")
app.add_typer(report_app, name="report")
console = Console()

LOGGER = logging.getLogger("support_hours.cli")

YEAR_OPTION = typer.Option(None, "--year")
MONTH_OPTION = typer.Option(None, "--month", min=1, max=12)
PROPERTY_OPTION = typer.Option(None, "--property")


@dataclass
class AppContext:
    settings: Settings
    directory: Directory
    sessions: SessionsRepository
    service: SessionService
    reports: ReportService


def _build_context(settings: Settings) -> AppContext:
    directory = Directory(lock_timeout=settings.lock_timeout_seconds)
    sessions = SessionsRepository(lock_timeout=settings.lock_timeout_seconds)
    return AppContext(
        settings=settings,
        directory=directory,
        sessions=sessions,
        service=SessionService(sessions, directory, settings),
        reports=ReportService(sessions, directory),
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(
        None, "--data-dir", envvar="SUPPORT_HOURS_DATA_DIR", help="Directory holding the data files."
    ),
) -> None:
    if data_dir is not None:
        set_app_data_directory(data_dir)
    try:
        settings = SettingsManager().load()
    except SettingsError as exc:
        console.print(f"[red]Settings error:[/red] {exc}")
        raise typer.Exit(1) from exc
    configure_from_settings(settings, console=True)
    ctx.obj = _build_context(settings)


@contextlib.contextmanager
def _handle_errors() -> Iterator[None]:
    try:
        yield
    except ValidationError as exc:
        console.print("[red]Please provide valid information:[/red]")
        for field_name, message in exc.errors.items():
            console.print(f"  {field_name}: {message}")
        raise typer.Exit(1) from exc
    except ConflictError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    except (NotFoundError, SessionLockedError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    except RepositoryError as exc:
        LOGGER.exception("Storage failure", extra={"event": "cli_storage_failure"})
        console.print("[red]Storage failure; see the log for details.[/red]")
        raise typer.Exit(2) from exc


def _parse_date(value: Optional[str], option: str) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"{value!r} is not a YYYY-MM-DD date", param_hint=option) from exc


def _current(ctx: typer.Context) -> AppContext:
    return ctx.obj


# ---------------------------------------------------------------------------
# Directory records


@properties_app.command("add")
def properties_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Property name."),
    capacity: int = typer.Option(..., "--capacity", min=1, help="Maximum number of residents."),
    address: str = typer.Option("", "--address"),
) -> None:
    with _handle_errors():
        prop = _current(ctx).directory.properties.add(Property(name=name, max_capacity=capacity, address=address))
    console.print(f"Added property [bold]{prop.name}[/bold] ({prop.property_id})")


@properties_app.command("list")
def properties_list(ctx: typer.Context) -> None:
    with _handle_errors():
        records = _current(ctx).directory.properties.list_all(active_only=True)
    table = Table(title="Properties")
    for column in ("ID", "Name", "Capacity", "Address"):
        table.add_column(column)
    for prop in sorted(records, key=lambda p: p.name.lower()):
        table.add_row(prop.property_id, prop.name, str(prop.max_capacity), prop.address)
    console.print(table)


@properties_app.command("update")
def properties_update(
    ctx: typer.Context,
    property_id: str = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name"),
    capacity: Optional[int] = typer.Option(None, "--capacity", help="Maximum number of residents (1-50)."),
    address: Optional[str] = typer.Option(None, "--address"),
) -> None:
    directory = _current(ctx).directory
    with _handle_errors():
        prop = directory.properties.get(property_id)
        prop = directory.update_property(
            replace(
                prop,
                name=prop.name if name is None else name,
                max_capacity=prop.max_capacity if capacity is None else capacity,
                address=prop.address if address is None else address,
            )
        )
    console.print(f"Updated property [bold]{prop.name}[/bold]")


@properties_app.command("deactivate")
def properties_deactivate(ctx: typer.Context, property_id: str = typer.Argument(...)) -> None:
    with _handle_errors():
        prop = _current(ctx).directory.deactivate_property(property_id)
    console.print(f"Deactivated property [bold]{prop.name}[/bold]")


@residents_app.command("add")
def residents_add(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    property_id: str = typer.Option(..., "--property"),
    hours: float = typer.Option(0.0, "--hours", min=0.0, help="Monthly support hours allocation."),
    start_date: Optional[str] = typer.Option(None, "--start-date"),
) -> None:
    context = _current(ctx)
    with _handle_errors():
        context.directory.properties.get(property_id)
        resident = context.directory.residents.add(
            Resident(
                name=name,
                property_id=property_id,
                monthly_support_hours=hours,
                start_date=_parse_date(start_date, "--start-date"),
            )
        )
    console.print(f"Added resident [bold]{resident.name}[/bold] ({resident.resident_id})")


@residents_app.command("list")
def residents_list(ctx: typer.Context) -> None:
    context = _current(ctx)
    with _handle_errors():
        records = context.directory.residents.list_all(active_only=True)
        names = {p.property_id: p.name for p in context.directory.properties.list_all()}
    table = Table(title="Residents")
    for column in ("ID", "Name", "Property", "Monthly hours"):
        table.add_column(column)
    for resident in sorted(records, key=lambda r: r.name.lower()):
        table.add_row(
            resident.resident_id,
            resident.name,
            names.get(resident.property_id or "", ""),
            format_number(resident.monthly_support_hours),
        )
    console.print(table)


@residents_app.command("update")
def residents_update(
    ctx: typer.Context,
    resident_id: str = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name"),
    property_id: Optional[str] = typer.Option(None, "--property", help="Move the resident to this property."),
    hours: Optional[float] = typer.Option(None, "--hours", help="Monthly support hours allocation."),
    start_date: Optional[str] = typer.Option(None, "--start-date"),
    end_date: Optional[str] = typer.Option(None, "--end-date"),
) -> None:
    directory = _current(ctx).directory
    with _handle_errors():
        resident = directory.residents.get(resident_id)
        resident = directory.update_resident(
            replace(
                resident,
                name=resident.name if name is None else name,
                property_id=resident.property_id if property_id is None else property_id,
                monthly_support_hours=resident.monthly_support_hours if hours is None else hours,
                start_date=_parse_date(start_date, "--start-date") or resident.start_date,
                end_date=_parse_date(end_date, "--end-date") or resident.end_date,
            )
        )
    console.print(f"Updated resident [bold]{resident.name}[/bold]")


@residents_app.command("deactivate")
def residents_deactivate(ctx: typer.Context, resident_id: str = typer.Argument(...)) -> None:
    with _handle_errors():
        resident = _current(ctx).directory.residents.deactivate(resident_id)
    console.print(f"Deactivated resident [bold]{resident.name}[/bold]")


@workers_app.command("add")
def workers_add(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    week_hours: float = typer.Option(0.0, "--week-hours", min=0.0),
    month_hours: float = typer.Option(0.0, "--month-hours", min=0.0),
    specialization: list[str] = typer.Option([], "--specialization", help="Support type key; repeatable."),
) -> None:
    with _handle_errors():
        worker = _current(ctx).directory.workers.add(
            SupportWorker(
                name=name,
                max_hours_per_week=week_hours,
                max_hours_per_month=month_hours,
                specializations=frozenset(specialization),
            )
        )
    console.print(f"Added support worker [bold]{worker.name}[/bold] ({worker.worker_id})")


@workers_app.command("list")
def workers_list(ctx: typer.Context) -> None:
    with _handle_errors():
        records = _current(ctx).directory.workers.list_all(active_only=True)
    table = Table(title="Support workers")
    for column in ("ID", "Name", "Hours/week", "Hours/month", "Specializations"):
        table.add_column(column)
    for worker in sorted(records, key=lambda w: w.name.lower()):
        table.add_row(
            worker.worker_id,
            worker.name,
            format_number(worker.max_hours_per_week),
            format_number(worker.max_hours_per_month),
            ", ".join(support_type_label(key) for key in sorted(worker.specializations)),
        )
    console.print(table)


@workers_app.command("update")
def workers_update(
    ctx: typer.Context,
    worker_id: str = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name"),
    week_hours: Optional[float] = typer.Option(None, "--week-hours"),
    month_hours: Optional[float] = typer.Option(None, "--month-hours"),
    specialization: Optional[list[str]] = typer.Option(
        None, "--specialization", help="Support type key; repeatable. Replaces the current list."
    ),
) -> None:
    directory = _current(ctx).directory
    with _handle_errors():
        worker = directory.workers.get(worker_id)
        worker = directory.update_worker(
            replace(
                worker,
                name=worker.name if name is None else name,
                max_hours_per_week=worker.max_hours_per_week if week_hours is None else week_hours,
                max_hours_per_month=worker.max_hours_per_month if month_hours is None else month_hours,
                specializations=frozenset(specialization) if specialization else worker.specializations,
            )
        )
    console.print(f"Updated support worker [bold]{worker.name}[/bold]")


@workers_app.command("deactivate")
def workers_deactivate(ctx: typer.Context, worker_id: str = typer.Argument(...)) -> None:
    with _handle_errors():
        worker = _current(ctx).directory.workers.deactivate(worker_id)
    console.print(f"Deactivated support worker [bold]{worker.name}[/bold]")


# ---------------------------------------------------------------------------
# Sessions


def _session_payload(**values: Any) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


@sessions_app.command("create")
def sessions_create(
    ctx: typer.Context,
    resident_id: str = typer.Option(..., "--resident"),
    worker_id: str = typer.Option(..., "--worker"),
    property_id: str = typer.Option(..., "--property"),
    support_type: str = typer.Option(..., "--type"),
    session_date: str = typer.Option(..., "--date", help="YYYY-MM-DD"),
    start_time: str = typer.Option(..., "--start", help="HH:MM"),
    end_time: str = typer.Option(..., "--end", help="HH:MM"),
    duration: Optional[int] = typer.Option(None, "--duration", help="Minutes; defaults to end minus start."),
    status: Optional[str] = typer.Option(None, "--status"),
    notes: Optional[str] = typer.Option(None, "--notes"),
    created_by: Optional[str] = typer.Option(None, "--created-by"),
) -> None:
    payload = _session_payload(
        resident_id=resident_id,
        support_worker_id=worker_id,
        property_id=property_id,
        support_type=support_type,
        session_date=session_date,
        start_time=start_time,
        end_time=end_time,
        duration_minutes=duration,
        status=status,
        notes=notes,
    )
    with _handle_errors():
        session = _current(ctx).service.create_session(payload, created_by=created_by)
    console.print(f"Created session [bold]{session.session_id}[/bold]")


@sessions_app.command("update")
def sessions_update(
    ctx: typer.Context,
    session_id: str = typer.Argument(...),
    resident_id: Optional[str] = typer.Option(None, "--resident"),
    worker_id: Optional[str] = typer.Option(None, "--worker"),
    property_id: Optional[str] = typer.Option(None, "--property"),
    support_type: Optional[str] = typer.Option(None, "--type"),
    session_date: Optional[str] = typer.Option(None, "--date"),
    start_time: Optional[str] = typer.Option(None, "--start"),
    end_time: Optional[str] = typer.Option(None, "--end"),
    duration: Optional[int] = typer.Option(None, "--duration"),
    status: Optional[str] = typer.Option(None, "--status"),
    notes: Optional[str] = typer.Option(None, "--notes"),
) -> None:
    service = _current(ctx).service
    with _handle_errors():
        current = service.get_session(session_id)
        times_changed = start_time is not None or end_time is not None
        payload = {
            **current.to_json_dict(),
            **_session_payload(
                resident_id=resident_id,
                support_worker_id=worker_id,
                property_id=property_id,
                support_type=support_type,
                session_date=session_date,
                start_time=start_time,
                end_time=end_time,
                status=status,
                notes=notes,
            ),
        }
        if duration is not None:
            payload["duration_minutes"] = duration
        elif times_changed:
            payload["duration_minutes"] = None
        session = service.update_session(session_id, payload)
    console.print(f"Updated session [bold]{session.session_id}[/bold]")


@sessions_app.command("delete")
def sessions_delete(ctx: typer.Context, session_id: str = typer.Argument(...)) -> None:
    with _handle_errors():
        _current(ctx).service.delete_session(session_id)
    console.print(f"Deleted session {session_id}")


@sessions_app.command("show")
def sessions_show(ctx: typer.Context, session_id: str = typer.Argument(...)) -> None:
    context = _current(ctx)
    with _handle_errors():
        session = context.service.get_session(session_id)
        labels = _name_lookup(context)
    table = Table(show_header=False, title=f"Session {session.session_id}")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Date", session.session_date.isoformat())
    table.add_row("Time", format_time_range(session.start_time, session.end_time))
    table.add_row("Duration", format_duration(session.duration_minutes))
    table.add_row("Resident", labels.get(session.resident_id, session.resident_id))
    table.add_row("Support worker", labels.get(session.support_worker_id, session.support_worker_id))
    table.add_row("Property", labels.get(session.property_id, session.property_id))
    table.add_row("Support type", support_type_label(session.support_type))
    table.add_row("Status", status_label(session.status.value))
    table.add_row("Notes", session.notes)
    table.add_row("Locked", "yes" if context.service.is_locked(session) else "no")
    console.print(table)


@sessions_app.command("list")
def sessions_list(
    ctx: typer.Context,
    date_from: Optional[str] = typer.Option(None, "--from"),
    date_to: Optional[str] = typer.Option(None, "--to"),
    property_id: Optional[str] = typer.Option(None, "--property"),
    resident_id: Optional[str] = typer.Option(None, "--resident"),
    worker_id: Optional[str] = typer.Option(None, "--worker"),
    support_type: Optional[str] = typer.Option(None, "--type"),
    status: Optional[str] = typer.Option(None, "--status"),
    page: int = typer.Option(1, "--page", min=1),
    limit: int = typer.Option(50, "--limit", min=1),
) -> None:
    context = _current(ctx)
    filters = session_filter(
        date_from=_parse_date(date_from, "--from"),
        date_to=_parse_date(date_to, "--to"),
        property_id=property_id,
        resident_id=resident_id,
        support_worker_id=worker_id,
        support_type=support_type,
        status=status,
    )
    with _handle_errors():
        result = context.service.list_sessions(filters, page=page, limit=limit)
        labels = _name_lookup(context)
    title = f"Sessions (page {result.page} of {max(result.total_pages, 1)}, {result.total} total)"
    console.print(_sessions_table(result.sessions, labels, title=title))


@sessions_app.command("today")
def sessions_today(ctx: typer.Context, property_id: Optional[str] = PROPERTY_OPTION) -> None:
    context = _current(ctx)
    with _handle_errors():
        sessions = context.service.todays_sessions(session_filter(property_id=property_id))
        labels = _name_lookup(context)
    if not sessions:
        console.print("No sessions scheduled today.")
        return
    console.print(_sessions_table(sessions, labels, title="Today's sessions"))


@sessions_app.command("upcoming")
def sessions_upcoming(
    ctx: typer.Context,
    days: int = typer.Option(UPCOMING_DAYS, "--days", min=0, help="How many days ahead to look."),
    property_id: Optional[str] = PROPERTY_OPTION,
) -> None:
    context = _current(ctx)
    with _handle_errors():
        sessions = context.service.upcoming_sessions(days, session_filter(property_id=property_id))
        labels = _name_lookup(context)
    if not sessions:
        console.print(f"No planned sessions in the next {days} days.")
        return
    console.print(_sessions_table(sessions, labels, title=f"Planned sessions, next {days} days"))


def _name_lookup(context: AppContext) -> dict[str, str]:
    labels: dict[str, str] = {}
    for prop in context.directory.properties.list_all():
        labels[prop.property_id] = prop.name
    for resident in context.directory.residents.list_all():
        labels[resident.resident_id] = resident.name
    for worker in context.directory.workers.list_all():
        labels[worker.worker_id] = worker.name
    return labels


def _sessions_table(sessions: list[Session], labels: dict[str, str], title: str) -> Table:
    table = Table(title=title)
    for column in ("ID", "Date", "Time", "Resident", "Worker", "Property", "Type", "Status"):
        table.add_column(column)
    for session in sessions:
        table.add_row(
            session.session_id,
            session.session_date.isoformat(),
            format_time_range(session.start_time, session.end_time),
            labels.get(session.resident_id, session.resident_id),
            labels.get(session.support_worker_id, session.support_worker_id),
            labels.get(session.property_id, session.property_id),
            support_type_label(session.support_type),
            status_label(session.status.value),
        )
    return table


# ---------------------------------------------------------------------------
# Calendar


@app.command("calendar")
def calendar_command(
    ctx: typer.Context,
    view: str = typer.Option("monthly", "--view", help="monthly, weekly or daily"),
    year: Optional[int] = typer.Option(None, "--year"),
    month: Optional[int] = typer.Option(None, "--month", min=1, max=12),
    week: Optional[str] = typer.Option(None, "--week", help="Any date within the week"),
    day: Optional[str] = typer.Option(None, "--date"),
    property_id: Optional[str] = typer.Option(None, "--property"),
) -> None:
    context = _current(ctx)
    try:
        calendar_view = calendar_grid.resolve_view(
            view,
            year=year,
            month=month,
            week=_parse_date(week, "--week"),
            day=_parse_date(day, "--date"),
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--view") from exc
    start, end = calendar_grid.date_range(calendar_view)
    with _handle_errors():
        sessions = context.sessions.find_by_date_range(
            start, end, session_filter(property_id=property_id)
        )
        labels = _name_lookup(context)
    grid = calendar_grid.build_grid(calendar_view, sessions)
    nav = calendar_grid.navigation(calendar_view)
    title = calendar_grid.title(calendar_view)

    if isinstance(grid, calendar_grid.MonthGrid):
        table = Table(title=title, show_lines=True)
        for name in grid.day_names:
            table.add_column(name[:3], justify="center")
        for week_cells in grid.weeks:
            table.add_row(*[_month_cell(cell) for cell in week_cells])
    elif isinstance(grid, calendar_grid.WeekGrid):
        table = Table(title=title, show_lines=True)
        for cell in grid.days:
            table.add_column(f"{cell.day_name} {cell.day_number}", justify="left")
        table.add_row(*["\n".join(_session_line(s, labels) for s in cell.sessions) or "-" for cell in grid.days])
    else:
        table = Table(title=title)
        table.add_column("Time")
        table.add_column("Session")
        for session in grid.sessions:
            table.add_row(format_time_range(session.start_time, session.end_time), _session_line(session, labels))
    console.print(table)
    console.print(f"prev: {_describe_view(nav.prev)}  next: {_describe_view(nav.next)}")


def _month_cell(cell: calendar_grid.DayCell) -> str:
    label = str(cell.day_number)
    if cell.is_today:
        label = f"[reverse]{label}[/reverse]"
    elif not cell.is_current_month:
        label = f"[dim]{label}[/dim]"
    if cell.sessions:
        label += f"\n{len(cell.sessions)} session{'s' if len(cell.sessions) != 1 else ''}"
    return label


def _session_line(session: Session, labels: dict[str, str]) -> str:
    return (
        f"{format_clock(session.start_time)} {labels.get(session.resident_id, session.resident_id)}"
        f" / {labels.get(session.support_worker_id, session.support_worker_id)}"
        f" ({status_label(session.status.value)})"
    )


def _describe_view(view: calendar_grid.CalendarView) -> str:
    if isinstance(view, calendar_grid.MonthlyView):
        return f"--view monthly --year {view.year} --month {view.month}"
    if isinstance(view, calendar_grid.WeeklyView):
        return f"--view weekly --week {view.week_start.isoformat()}"
    return f"--view daily --date {view.day.isoformat()}"


# ---------------------------------------------------------------------------
# Reports


def _period_options(year: Optional[int], month: Optional[int]) -> tuple[int, int]:
    today = date.today()
    return year or today.year, month or today.month


def _summary(ctx: typer.Context, year: Optional[int], month: Optional[int], property_id: Optional[str]) -> MonthlySummary:
    report_year, report_month = _period_options(year, month)
    with _handle_errors():
        return _current(ctx).reports.monthly_summary(report_year, report_month, property_id)


@report_app.command("overview")
def report_overview(
    ctx: typer.Context,
    year: Optional[int] = YEAR_OPTION,
    month: Optional[int] = MONTH_OPTION,
    property_id: Optional[str] = PROPERTY_OPTION,
) -> None:
    summary = _summary(ctx, year, month, property_id)
    stats = summary.overview
    table = Table(show_header=False, title=summary.title)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Active residents", str(stats.total_residents))
    table.add_row("Active support workers", str(stats.total_workers))
    table.add_row("Active properties", str(stats.total_properties))
    table.add_row("Sessions", str(stats.sessions_in_period))
    table.add_row("Completed hours", format_hours(stats.hours_in_period))
    table.add_row("Allocated hours", format_number(stats.total_allocated_hours))
    table.add_row("Utilization", format_percent(stats.utilization_pct))
    console.print(table)


@report_app.command("residents")
def report_residents(
    ctx: typer.Context,
    year: Optional[int] = YEAR_OPTION,
    month: Optional[int] = MONTH_OPTION,
    property_id: Optional[str] = PROPERTY_OPTION,
) -> None:
    summary = _summary(ctx, year, month, property_id)
    table = Table(title=f"Resident utilization - {summary.title}")
    for column in ("Resident", "Property", "Allocated", "Used", "Planned", "Remaining", "Utilization"):
        table.add_column(column)
    for row in summary.residents:
        table.add_row(
            row.resident_name,
            row.property_name,
            format_number(row.allocated_hours),
            format_hours(row.hours_used),
            format_hours(row.hours_planned),
            format_hours(row.remaining_hours),
            format_percent(row.utilization_pct),
        )
    console.print(table)


@report_app.command("support-types")
def report_support_types(
    ctx: typer.Context,
    year: Optional[int] = YEAR_OPTION,
    month: Optional[int] = MONTH_OPTION,
    property_id: Optional[str] = PROPERTY_OPTION,
) -> None:
    summary = _summary(ctx, year, month, property_id)
    table = Table(title=f"Support types - {summary.title}")
    for column in ("Support type", "Sessions", "Hours", "Avg minutes", "Completed", "Cancelled", "No show"):
        table.add_column(column)
    for row in summary.support_types:
        table.add_row(
            support_type_label(row.support_type),
            str(row.session_count),
            format_hours(row.total_hours),
            format_number(row.avg_duration_minutes),
            str(row.completed_count),
            str(row.cancelled_count),
            str(row.no_show_count),
        )
    console.print(table)


@report_app.command("properties")
def report_properties(
    ctx: typer.Context,
    year: Optional[int] = YEAR_OPTION,
    month: Optional[int] = MONTH_OPTION,
    property_id: Optional[str] = PROPERTY_OPTION,
) -> None:
    summary = _summary(ctx, year, month, property_id)
    table = Table(title=f"Properties - {summary.title}")
    for column in ("Property", "Residents", "Capacity", "Occupancy", "Sessions", "Hours", "Completed", "Cancelled"):
        table.add_column(column)
    for row in summary.properties:
        table.add_row(
            row.property_name,
            str(row.current_residents),
            str(row.max_capacity),
            format_percent(row.occupancy_pct),
            str(row.total_sessions),
            format_hours(row.total_hours),
            str(row.completed_sessions),
            str(row.cancelled_sessions),
        )
    console.print(table)


@report_app.command("workers")
def report_workers(
    ctx: typer.Context,
    year: Optional[int] = YEAR_OPTION,
    month: Optional[int] = MONTH_OPTION,
    property_id: Optional[str] = PROPERTY_OPTION,
) -> None:
    summary = _summary(ctx, year, month, property_id)
    table = Table(title=f"Worker performance - {summary.title}")
    for column in ("Worker", "Hours", "Utilization", "Sessions", "Completion", "Residents", "Days", "Hours/day"):
        table.add_column(column)
    for row in summary.workers:
        table.add_row(
            row.worker_name,
            format_hours(row.hours_worked),
            format_percent(row.utilization_pct),
            str(row.total_sessions),
            format_percent(row.completion_rate),
            str(row.unique_residents),
            str(row.working_days),
            format_hours(row.avg_hours_per_day),
        )
    console.print(table)


@report_app.command("daily")
def report_daily(
    ctx: typer.Context,
    year: Optional[int] = YEAR_OPTION,
    month: Optional[int] = MONTH_OPTION,
    property_id: Optional[str] = PROPERTY_OPTION,
) -> None:
    report_year, report_month = _period_options(year, month)
    with _handle_errors():
        rows = _current(ctx).reports.daily_utilization(report_year, report_month, property_id)
    table = Table(title="Daily utilization")
    for column in ("Date", "Sessions", "Hours", "Completed", "Cancelled", "No show", "Residents", "Workers"):
        table.add_column(column)
    for row in rows:
        table.add_row(
            row.session_date.isoformat(),
            str(row.total_sessions),
            format_hours(row.total_hours),
            str(row.completed_sessions),
            str(row.cancelled_sessions),
            str(row.no_show_sessions),
            str(row.unique_residents),
            str(row.unique_workers),
        )
    console.print(table)


@app.command("export")
def export_command(
    ctx: typer.Context,
    year: Optional[int] = YEAR_OPTION,
    month: Optional[int] = MONTH_OPTION,
    property_id: Optional[str] = PROPERTY_OPTION,
    export_format: ExportFormat = typer.Option(ExportFormat.CSV, "--format", case_sensitive=False),
    output: Optional[Path] = typer.Option(None, "--output", help="Destination file; defaults to the exports folder."),
) -> None:
    summary = _summary(ctx, year, month, property_id)
    target = output or exports_dir() / summary.filename(export_format)
    write_export(summary, export_format, target)
    console.print(f"Wrote {export_format.value} export to {target}")


@app.command("where")
def where_command() -> None:
    """Print the active data directory."""
    typer.echo(str(app_data_dir()))

