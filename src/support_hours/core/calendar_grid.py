"""Projection of sessions onto monthly, weekly and daily calendar grids."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Sequence, Union

from .formatting import day_title, month_title, week_title
from .models import Session
from .time_segments import clock_labels

LOGGER = logging.getLogger("support_hours.calendar")

WEEKS_PER_MONTH_GRID = 6
DAYS_PER_WEEK = 7
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

WEEKLY_FIRST_HOUR = 9
WEEKLY_LAST_HOUR = 18
WEEKLY_SLOT_MINUTES = 30
DAILY_FIRST_HOUR = 8
DAILY_LAST_HOUR = 19


# ---------------------------------------------------------------------------
# Views


@dataclass(frozen=True, slots=True)
class MonthlyView:
    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month out of range: {self.month}")

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return _next_month(self.first_day) - timedelta(days=1)


@dataclass(frozen=True, slots=True)
class WeeklyView:
    week_start: date

    def __post_init__(self) -> None:
        if self.week_start != week_start_for(self.week_start):
            raise ValueError("Weekly views must start on a Sunday")

    @classmethod
    def containing(cls, day: date) -> "WeeklyView":
        return cls(week_start=week_start_for(day))


@dataclass(frozen=True, slots=True)
class DailyView:
    day: date


CalendarView = Union[MonthlyView, WeeklyView, DailyView]


@dataclass(frozen=True, slots=True)
class Navigation:
    prev: CalendarView
    current: CalendarView
    next: CalendarView


def view_kind(view: CalendarView) -> str:
    if isinstance(view, MonthlyView):
        return "monthly"
    if isinstance(view, WeeklyView):
        return "weekly"
    if isinstance(view, DailyView):
        return "daily"
    raise TypeError(f"Unsupported calendar view: {view!r}")


def resolve_view(
    kind: str = "monthly",
    *,
    year: int | None = None,
    month: int | None = None,
    week: date | None = None,
    day: date | None = None,
    today: date | None = None,
) -> CalendarView:
    """Turn calendar query parameters into a view, defaulting to the current period."""
    today = today or date.today()
    kind = (kind or "monthly").lower()
    if kind == "weekly":
        return WeeklyView.containing(week or today)
    if kind == "daily":
        return DailyView(day=day or today)
    if kind == "monthly":
        return MonthlyView(year=year or today.year, month=month or today.month)
    raise ValueError(f"Unsupported calendar view: {kind}")


def date_range(view: CalendarView) -> tuple[date, date]:
    """Inclusive session-date range the view needs loaded."""
    if isinstance(view, MonthlyView):
        start = _grid_start(view)
        return start, start + timedelta(days=WEEKS_PER_MONTH_GRID * DAYS_PER_WEEK - 1)
    if isinstance(view, WeeklyView):
        return view.week_start, view.week_start + timedelta(days=DAYS_PER_WEEK - 1)
    if isinstance(view, DailyView):
        return view.day, view.day
    raise TypeError(f"Unsupported calendar view: {view!r}")


def title(view: CalendarView) -> str:
    if isinstance(view, MonthlyView):
        return month_title(view.year, view.month)
    if isinstance(view, WeeklyView):
        return week_title(view.week_start)
    if isinstance(view, DailyView):
        return day_title(view.day)
    raise TypeError(f"Unsupported calendar view: {view!r}")


def navigation(view: CalendarView) -> Navigation:
    if isinstance(view, MonthlyView):
        prev_view = MonthlyView(year=view.year - 1, month=12) if view.month == 1 else MonthlyView(view.year, view.month - 1)
        next_view = MonthlyView(year=view.year + 1, month=1) if view.month == 12 else MonthlyView(view.year, view.month + 1)
        return Navigation(prev=prev_view, current=view, next=next_view)
    if isinstance(view, WeeklyView):
        return Navigation(
            prev=WeeklyView(view.week_start - timedelta(days=DAYS_PER_WEEK)),
            current=view,
            next=WeeklyView(view.week_start + timedelta(days=DAYS_PER_WEEK)),
        )
    if isinstance(view, DailyView):
        return Navigation(
            prev=DailyView(view.day - timedelta(days=1)),
            current=view,
            next=DailyView(view.day + timedelta(days=1)),
        )
    raise TypeError(f"Unsupported calendar view: {view!r}")


# ---------------------------------------------------------------------------
# Grids


@dataclass(slots=True)
class DayCell:
    date: date
    is_today: bool
    is_current_month: bool = True
    sessions: list[Session] = field(default_factory=list)

    @property
    def day_number(self) -> int:
        return self.date.day

    @property
    def day_name(self) -> str:
        return self.date.strftime("%a")


@dataclass(slots=True)
class MonthGrid:
    view: MonthlyView
    weeks: list[list[DayCell]]
    day_names: tuple[str, ...] = DAY_NAMES

    def cells(self) -> list[DayCell]:
        return [cell for week in self.weeks for cell in week]


@dataclass(slots=True)
class WeekGrid:
    view: WeeklyView
    days: list[DayCell]
    time_slots: list[str]


@dataclass(slots=True)
class DayGrid:
    view: DailyView
    sessions: list[Session]
    time_slots: list[str]
    is_today: bool


Grid = Union[MonthGrid, WeekGrid, DayGrid]


def bucket_sessions(sessions: Iterable[Session]) -> dict[date, list[Session]]:
    """Group sessions by their calendar date, each bucket ordered by start time."""
    buckets: dict[date, list[Session]] = defaultdict(list)
    for session in sessions:
        buckets[session.session_date].append(session)
    for bucket in buckets.values():
        bucket.sort(key=lambda s: (s.start_time, s.end_time, s.session_id))
    return dict(buckets)


def build_grid(view: CalendarView, sessions: Sequence[Session], today: date | None = None) -> Grid:
    today = today or date.today()
    LOGGER.debug(
        "Building calendar grid",
        extra={"event": "calendar_build", "view": view_kind(view), "session_count": len(sessions)},
    )
    if isinstance(view, MonthlyView):
        return build_month_grid(view, sessions, today)
    if isinstance(view, WeeklyView):
        return build_week_grid(view, sessions, today)
    if isinstance(view, DailyView):
        return build_day_grid(view, sessions, today)
    raise TypeError(f"Unsupported calendar view: {view!r}")


def build_month_grid(view: MonthlyView, sessions: Sequence[Session], today: date) -> MonthGrid:
    buckets = bucket_sessions(sessions)
    cursor = _grid_start(view)
    weeks: list[list[DayCell]] = []
    for _week in range(WEEKS_PER_MONTH_GRID):
        row: list[DayCell] = []
        for _day in range(DAYS_PER_WEEK):
            row.append(
                DayCell(
                    date=cursor,
                    is_today=cursor == today,
                    is_current_month=(cursor.year, cursor.month) == (view.year, view.month),
                    sessions=list(buckets.get(cursor, [])),
                )
            )
            cursor += timedelta(days=1)
        weeks.append(row)
    return MonthGrid(view=view, weeks=weeks)


def build_week_grid(view: WeeklyView, sessions: Sequence[Session], today: date) -> WeekGrid:
    buckets = bucket_sessions(sessions)
    days = []
    for offset in range(DAYS_PER_WEEK):
        day = view.week_start + timedelta(days=offset)
        days.append(DayCell(date=day, is_today=day == today, sessions=list(buckets.get(day, []))))
    return WeekGrid(
        view=view,
        days=days,
        time_slots=clock_labels(WEEKLY_FIRST_HOUR, WEEKLY_LAST_HOUR, WEEKLY_SLOT_MINUTES),
    )


def build_day_grid(view: DailyView, sessions: Sequence[Session], today: date) -> DayGrid:
    buckets = bucket_sessions(sessions)
    return DayGrid(
        view=view,
        sessions=list(buckets.get(view.day, [])),
        time_slots=clock_labels(DAILY_FIRST_HOUR, DAILY_LAST_HOUR, 60),
        is_today=view.day == today,
    )


def week_start_for(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _grid_start(view: MonthlyView) -> date:
    return week_start_for(view.first_day)


def _next_month(first_day: date) -> date:
    if first_day.month == 12:
        return date(first_day.year + 1, 1, 1)
    return date(first_day.year, first_day.month + 1, 1)
