from __future__ import annotations

from datetime import date

import pytest

from support_hours.core import calendar_grid
from support_hours.core.calendar_grid import (
    DailyView,
    MonthGrid,
    MonthlyView,
    WeekGrid,
    WeeklyView,
    build_grid,
    date_range,
    navigation,
    resolve_view,
    title,
    week_start_for,
)


def test_month_grid_covers_six_weeks(make_session):
    sessions = [
        make_session("14:00", "15:00", day=date(2024, 2, 14)),
        make_session("09:00", "10:00", day=date(2024, 2, 14), worker="w2"),
        make_session(day=date(2024, 1, 30)),
    ]
    grid = build_grid(MonthlyView(2024, 2), sessions, today=date(2024, 2, 14))
    assert isinstance(grid, MonthGrid)
    cells = grid.cells()
    assert len(grid.weeks) == 6
    assert len(cells) == 42
    assert cells[0].date == date(2024, 1, 28)
    assert cells[-1].date == date(2024, 3, 9)
    assert grid.day_names[0] == "Sunday"

    by_date = {cell.date: cell for cell in cells}
    assert not by_date[date(2024, 1, 28)].is_current_month
    assert by_date[date(2024, 2, 1)].is_current_month
    assert by_date[date(2024, 2, 29)].is_current_month
    assert not by_date[date(2024, 3, 1)].is_current_month

    valentine = by_date[date(2024, 2, 14)]
    assert valentine.is_today
    assert [s.start_time.hour for s in valentine.sessions] == [9, 14]
    assert len(by_date[date(2024, 1, 30)].sessions) == 1
    assert sum(cell.is_today for cell in cells) == 1


def test_month_date_range_matches_grid():
    assert date_range(MonthlyView(2024, 2)) == (date(2024, 1, 28), date(2024, 3, 9))


def test_month_starting_on_sunday():
    grid = build_grid(MonthlyView(2023, 10), [], today=date(2024, 1, 1))
    assert grid.weeks[0][0].date == date(2023, 10, 1)


def test_month_navigation_rolls_over_years():
    december = navigation(MonthlyView(2024, 12))
    assert december.next == MonthlyView(2025, 1)
    assert december.prev == MonthlyView(2024, 11)
    january = navigation(MonthlyView(2024, 1))
    assert january.prev == MonthlyView(2023, 12)


def test_weekly_view_requires_sunday():
    with pytest.raises(ValueError):
        WeeklyView(date(2024, 2, 1))
    assert WeeklyView.containing(date(2024, 2, 1)).week_start == date(2024, 1, 28)
    assert week_start_for(date(2024, 1, 28)) == date(2024, 1, 28)
    assert week_start_for(date(2024, 2, 3)) == date(2024, 1, 28)


def test_week_grid(make_session):
    view = WeeklyView(date(2024, 1, 28))
    grid = build_grid(view, [make_session(day=date(2024, 2, 1)), make_session(day=date(2024, 2, 5))])
    assert isinstance(grid, WeekGrid)
    assert [cell.date for cell in grid.days] == [date(2024, 1, 28 + i) for i in range(4)] + [
        date(2024, 2, 1),
        date(2024, 2, 2),
        date(2024, 2, 3),
    ]
    assert len(grid.days[4].sessions) == 1
    assert sum(len(cell.sessions) for cell in grid.days) == 1
    assert len(grid.time_slots) == 19
    assert grid.time_slots[0] == "09:00"
    assert grid.time_slots[-1] == "18:00"

    nav = navigation(view)
    assert nav.prev.week_start == date(2024, 1, 21)
    assert nav.next.week_start == date(2024, 2, 4)


def test_day_grid(make_session):
    sessions = [
        make_session("15:00", "16:00"),
        make_session("08:30", "09:30", worker="w2"),
        make_session(day=date(2024, 2, 2)),
    ]
    grid = build_grid(DailyView(date(2024, 2, 1)), sessions, today=date(2024, 2, 1))
    assert grid.is_today
    assert [s.start_time.hour for s in grid.sessions] == [8, 15]
    assert len(grid.time_slots) == 12
    assert grid.time_slots[0] == "08:00"
    assert grid.time_slots[-1] == "19:00"
    assert navigation(DailyView(date(2024, 3, 1))).prev == DailyView(date(2024, 2, 29))


def test_resolve_view_defaults():
    today = date(2024, 2, 1)
    assert resolve_view(today=today) == MonthlyView(2024, 2)
    assert resolve_view("weekly", today=today) == WeeklyView(date(2024, 1, 28))
    assert resolve_view("daily", day=date(2024, 2, 5), today=today) == DailyView(date(2024, 2, 5))
    assert resolve_view("monthly", year=2023, month=7, today=today) == MonthlyView(2023, 7)
    with pytest.raises(ValueError):
        resolve_view("yearly", today=today)


def test_titles():
    assert title(MonthlyView(2024, 2)) == "February 2024"
    assert title(WeeklyView(date(2024, 1, 28))) == "Week of 28/01/2024"
    assert title(DailyView(date(2024, 2, 1))) == "Thursday 1 February 2024"
    assert calendar_grid.view_kind(DailyView(date(2024, 2, 1))) == "daily"


def test_invalid_month_rejected():
    with pytest.raises(ValueError):
        MonthlyView(2024, 13)
