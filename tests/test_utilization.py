from __future__ import annotations

from datetime import date

import pytest

from support_hours.core.formatting import percentage, round_half_up
from support_hours.core.models import Property, Resident, SessionStatus, SupportWorker
from support_hours.core.utilization import (
    Granularity,
    Period,
    aggregate,
    count_sessions,
    property_occupancy,
    resident_utilization,
    worker_utilization,
)

FEBRUARY = Period.for_month(2024, 2)


def test_period_for_month_handles_leap_year_and_december():
    assert FEBRUARY.end == date(2024, 2, 29)
    assert Period.for_month(2024, 12).end == date(2024, 12, 31)
    week = Period.for_week(date(2024, 1, 28))
    assert week.end == date(2024, 2, 3)
    assert week.granularity is Granularity.WEEK
    with pytest.raises(ValueError):
        Period(date(2024, 2, 2), date(2024, 2, 1))


def test_completed_hours_against_allocation(make_session):
    sessions = [
        make_session("09:00", "10:30", status=SessionStatus.COMPLETED),
        make_session("13:00", "14:00", status=SessionStatus.PLANNED),
        make_session("15:00", "16:00", status=SessionStatus.CANCELLED),
    ]
    record = aggregate(2, sessions, FEBRUARY)
    assert record.used == 1.5
    assert record.remaining == 0.5
    assert record.utilization_pct == 75.0


def test_zero_allocation_gives_zero_percent(make_session):
    record = aggregate(0, [make_session(status=SessionStatus.COMPLETED)], FEBRUARY)
    assert record.utilization_pct == 0.0
    assert record.remaining == -1.0
    assert aggregate(None, [], FEBRUARY).utilization_pct == 0.0


def test_over_allocation_keeps_negative_remaining(make_session):
    sessions = [make_session("09:00", "12:00", status=SessionStatus.COMPLETED)]
    record = aggregate(2, sessions, FEBRUARY)
    assert record.remaining == -1.0
    assert record.utilization_pct == 150.0


def test_sessions_outside_period_ignored(make_session):
    sessions = [make_session(status=SessionStatus.COMPLETED, day=date(2024, 3, 1))]
    assert aggregate(2, sessions, FEBRUARY).used == 0.0


def test_resident_and_worker_utilization(make_session):
    resident = Resident(name="Alice", property_id="p1", monthly_support_hours=4, resident_id="r1")
    worker = SupportWorker(name="Sam", max_hours_per_week=2, max_hours_per_month=8, worker_id="w1")
    sessions = [
        make_session("09:00", "10:00", status=SessionStatus.COMPLETED),
        make_session("10:00", "11:00", status=SessionStatus.COMPLETED, resident="r2"),
    ]
    assert resident_utilization(resident, sessions, FEBRUARY).used == 1.0
    assert worker_utilization(worker, sessions, FEBRUARY).utilization_pct == 25.0
    week = Period.for_week(date(2024, 1, 28))
    assert worker_utilization(worker, sessions, week).utilization_pct == 100.0


def test_property_occupancy():
    prop = Property(name="Oak House", max_capacity=4, property_id="p1")
    residents = [
        Resident(name="Alice", property_id="p1"),
        Resident(name="Bob", property_id="p1", is_active=False),
        Resident(name="Cara", property_id="p2"),
    ]
    record = property_occupancy(prop, residents)
    assert record.current_residents == 1
    assert record.occupancy_pct == 25.0
    empty = property_occupancy(Property(name="Closed", max_capacity=0), residents)
    assert empty.occupancy_pct == 0.0


def test_count_sessions(make_session):
    counts = count_sessions(
        [
            make_session(status=SessionStatus.COMPLETED),
            make_session(status=SessionStatus.COMPLETED),
            make_session(status=SessionStatus.NO_SHOW),
            make_session(status=SessionStatus.PLANNED),
        ]
    )
    assert (counts.total, counts.completed, counts.no_show, counts.planned) == (4, 2, 1, 1)
    assert counts.completion_rate == 50.0
    assert count_sessions([]).completion_rate == 0.0


def test_rounding_helpers():
    assert round_half_up(2.25, 1) == 2.3
    assert round_half_up(0.125, 2) == 0.13
    assert percentage(1, 3) == 33.3
    assert percentage(5, 0) == 0.0
