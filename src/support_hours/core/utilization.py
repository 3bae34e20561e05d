"""Hour allocation, utilization and occupancy aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Sequence

from .formatting import percentage, round_half_up
from .models import Property, Resident, Session, SessionStatus, SupportWorker


class Granularity(Enum):
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True, slots=True)
class Period:
    """Inclusive range of session dates."""

    start: date
    end: date
    granularity: Granularity = Granularity.MONTH

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("Period end must not be before its start")

    @classmethod
    def for_month(cls, year: int, month: int) -> "Period":
        start = date(year, month, 1)
        following = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        return cls(start=start, end=following - timedelta(days=1), granularity=Granularity.MONTH)

    @classmethod
    def for_week(cls, week_start: date) -> "Period":
        return cls(start=week_start, end=week_start + timedelta(days=6), granularity=Granularity.WEEK)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True, slots=True)
class UtilizationRecord:
    allocated: float
    used: float
    remaining: float
    utilization_pct: float


@dataclass(frozen=True, slots=True)
class SessionCounts:
    total: int = 0
    planned: int = 0
    completed: int = 0
    cancelled: int = 0
    no_show: int = 0

    @property
    def completion_rate(self) -> float:
        return percentage(self.completed, self.total)


@dataclass(frozen=True, slots=True)
class OccupancyRecord:
    max_capacity: int
    current_residents: int
    occupancy_pct: float


def in_period(sessions: Iterable[Session], period: Period) -> list[Session]:
    return [session for session in sessions if period.contains(session.session_date)]


def minutes_with_status(sessions: Iterable[Session], status: SessionStatus) -> int:
    return sum(session.duration_minutes for session in sessions if session.status is status)


def completed_hours(sessions: Iterable[Session]) -> float:
    return minutes_with_status(sessions, SessionStatus.COMPLETED) / 60


def count_sessions(sessions: Iterable[Session]) -> SessionCounts:
    totals = {status: 0 for status in SessionStatus}
    for session in sessions:
        totals[session.status] += 1
    return SessionCounts(
        total=sum(totals.values()),
        planned=totals[SessionStatus.PLANNED],
        completed=totals[SessionStatus.COMPLETED],
        cancelled=totals[SessionStatus.CANCELLED],
        no_show=totals[SessionStatus.NO_SHOW],
    )


def aggregate(allocated: float | None, sessions: Sequence[Session], period: Period) -> UtilizationRecord:
    """Completed hours in ``period`` measured against an hour allocation.

    ``remaining`` goes negative when the allocation is exceeded. A missing or
    zero allocation yields 0% utilization.
    """
    allocation = float(allocated or 0)
    used = completed_hours(in_period(sessions, period))
    return UtilizationRecord(
        allocated=allocation,
        used=round_half_up(used, 2),
        remaining=round_half_up(allocation - used, 2),
        utilization_pct=percentage(used, allocation),
    )


def resident_utilization(resident: Resident, sessions: Sequence[Session], period: Period) -> UtilizationRecord:
    own = [session for session in sessions if session.resident_id == resident.resident_id]
    return aggregate(resident.monthly_support_hours, own, period)


def worker_allocation(worker: SupportWorker, granularity: Granularity) -> float:
    if granularity is Granularity.WEEK:
        return worker.max_hours_per_week
    return worker.max_hours_per_month


def worker_utilization(worker: SupportWorker, sessions: Sequence[Session], period: Period) -> UtilizationRecord:
    own = [session for session in sessions if session.support_worker_id == worker.worker_id]
    return aggregate(worker_allocation(worker, period.granularity), own, period)


def property_occupancy(prop: Property, residents: Iterable[Resident]) -> OccupancyRecord:
    current = sum(
        1 for resident in residents if resident.is_active and resident.property_id == prop.property_id
    )
    return OccupancyRecord(
        max_capacity=prop.max_capacity,
        current_residents=current,
        occupancy_pct=percentage(current, prop.max_capacity),
    )
