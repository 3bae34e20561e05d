from __future__ import annotations

from datetime import date

import pytest

from support_hours.core.directory import Directory
from support_hours.core.models import Property, Resident, Session, SessionStatus, SupportWorker
from support_hours.core.paths import DATA_DIR_ENV, set_app_data_directory
from support_hours.core.repository import SessionsRepository
from support_hours.core.time_segments import minutes_between, parse_clock


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    """Point every test at its own data directory."""

    monkeypatch.delenv(DATA_DIR_ENV, raising=False)
    return set_app_data_directory(tmp_path / "data")


@pytest.fixture
def make_session():
    def _make(
        start: str = "09:00",
        end: str = "10:00",
        *,
        day: date = date(2024, 2, 1),
        worker: str = "w1",
        resident: str = "r1",
        property_id: str = "p1",
        status: SessionStatus = SessionStatus.PLANNED,
        support_type: str = "mental_health",
        **extra,
    ) -> Session:
        start_time = parse_clock(start)
        end_time = parse_clock(end)
        return Session(
            resident_id=resident,
            support_worker_id=worker,
            property_id=property_id,
            support_type=support_type,
            session_date=day,
            start_time=start_time,
            end_time=end_time,
            duration_minutes=minutes_between(start_time, end_time),
            status=status,
            **extra,
        )

    return _make


@pytest.fixture
def directory(data_dir) -> Directory:
    directory = Directory(base_dir=data_dir)
    directory.properties.add(Property(name="Oak House", max_capacity=4, property_id="p1"))
    directory.properties.add(Property(name="Elm Court", max_capacity=2, property_id="p2"))
    directory.residents.add(Resident(name="Alice", property_id="p1", monthly_support_hours=2, resident_id="r1"))
    directory.residents.add(Resident(name="Bob", property_id="p2", monthly_support_hours=10, resident_id="r2"))
    directory.workers.add(
        SupportWorker(name="Sam", max_hours_per_week=20, max_hours_per_month=80, worker_id="w1")
    )
    directory.workers.add(
        SupportWorker(name="Jo", max_hours_per_week=10, max_hours_per_month=40, worker_id="w2")
    )
    return directory


@pytest.fixture
def repository(data_dir) -> SessionsRepository:
    return SessionsRepository(data_dir / "sessions.jsonl")
