"""Domain models for the support hours tracker."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Iterable

from .time_segments import TimeInterval, format_clock, parse_clock


class SessionStatus(str, Enum):
    PLANNED = "planned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_active(self) -> bool:
        return self not in INACTIVE_STATUSES


INACTIVE_STATUSES = frozenset({SessionStatus.CANCELLED, SessionStatus.NO_SHOW})


class SupportType(str, Enum):
    """Support types shipped by default; settings may enable additional keys."""

    MENTAL_HEALTH = "mental_health"
    DOMESTIC_INDEPENDENCE = "domestic_independence"
    ACTIVITY_GROUP = "activity_group"


DEFAULT_SUPPORT_TYPES = tuple(member.value for member in SupportType)


def new_record_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class Property:
    name: str
    max_capacity: int
    address: str = ""
    is_active: bool = True
    property_id: str = field(default_factory=new_record_id)

    @property
    def record_id(self) -> str:
        return self.property_id

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "property_id": self.property_id,
            "name": self.name,
            "address": self.address,
            "max_capacity": self.max_capacity,
            "is_active": self.is_active,
        }

    @classmethod
    def from_json_dict(cls, payload: dict[str, Any]) -> "Property":
        return cls(
            name=str(payload["name"]),
            max_capacity=int(payload.get("max_capacity", 0)),
            address=str(payload.get("address") or ""),
            is_active=bool(payload.get("is_active", True)),
            property_id=str(payload.get("property_id") or new_record_id()),
        )


@dataclass(slots=True)
class Resident:
    name: str
    property_id: str | None
    monthly_support_hours: float = 0.0
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool = True
    resident_id: str = field(default_factory=new_record_id)

    @property
    def record_id(self) -> str:
        return self.resident_id

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "resident_id": self.resident_id,
            "name": self.name,
            "property_id": self.property_id,
            "monthly_support_hours": self.monthly_support_hours,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "is_active": self.is_active,
        }

    @classmethod
    def from_json_dict(cls, payload: dict[str, Any]) -> "Resident":
        return cls(
            name=str(payload["name"]),
            property_id=payload.get("property_id") or None,
            monthly_support_hours=float(payload.get("monthly_support_hours") or 0),
            start_date=_parse_optional_date(payload.get("start_date")),
            end_date=_parse_optional_date(payload.get("end_date")),
            is_active=bool(payload.get("is_active", True)),
            resident_id=str(payload.get("resident_id") or new_record_id()),
        )


@dataclass(slots=True)
class SupportWorker:
    name: str
    max_hours_per_week: float = 0.0
    max_hours_per_month: float = 0.0
    specializations: frozenset[str] = field(default_factory=frozenset)
    is_active: bool = True
    worker_id: str = field(default_factory=new_record_id)

    @property
    def record_id(self) -> str:
        return self.worker_id

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "worker_id": self.worker_id,
            "name": self.name,
            "max_hours_per_week": self.max_hours_per_week,
            "max_hours_per_month": self.max_hours_per_month,
            "specializations": sorted(self.specializations),
            "is_active": self.is_active,
        }

    @classmethod
    def from_json_dict(cls, payload: dict[str, Any]) -> "SupportWorker":
        return cls(
            name=str(payload["name"]),
            max_hours_per_week=float(payload.get("max_hours_per_week") or 0),
            max_hours_per_month=float(payload.get("max_hours_per_month") or 0),
            specializations=frozenset(_iter_strings(payload.get("specializations"))),
            is_active=bool(payload.get("is_active", True)),
            worker_id=str(payload.get("worker_id") or new_record_id()),
        )


@dataclass(slots=True)
class Session:
    """A scheduled support session between a worker and a resident."""

    resident_id: str
    support_worker_id: str
    property_id: str
    support_type: str
    session_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    status: SessionStatus = SessionStatus.PLANNED
    notes: str = ""
    created_by: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now().replace(microsecond=0))
    session_id: str = field(default_factory=new_record_id)

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.session_date, self.start_time)

    @property
    def hours(self) -> float:
        return self.duration_minutes / 60

    def as_interval(self) -> TimeInterval:
        return TimeInterval.from_times(self.start_time, self.end_time)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "resident_id": self.resident_id,
            "support_worker_id": self.support_worker_id,
            "property_id": self.property_id,
            "support_type": self.support_type,
            "session_date": self.session_date.isoformat(),
            "start_time": format_clock(self.start_time),
            "end_time": format_clock(self.end_time),
            "duration_minutes": self.duration_minutes,
            "status": self.status.value,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }

    @classmethod
    def from_json_dict(cls, payload: dict[str, Any]) -> "Session":
        return cls(
            resident_id=str(payload["resident_id"]),
            support_worker_id=str(payload["support_worker_id"]),
            property_id=str(payload["property_id"]),
            support_type=str(payload["support_type"]),
            session_date=date.fromisoformat(str(payload["session_date"])),
            start_time=parse_clock(payload["start_time"]),
            end_time=parse_clock(payload["end_time"]),
            duration_minutes=int(payload["duration_minutes"]),
            status=SessionStatus(payload.get("status") or SessionStatus.PLANNED.value),
            notes=str(payload.get("notes") or ""),
            created_by=payload.get("created_by") or None,
            created_at=_parse_datetime(payload.get("created_at")),
            session_id=str(payload.get("session_id") or new_record_id()),
        )


def _parse_optional_date(value: Any) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.now().replace(microsecond=0)
    return datetime.fromisoformat(str(value))


def _iter_strings(values: Any) -> Iterable[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = values.split(",")
    return [str(item).strip() for item in values if str(item).strip()]
