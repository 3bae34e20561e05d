"""Parsing and validation of session create/update input."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, time
from typing import Any, Mapping, Sequence

from .exceptions import ValidationError
from .models import DEFAULT_SUPPORT_TYPES, Session, SessionStatus
from .settings import DEFAULT_MAX_SESSION_MINUTES, DEFAULT_MIN_SESSION_MINUTES
from .time_segments import minutes_between, parse_clock

REFERENCE_FIELDS = ("resident_id", "support_worker_id", "property_id")


@dataclass(frozen=True, slots=True)
class SessionInput:
    """Validated session fields, ready to be turned into a ``Session``."""

    resident_id: str
    support_worker_id: str
    property_id: str
    support_type: str
    session_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    status: SessionStatus
    notes: str

    def to_session(self, created_by: str | None = None) -> Session:
        return Session(
            resident_id=self.resident_id,
            support_worker_id=self.support_worker_id,
            property_id=self.property_id,
            support_type=self.support_type,
            session_date=self.session_date,
            start_time=self.start_time,
            end_time=self.end_time,
            duration_minutes=self.duration_minutes,
            status=self.status,
            notes=self.notes,
            created_by=created_by,
        )

    def apply_to(self, session: Session) -> Session:
        """Return a copy of ``session`` carrying these fields; identity and audit fields are kept."""
        return replace(
            session,
            resident_id=self.resident_id,
            support_worker_id=self.support_worker_id,
            property_id=self.property_id,
            support_type=self.support_type,
            session_date=self.session_date,
            start_time=self.start_time,
            end_time=self.end_time,
            duration_minutes=self.duration_minutes,
            status=self.status,
            notes=self.notes,
        )


def parse_session_input(
    payload: Mapping[str, Any],
    *,
    support_types: Sequence[str] = DEFAULT_SUPPORT_TYPES,
    min_minutes: int = DEFAULT_MIN_SESSION_MINUTES,
    max_minutes: int = DEFAULT_MAX_SESSION_MINUTES,
    require_status: bool = False,
) -> SessionInput:
    """Validate raw form input and collect every field error before raising."""

    errors: dict[str, str] = {}

    references: dict[str, str] = {}
    for name in REFERENCE_FIELDS:
        value = _text(payload.get(name))
        if not value:
            errors[name] = "This field is required."
        references[name] = value

    support_type = _text(payload.get("support_type"))
    if support_type not in support_types:
        errors["support_type"] = "Choose one of: " + ", ".join(support_types)

    session_date: date | None = None
    raw_date = payload.get("session_date")
    if isinstance(raw_date, date):
        session_date = raw_date
    else:
        try:
            session_date = date.fromisoformat(_text(raw_date))
        except ValueError:
            errors["session_date"] = "Enter a date as YYYY-MM-DD."

    start_time = _clock(payload.get("start_time"), "start_time", errors)
    end_time = _clock(payload.get("end_time"), "end_time", errors)

    span: int | None = None
    if start_time is not None and end_time is not None:
        if end_time < start_time:
            errors["end_time"] = "Sessions cannot continue past midnight."
        elif end_time == start_time:
            errors["end_time"] = "End time must be after start time."
        else:
            span = minutes_between(start_time, end_time)

    duration = _duration(payload.get("duration_minutes"), span, min_minutes, max_minutes, errors)

    raw_status = _text(payload.get("status"))
    status = SessionStatus.PLANNED
    if raw_status:
        try:
            status = SessionStatus(raw_status)
        except ValueError:
            errors["status"] = "Choose one of: " + ", ".join(member.value for member in SessionStatus)
    elif require_status:
        errors["status"] = "This field is required."

    if errors or session_date is None or start_time is None or end_time is None or duration is None:
        raise ValidationError(
            errors or "Incomplete session details.", "Please provide valid session information"
        )

    return SessionInput(
        resident_id=references["resident_id"],
        support_worker_id=references["support_worker_id"],
        property_id=references["property_id"],
        support_type=support_type,
        session_date=session_date,
        start_time=start_time,
        end_time=end_time,
        duration_minutes=duration,
        status=status,
        notes=_text(payload.get("notes")),
    )


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _clock(value: Any, field_name: str, errors: dict[str, str]) -> time | None:
    try:
        return parse_clock(value if isinstance(value, time) else _text(value))
    except ValueError:
        errors[field_name] = "Enter a 24-hour time as HH:MM."
        return None


def _duration(
    value: Any,
    span: int | None,
    min_minutes: int,
    max_minutes: int,
    errors: dict[str, str],
) -> int | None:
    if value is None or _text(value) == "":
        duration = span
    else:
        try:
            duration = int(_text(value))
        except ValueError:
            errors["duration_minutes"] = "Duration must be a whole number of minutes."
            return None
    if duration is None:
        return None
    if not min_minutes <= duration <= max_minutes:
        errors["duration_minutes"] = f"Duration must be between {min_minutes} and {max_minutes} minutes."
        return None
    if span is not None and duration != span:
        errors["duration_minutes"] = "Duration must match the time between start and end."
        return None
    return duration
