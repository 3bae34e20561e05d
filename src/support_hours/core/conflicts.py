"""Overlap detection between a proposed session and a worker's other sessions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .exceptions import ConflictError, ValidationError
from .models import Session
from .time_segments import TimeInterval


@dataclass(frozen=True, slots=True)
class SessionConflict:
    """An overlap between a requested interval and an existing session."""

    requested: TimeInterval
    conflicting: TimeInterval
    session: Session


def candidate_interval(candidate: Session) -> TimeInterval:
    try:
        return candidate.as_interval()
    except ValueError as exc:
        raise ValidationError({"end_time": "End time must be after start time on the same day."}) from exc


def competing_sessions(candidate: Session, sessions: Iterable[Session]) -> list[Session]:
    """Active sessions for the candidate's worker and date, excluding the candidate itself."""
    return [
        session
        for session in sessions
        if session.session_id != candidate.session_id
        and session.support_worker_id == candidate.support_worker_id
        and session.session_date == candidate.session_date
        and session.is_active
    ]


def compute_conflicts(candidate: Session, existing: Sequence[Session]) -> list[SessionConflict]:
    """Return every overlap, earliest start first."""
    requested = candidate_interval(candidate)
    conflicts: list[SessionConflict] = []
    for session in competing_sessions(candidate, existing):
        session_range = session.as_interval()
        if requested.overlaps(session_range):
            conflicts.append(SessionConflict(requested=requested, conflicting=session_range, session=session))
    conflicts.sort(key=lambda item: (item.conflicting.start, item.conflicting.end, item.session.session_id))
    return conflicts


def check_conflict(candidate: Session, existing: Sequence[Session]) -> None:
    """Raise ``ConflictError`` for the earliest overlapping active session.

    Inactive candidates (cancelled or no-show) never conflict. Sessions that
    merely touch at a boundary do not overlap.
    """
    if not candidate.is_active:
        candidate_interval(candidate)
        return
    conflicts = compute_conflicts(candidate, existing)
    if conflicts:
        raise ConflictError(conflicts[0].session)
