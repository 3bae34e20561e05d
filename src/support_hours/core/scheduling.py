"""Session create/update/delete orchestration."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Mapping

from .conflicts import check_conflict
from .directory import Directory
from .exceptions import ConflictError, NotFoundError, RepositoryError, SessionLockedError
from .filters import SessionFilter
from .models import Session, SessionStatus
from .repository import DEFAULT_PAGE_SIZE, SessionPage, SessionStore
from .settings import Settings
from .validation import SessionInput, parse_session_input

LOGGER = logging.getLogger("support_hours.sessions")
UPCOMING_DAYS = 7


class SessionService:
    """Applies the scheduling rules before sessions reach the store.

    Each create or update performs one read of the worker's active sessions
    for the day, checks for overlaps, then writes. The store repeats the
    overlap check under its own lock, so a conflict that slips in between the
    read and the write still surfaces as ``ConflictError``.
    """

    def __init__(
        self,
        sessions: SessionStore,
        directory: Directory,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = datetime.now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._sessions = sessions
        self._directory = directory
        self._settings = settings or Settings()
        self._clock = clock
        self._logger = logger or LOGGER

    @property
    def settings(self) -> Settings:
        return self._settings

    # ------------------------------------------------------------------
    # Public API
    def create_session(self, payload: Mapping[str, Any], created_by: str | None = None) -> Session:
        data = self._parse(payload, require_status=False)
        self._ensure_references(data)
        candidate = data.to_session(created_by=created_by)
        self._check_worker_day(candidate)
        self._persist(candidate, lambda: self._sessions.create(candidate), "session_create")
        return candidate

    def update_session(self, session_id: str, payload: Mapping[str, Any]) -> Session:
        current = self.get_session(session_id)
        self._ensure_editable(current)
        data = self._parse(payload, require_status=True)
        self._ensure_references(data)
        candidate = data.apply_to(current)
        self._check_worker_day(candidate)
        self._persist(candidate, lambda: self._sessions.update(session_id, candidate), "session_update")
        return candidate

    def delete_session(self, session_id: str) -> None:
        self.get_session(session_id)
        try:
            removed = self._sessions.delete(session_id)
        except RepositoryError:
            self._logger.exception(
                "Session delete failed", extra={"event": "session_delete_failed", "session_id": session_id}
            )
            raise
        if not removed:
            raise NotFoundError("Session", session_id)
        self._logger.info("Session deleted", extra={"event": "session_delete", "session_id": session_id})

    def get_session(self, session_id: str) -> Session:
        session = self._sessions.find_by_id(session_id)
        if session is None:
            raise NotFoundError("Session", session_id)
        return session

    def sessions_for_date(self, day: date, filters: SessionFilter | None = None) -> list[Session]:
        return self._sessions.find_by_date_range(day, day, filters)

    def todays_sessions(self, filters: SessionFilter | None = None) -> list[Session]:
        return self.sessions_for_date(self._clock().date(), filters)

    def upcoming_sessions(
        self, days: int = UPCOMING_DAYS, filters: SessionFilter | None = None
    ) -> list[Session]:
        """Planned sessions from today through ``days`` days ahead, soonest first."""
        today = self._clock().date()
        sessions = self._sessions.find_by_date_range(today, today + timedelta(days=days), filters)
        return [session for session in sessions if session.status is SessionStatus.PLANNED]

    def list_sessions(
        self,
        filters: SessionFilter | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> SessionPage:
        return self._sessions.list_sessions(filters, page=page, limit=limit)

    def is_locked(self, session: Session) -> bool:
        lock_hours = self._settings.session_edit_lock_hours
        if lock_hours <= 0:
            return False
        return self._clock() >= session.starts_at + timedelta(hours=lock_hours)

    # ------------------------------------------------------------------
    # Internal helpers
    def _parse(self, payload: Mapping[str, Any], *, require_status: bool) -> SessionInput:
        return parse_session_input(
            payload,
            support_types=self._settings.support_types,
            min_minutes=self._settings.min_session_minutes,
            max_minutes=self._settings.max_session_minutes,
            require_status=require_status,
        )

    def _ensure_references(self, data: SessionInput) -> None:
        self._directory.residents.get(data.resident_id)
        self._directory.workers.get(data.support_worker_id)
        self._directory.properties.get(data.property_id)

    def _ensure_editable(self, session: Session) -> None:
        if self.is_locked(session):
            self._logger.info(
                "Session locked for edits",
                extra={"event": "session_locked", "session_id": session.session_id},
            )
            raise SessionLockedError(
                f"Session {session.session_id} started more than "
                f"{self._settings.session_edit_lock_hours} hours ago and can no longer be changed"
            )

    def _check_worker_day(self, candidate: Session) -> None:
        existing = self._sessions.find_active_by_worker_and_date(
            candidate.support_worker_id,
            candidate.session_date,
            excluding_id=candidate.session_id,
        )
        try:
            check_conflict(candidate, existing)
        except ConflictError as exc:
            self._log_conflict(candidate, exc, stage="precheck")
            raise

    def _persist(self, candidate: Session, write: Callable[[], object], event: str) -> None:
        try:
            write()
        except ConflictError as exc:
            self._log_conflict(candidate, exc, stage="store")
            raise
        except RepositoryError:
            self._logger.exception(
                "Session write failed",
                extra={"event": f"{event}_failed", "session_id": candidate.session_id},
            )
            raise
        self._logger.info(
            "Session saved",
            extra={
                "event": event,
                "session_id": candidate.session_id,
                "worker_id": candidate.support_worker_id,
                "resident_id": candidate.resident_id,
                "session_date": candidate.session_date.isoformat(),
                "status": candidate.status.value,
            },
        )

    def _log_conflict(self, candidate: Session, exc: ConflictError, *, stage: str) -> None:
        self._logger.info(
            "Session conflicts with existing booking",
            extra={
                "event": "session_conflict",
                "stage": stage,
                "session_id": candidate.session_id,
                "worker_id": candidate.support_worker_id,
                "conflicting_session_id": exc.conflicting_session_id,
            },
        )
