"""Persistence layer for support sessions."""

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import IO, Iterable, Optional, Protocol, Sequence

import portalocker

from .conflicts import check_conflict, competing_sessions
from .exceptions import ConflictError, NotFoundError, RepositoryError, ValidationError
from .filters import SessionFilter
from .models import Session
from .paths import sessions_path

DEFAULT_PAGE_SIZE = 50


class SessionStore(Protocol):
    """Storage contract the scheduling engine depends on."""

    def find_active_by_worker_and_date(
        self, worker_id: str, session_date: date, excluding_id: str | None = None
    ) -> list[Session]: ...

    def create(self, session: Session) -> str: ...

    def update(self, session_id: str, session: Session) -> None: ...

    def delete(self, session_id: str) -> bool: ...

    def find_by_id(self, session_id: str) -> Optional[Session]: ...

    def find_by_date_range(
        self, start_date: date, end_date: date, filters: SessionFilter | None = None
    ) -> list[Session]: ...

    def list_sessions(
        self, filters: SessionFilter | None = None, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> SessionPage: ...


@dataclass(slots=True)
class SessionPage:
    sessions: list[Session]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


class SessionsRepository:
    """JSON-lines session store guarded by an inter-process file lock.

    ``create`` and ``update`` re-check worker overlaps while holding the
    exclusive lock, so two writers racing on the same worker and date cannot
    both persist overlapping sessions.
    """

    def __init__(
        self,
        path: Path | None = None,
        logger: logging.Logger | None = None,
        lock_timeout: float = 10.0,
    ) -> None:
        self._path = Path(path) if path is not None else sessions_path()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock_timeout = lock_timeout
        self._logger = logger or logging.getLogger("support_hours.repository")
        self._ensure_file()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Queries
    def get_all_sessions(self) -> list[Session]:
        self._logger.debug("Loading all sessions", extra={"event": "sessions_load_all"})
        return self._deserialize_sessions(self._read_lines())

    def find_by_id(self, session_id: str) -> Optional[Session]:
        for session in self.get_all_sessions():
            if session.session_id == session_id:
                return session
        return None

    def find_active_by_worker_and_date(
        self, worker_id: str, session_date: date, excluding_id: str | None = None
    ) -> list[Session]:
        self._logger.debug(
            "Loading active sessions for worker",
            extra={
                "event": "sessions_load_worker_day",
                "worker_id": worker_id,
                "session_date": session_date.isoformat(),
                "excluding_id": excluding_id,
            },
        )
        sessions = [
            session
            for session in self.get_all_sessions()
            if session.support_worker_id == worker_id
            and session.session_date == session_date
            and session.is_active
            and session.session_id != excluding_id
        ]
        return _chronological(sessions)

    def find_by_date_range(
        self, start_date: date, end_date: date, filters: SessionFilter | None = None
    ) -> list[Session]:
        if end_date < start_date:
            raise ValueError("Start date must not be after end date")
        self._logger.debug(
            "Loading sessions by range",
            extra={
                "event": "sessions_load_range",
                "start": start_date.isoformat(),
                "end": end_date.isoformat(),
                "filters": filters.describe() if filters else "(all)",
            },
        )
        sessions = [
            session
            for session in self.get_all_sessions()
            if start_date <= session.session_date <= end_date
            and (filters is None or filters.matches(session))
        ]
        return _chronological(sessions)

    def list_sessions(
        self,
        filters: SessionFilter | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> SessionPage:
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive")
        matching = [
            session
            for session in self.get_all_sessions()
            if filters is None or filters.matches(session)
        ]
        matching.sort(key=lambda s: (s.session_date, s.start_time, s.session_id), reverse=True)
        offset = (page - 1) * limit
        return SessionPage(sessions=matching[offset:offset + limit], total=len(matching), page=page, limit=limit)

    # ------------------------------------------------------------------
    # Mutations
    def create(self, session: Session) -> str:
        self._logger.info(
            "Adding session",
            extra={
                "event": "sessions_add_one",
                "session_id": session.session_id,
                "worker_id": session.support_worker_id,
                "session_date": session.session_date.isoformat(),
            },
        )
        serialized = json.dumps(session.to_json_dict(), separators=(",", ":"))
        try:
            with self._exclusive("a+") as locked_file:
                locked_file.seek(0)
                current = self._deserialize_sessions(_read_handle(locked_file))
                if any(existing.session_id == session.session_id for existing in current):
                    raise RepositoryError(f"Session id already exists: {session.session_id}")
                self._enforce_exclusion(session, current)
                locked_file.seek(0, os.SEEK_END)
                start_position = locked_file.tell()
                try:
                    locked_file.write(serialized)
                    locked_file.write("\n")
                    locked_file.flush()
                    os.fsync(locked_file.fileno())
                except Exception as exc:  # pragma: no cover - filesystem dependent
                    locked_file.seek(start_position)
                    locked_file.truncate()
                    locked_file.flush()
                    os.fsync(locked_file.fileno())
                    self._logger.exception("Failed to write session; truncated partial data")
                    raise RepositoryError("Unable to persist session") from exc
        except (ConflictError, RepositoryError, ValidationError):
            raise
        except Exception as exc:
            self._logger.exception("Unexpected error while writing session")
            raise RepositoryError("Unable to persist session") from exc
        return session.session_id

    def update(self, session_id: str, session: Session) -> None:
        if session.session_id != session_id:
            raise ValueError("Session id does not match the record being updated")
        self._logger.info(
            "Updating session",
            extra={"event": "sessions_update_one", "session_id": session_id},
        )
        try:
            with self._exclusive("r+") as locked_file:
                current = self._deserialize_sessions(_read_handle(locked_file))
                index = _index_of(current, session_id)
                if index is None:
                    raise NotFoundError("Session", session_id)
                self._enforce_exclusion(session, current)
                current[index] = session
                _rewrite(locked_file, current)
        except (ConflictError, NotFoundError, RepositoryError, ValidationError):
            raise
        except Exception as exc:
            self._logger.exception(
                "Failed to update session",
                extra={"event": "sessions_update_failed", "session_id": session_id},
            )
            raise RepositoryError("Unable to update session") from exc

    def delete(self, session_id: str) -> bool:
        self._logger.info(
            "Deleting session",
            extra={"event": "sessions_delete_one", "session_id": session_id},
        )
        try:
            with self._exclusive("r+") as locked_file:
                current = self._deserialize_sessions(_read_handle(locked_file))
                remaining = [session for session in current if session.session_id != session_id]
                if len(remaining) == len(current):
                    return False
                _rewrite(locked_file, remaining)
        except Exception as exc:
            self._logger.exception(
                "Failed to delete session",
                extra={"event": "sessions_delete_failed", "session_id": session_id},
            )
            raise RepositoryError("Unable to delete session") from exc
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    def _exclusive(self, mode: str) -> portalocker.Lock:
        return portalocker.Lock(
            self._path,
            mode=mode,
            timeout=self._lock_timeout,
            flags=portalocker.LockFlags.EXCLUSIVE | portalocker.LockFlags.NON_BLOCKING,
            encoding="utf-8",
        )

    def _enforce_exclusion(self, session: Session, current: Sequence[Session]) -> None:
        try:
            check_conflict(session, competing_sessions(session, current))
        except ConflictError as exc:
            self._logger.warning(
                "Store rejected overlapping session",
                extra={
                    "event": "sessions_exclusion_violation",
                    "session_id": session.session_id,
                    "conflicting_session_id": exc.conflicting_session_id,
                },
            )
            raise

    def _ensure_file(self) -> None:
        if not self._path.exists():
            self._logger.debug(
                "Creating sessions file",
                extra={"event": "sessions_file_init", "path": str(self._path)},
            )
            self._path.touch()

    def _read_lines(self) -> list[str]:
        try:
            with portalocker.Lock(
                self._path,
                mode="r",
                timeout=self._lock_timeout,
                flags=portalocker.LockFlags.SHARED | portalocker.LockFlags.NON_BLOCKING,
                encoding="utf-8",
            ) as locked_file:
                return _read_handle(locked_file)
        except FileNotFoundError:
            self._ensure_file()
            return []
        except Exception as exc:
            self._logger.exception("Failed reading sessions file")
            raise RepositoryError("Unable to read sessions") from exc

    def _deserialize_sessions(self, lines: Iterable[str]) -> list[Session]:
        sessions: list[Session] = []
        for index, line in enumerate(lines, start=1):
            try:
                payload = json.loads(line)
                sessions.append(Session.from_json_dict(payload))
            except (ValueError, KeyError, TypeError):
                self._logger.exception(
                    "Skipping malformed session",
                    extra={"event": "sessions_skip_invalid", "line_index": index},
                )
        return sessions


def _read_handle(handle: IO[str]) -> list[str]:
    return [line.rstrip("\n") for line in handle if line.strip()]


def _rewrite(handle: IO[str], sessions: Sequence[Session]) -> None:
    handle.seek(0)
    handle.truncate()
    for session in sessions:
        handle.write(json.dumps(session.to_json_dict(), separators=(",", ":")))
        handle.write("\n")
    handle.flush()
    os.fsync(handle.fileno())


def _index_of(sessions: Sequence[Session], session_id: str) -> int | None:
    for index, session in enumerate(sessions):
        if session.session_id == session_id:
            return index
    return None


def _chronological(sessions: Iterable[Session]) -> list[Session]:
    return sorted(sessions, key=lambda s: (s.session_date, s.start_time, s.end_time, s.session_id))
