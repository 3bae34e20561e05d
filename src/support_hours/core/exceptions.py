"""Domain-specific exception types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:  # pragma: no cover
    from .models import Session


class SupportHoursError(Exception):
    """Base application error."""


class ValidationError(SupportHoursError):
    """Raised when input is malformed or out of range.

    ``errors`` maps each offending field to a human readable message so callers
    can re-render the form next to the right input.
    """

    def __init__(self, errors: Mapping[str, str] | str, message: str | None = None) -> None:
        if isinstance(errors, str):
            errors = {"__all__": errors}
        self.errors: dict[str, str] = dict(errors)
        super().__init__(message or "; ".join(f"{field}: {text}" for field, text in self.errors.items()))


class ConflictError(SupportHoursError):
    """Raised when a session overlaps another active session for the same worker."""

    def __init__(self, conflicting: "Session") -> None:
        self.conflicting = conflicting
        self.conflicting_session_id = conflicting.session_id
        super().__init__(
            "Support worker is already scheduled at this time "
            f"(session {conflicting.session_id}, {conflicting.session_date.isoformat()} "
            f"{conflicting.start_time.strftime('%H:%M')}-{conflicting.end_time.strftime('%H:%M')})"
        )


class NotFoundError(SupportHoursError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class RepositoryError(SupportHoursError):
    """Raised when the underlying store fails."""


class SessionLockedError(SupportHoursError):
    """Raised when a session is past its edit window."""


class SettingsError(SupportHoursError):
    """Raised when settings cannot be validated or saved."""
