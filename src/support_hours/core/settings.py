"""Settings management for the support hours tracker."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable

from .exceptions import SettingsError
from .models import DEFAULT_SUPPORT_TYPES
from .paths import ensure_app_structure, settings_path

DEFAULT_MIN_SESSION_MINUTES = 15
DEFAULT_MAX_SESSION_MINUTES = 480
DEFAULT_EDIT_LOCK_HOURS = 48
_SUPPORTED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_SUPPORT_TYPE_KEY = re.compile(r"^[a-z][a-z0-9_]*$")


@dataclass(slots=True)
class Settings:
    support_types: list[str] = field(default_factory=lambda: list(DEFAULT_SUPPORT_TYPES))
    min_session_minutes: int = DEFAULT_MIN_SESSION_MINUTES
    max_session_minutes: int = DEFAULT_MAX_SESSION_MINUTES
    session_edit_lock_hours: int = DEFAULT_EDIT_LOCK_HOURS
    lock_timeout_seconds: float = 10.0
    log_level: str = "INFO"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Settings":
        raw_types = payload.get("support_types") or list(DEFAULT_SUPPORT_TYPES)
        if not isinstance(raw_types, list):
            raise SettingsError("support_types must be a list")
        settings = cls(
            support_types=[str(item).strip() for item in raw_types],
            min_session_minutes=int(payload.get("min_session_minutes", DEFAULT_MIN_SESSION_MINUTES)),
            max_session_minutes=int(payload.get("max_session_minutes", DEFAULT_MAX_SESSION_MINUTES)),
            session_edit_lock_hours=int(payload.get("session_edit_lock_hours", DEFAULT_EDIT_LOCK_HOURS) or 0),
            lock_timeout_seconds=float(payload.get("lock_timeout_seconds", 10.0)),
            log_level=str(payload.get("log_level", "INFO")).upper(),
        )
        validate_settings(settings)
        return settings


def validate_settings(settings: Settings) -> None:
    if not settings.support_types:
        raise SettingsError("At least one support type must be enabled")
    seen: set[str] = set()
    for key in settings.support_types:
        if not _SUPPORT_TYPE_KEY.match(key):
            raise SettingsError(f"Invalid support type key: {key!r}")
        if key in seen:
            raise SettingsError(f"Duplicate support type key: {key}")
        seen.add(key)
    if settings.min_session_minutes < 1:
        raise SettingsError("Minimum session length must be at least 1 minute")
    if settings.max_session_minutes < settings.min_session_minutes:
        raise SettingsError("Maximum session length must not be below the minimum")
    if settings.session_edit_lock_hours < 0:
        raise SettingsError("Session edit lock must be zero (disabled) or greater")
    if settings.lock_timeout_seconds <= 0:
        raise SettingsError("Lock timeout must be positive")
    if settings.log_level not in _SUPPORTED_LOG_LEVELS:
        raise SettingsError(f"Unsupported log level: {settings.log_level}")


class SettingsManager:
    def __init__(self, path: Path | None = None, logger: logging.Logger | None = None) -> None:
        if path is None:
            ensure_app_structure()
        self._path = Path(path) if path is not None else settings_path()
        self._logger = logger or logging.getLogger("support_hours.settings")

    def load(self) -> Settings:
        if not self._path.exists():
            self._logger.info(
                "Settings file missing; using defaults",
                extra={"event": "settings_load_default", "path": str(self._path)},
            )
            return Settings()

        try:
            with self._path.open("r", encoding="utf-8") as infile:
                payload = json.load(infile)
        except json.JSONDecodeError as exc:
            self._logger.exception(
                "Invalid JSON in settings file",
                extra={"event": "settings_load_invalid_json"},
            )
            raise SettingsError("Settings file is malformed") from exc
        except Exception as exc:
            self._logger.exception("Unexpected error loading settings")
            raise SettingsError("Unable to load settings") from exc

        if not isinstance(payload, dict):
            raise SettingsError("Settings payload is invalid")
        try:
            settings = Settings.from_dict(payload)
        except SettingsError:
            raise
        except (TypeError, ValueError) as exc:
            self._logger.exception(
                "Settings payload invalid",
                extra={"event": "settings_load_invalid_payload"},
            )
            raise SettingsError("Settings payload is invalid") from exc

        self._logger.info(
            "Settings loaded successfully",
            extra={"event": "settings_loaded", **settings.to_dict()},
        )
        return settings

    def save(self, settings: Settings) -> None:
        self._logger.info("Saving settings", extra={"event": "settings_save", **settings.to_dict()})
        validate_settings(settings)

        temp_path = self._path.with_suffix(".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as outfile:
                json.dump(settings.to_dict(), outfile, indent=2)
                outfile.flush()
                os.fsync(outfile.fileno())
            temp_path.replace(self._path)
        except Exception as exc:
            self._logger.exception("Failed to save settings")
            raise SettingsError("Unable to save settings") from exc

    def update(self, transform: Callable[[Settings], Settings]) -> Settings:
        current = self.load()
        updated = transform(current)
        self.save(updated)
        return updated
