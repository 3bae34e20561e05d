"""Filesystem path utilities for the support hours tracker."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

APP_NAME = "support-hours"
DATA_DIR_ENV = "SUPPORT_HOURS_DATA_DIR"
SESSIONS_FILENAME = "sessions.jsonl"
PROPERTIES_FILENAME = "properties.json"
RESIDENTS_FILENAME = "residents.json"
WORKERS_FILENAME = "support_workers.json"
SETTINGS_FILENAME = "settings.json"
LOG_FILENAME = "support-hours.log"
EXPORTS_DIRNAME = "exports"

_DATA_DIR_OVERRIDE: Path | None = None


def _user_data_root() -> Path:
    """Return the per-user application data root for the current platform."""
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata)
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".local" / "share"


def default_app_data_dir() -> Path:
    env_override = os.environ.get(DATA_DIR_ENV)
    if env_override:
        return Path(env_override).expanduser()
    return _user_data_root() / APP_NAME


def set_app_data_directory(path: Path | str | None) -> Path:
    global _DATA_DIR_OVERRIDE
    _DATA_DIR_OVERRIDE = Path(path).expanduser() if path else None
    app_data_dir.cache_clear()
    return app_data_dir()


def reset_app_data_directory() -> Path:
    return set_app_data_directory(None)


@lru_cache(maxsize=1)
def app_data_dir() -> Path:
    """Return the base application data directory, ensuring it exists."""
    base = _DATA_DIR_OVERRIDE or default_app_data_dir()
    base.mkdir(parents=True, exist_ok=True)
    return base


def sessions_path() -> Path:
    return app_data_dir() / SESSIONS_FILENAME


def properties_path() -> Path:
    return app_data_dir() / PROPERTIES_FILENAME


def residents_path() -> Path:
    return app_data_dir() / RESIDENTS_FILENAME


def workers_path() -> Path:
    return app_data_dir() / WORKERS_FILENAME


def settings_path() -> Path:
    return app_data_dir() / SETTINGS_FILENAME


def log_path() -> Path:
    return app_data_dir() / LOG_FILENAME


def exports_dir() -> Path:
    path = app_data_dir() / EXPORTS_DIRNAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def ensure_app_structure() -> None:
    """Proactively create the directory structure the app relies on."""
    app_data_dir()
    exports_dir()
    for json_store in (properties_path(), residents_path(), workers_path()):
        if not json_store.exists():
            json_store.write_text("[]", encoding="utf-8")
    sessions = sessions_path()
    if not sessions.exists():
        sessions.touch()
