"""Helpers for logging uncaught exceptions across the application."""

from __future__ import annotations

import logging
import sys
import threading
from types import TracebackType
from typing import Optional, Type

_LOGGER = logging.getLogger("support_hours.exceptions")
_INSTALLED = False
_PREVIOUS_SYS_HOOK = None
_PREVIOUS_THREAD_HOOK = None


def _log_exception(exc_type: Type[BaseException], exc_value: BaseException, exc_traceback: Optional[TracebackType]) -> None:
    _LOGGER.critical("Unhandled exception", exc_info=(exc_type, exc_value, exc_traceback))


def install_global_exception_logger() -> None:
    """Route uncaught exceptions from any thread through logging."""

    global _INSTALLED, _PREVIOUS_SYS_HOOK, _PREVIOUS_THREAD_HOOK
    if _INSTALLED:
        return

    _PREVIOUS_SYS_HOOK = sys.excepthook
    _PREVIOUS_THREAD_HOOK = threading.excepthook

    def _handle_exception(exc_type: Type[BaseException], exc_value: BaseException, exc_traceback: Optional[TracebackType]) -> None:
        if issubclass(exc_type, KeyboardInterrupt):  # pragma: no cover - interactive cancellation
            _PREVIOUS_SYS_HOOK(exc_type, exc_value, exc_traceback)
            return
        _log_exception(exc_type, exc_value, exc_traceback)
        _PREVIOUS_SYS_HOOK(exc_type, exc_value, exc_traceback)

    def _handle_thread_exception(args: threading.ExceptHookArgs) -> None:  # pragma: no cover - trivial wrapper
        if not issubclass(args.exc_type, KeyboardInterrupt):
            _log_exception(args.exc_type, args.exc_value, args.exc_traceback)
        _PREVIOUS_THREAD_HOOK(args)

    sys.excepthook = _handle_exception
    threading.excepthook = _handle_thread_exception

    _INSTALLED = True
