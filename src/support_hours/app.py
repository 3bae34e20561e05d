"""Command line entry point for Support Hours."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .cli.main import app
from .core.exception_logging import install_global_exception_logger

LOGGER = logging.getLogger("support_hours.main")


def main(argv: Sequence[str] | None = None) -> int:
    args = list(argv) if argv is not None else None
    install_global_exception_logger()
    LOGGER.debug("Starting Support Hours", extra={"event": "app_start"})
    try:
        app(args=args, prog_name="support-hours")
    except SystemExit as exc:
        exit_code = exc.code if isinstance(exc.code, int) else (0 if exc.code is None else 1)
    except Exception:
        LOGGER.exception("Fatal error during command execution", extra={"event": "app_crash"})
        return 1
    else:
        exit_code = 0
    LOGGER.debug("Support Hours exited", extra={"event": "app_exit", "code": exit_code})
    return exit_code
