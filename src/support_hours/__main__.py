"""Executable entry point for ``python -m support_hours``."""

from __future__ import annotations

import sys

from support_hours.app import main


if __name__ == "__main__":
    sys.exit(main())
