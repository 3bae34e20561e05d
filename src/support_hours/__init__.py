"""support_hours package initialization."""

from ._build_info import APP_VERSION

__all__ = []

# The release pipeline rewrites ``APP_VERSION`` so installed builds report the
# correct version number.
__version__ = APP_VERSION
