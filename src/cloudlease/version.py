"""Version information for the cloudlease package."""

from __future__ import annotations

__all__: list[str] = [
    "MAJOR",
    "MINOR",
    "PATCH",
    "__author__",
    "__description__",
    "__license__",
    "__url__",
    "__version__",
    "__version_info__",
    "get_version",
    "get_version_info",
    "is_development",
    "is_stable",
]

__version__ = "0.4.0"
__version_info__: tuple[int, int, int] = (0, 4, 0)
__author__ = "cloudlease contributors"
__license__ = "Apache-2.0"
__description__ = "Asyncio clients for Cloud Spanner and Pub/Sub with pooled, kept-alive sessions"
__url__ = "https://github.com/cloudlease/cloudlease"

MAJOR, MINOR, PATCH = __version_info__


def get_version() -> str:
    """Return the package version string."""
    return __version__


def get_version_info() -> tuple[int, int, int]:
    """Return the package version as a tuple."""
    return __version_info__


def is_development() -> bool:
    """Return True if this is an unreleased development version."""
    return (MAJOR, MINOR, PATCH) == (0, 0, 0)


def is_stable() -> bool:
    """Return True if the major version signals a stable API."""
    return MAJOR >= 1
