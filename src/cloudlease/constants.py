"""Library-wide constants and default values."""

from __future__ import annotations

from enum import IntEnum

__all__: list[str] = [
    "DEFAULT_ACQUISITION_TIMEOUT",
    "DEFAULT_KEEPALIVE_INTERVAL",
    "DEFAULT_KEEPALIVE_THRESHOLD",
    "DEFAULT_MAX_SESSION_RETRIES",
    "DEFAULT_METRICS_MAXLEN",
    "DEFAULT_MONITORING_INTERVAL",
    "DEFAULT_POOL_MAX_SIZE",
    "DEFAULT_POOL_MIN_SIZE",
    "DEFAULT_PULL_MAX_MESSAGES",
    "DEFAULT_SHUTDOWN_TIMEOUT",
    "FATAL_ERROR_CODES",
    "PUBSUB_EMULATOR_ENV",
    "PROJECT_ENV",
    "RESOURCE_PREFIX_HEADER",
    "RETRIABLE_ERROR_CODES",
    "SESSION_NOT_FOUND_MESSAGE",
    "SPANNER_EMULATOR_ENV",
    "ErrorCodes",
]


class ErrorCodes(IntEnum):
    """Canonical gRPC status codes reported by the remote services."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


RETRIABLE_ERROR_CODES: frozenset[ErrorCodes] = frozenset(
    {ErrorCodes.ABORTED, ErrorCodes.DEADLINE_EXCEEDED, ErrorCodes.RESOURCE_EXHAUSTED, ErrorCodes.UNAVAILABLE}
)
FATAL_ERROR_CODES: frozenset[ErrorCodes] = frozenset({ErrorCodes.DATA_LOSS, ErrorCodes.INTERNAL, ErrorCodes.UNKNOWN})

DEFAULT_POOL_MIN_SIZE = 10
DEFAULT_POOL_MAX_SIZE = 100
DEFAULT_KEEPALIVE_INTERVAL = 300.0
DEFAULT_KEEPALIVE_THRESHOLD = 1500.0
DEFAULT_ACQUISITION_TIMEOUT = 30.0
DEFAULT_SHUTDOWN_TIMEOUT = 30.0
DEFAULT_MAX_SESSION_RETRIES = 3
DEFAULT_MONITORING_INTERVAL = 15.0
DEFAULT_METRICS_MAXLEN = 120
DEFAULT_PULL_MAX_MESSAGES = 100

RESOURCE_PREFIX_HEADER = "google-cloud-resource-prefix"
SESSION_NOT_FOUND_MESSAGE = "Session not found"

PROJECT_ENV = "GOOGLE_CLOUD_PROJECT"
PUBSUB_EMULATOR_ENV = "PUBSUB_EMULATOR_HOST"
SPANNER_EMULATOR_ENV = "SPANNER_EMULATOR_HOST"
