"""Custom exception hierarchy for the library."""

from __future__ import annotations

import re
from typing import Any

from google.api_core.exceptions import GoogleAPICallError, GoogleAPIError, RetryError

from cloudlease.constants import FATAL_ERROR_CODES, RETRIABLE_ERROR_CODES, ErrorCodes

__all__: list[str] = [
    "CloudLeaseError",
    "CommitError",
    "ConfigurationError",
    "PoolClosedError",
    "PoolError",
    "PoolExhaustedError",
    "PubsubError",
    "SessionError",
    "SessionInvalidError",
    "error_code_from_api_error",
]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class CloudLeaseError(Exception):
    """Base exception for all library errors."""

    _base_attrs = ("message", "error_code", "details")

    def __init__(self, message: str, *, error_code: int | None = None, details: dict[str, Any] | None = None) -> None:
        """Initialize the error."""
        super().__init__(message)
        self.message = message
        self.error_code = error_code if error_code is not None else ErrorCodes.INTERNAL
        self.details = details or {}

    @property
    def category(self) -> str:
        """Return a snake_case category derived from the class name."""
        name = self.__class__.__name__
        if name.endswith("Error") and name != "Error":
            name = name[: -len("Error")]
        return _CAMEL_BOUNDARY.sub("_", name).lower()

    @property
    def is_fatal(self) -> bool:
        """Return True if the error code signals an unrecoverable condition."""
        return self.error_code in FATAL_ERROR_CODES

    @property
    def is_retriable(self) -> bool:
        """Return True if the operation may succeed when retried."""
        return self.error_code in RETRIABLE_ERROR_CODES

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for serialization."""
        data: dict[str, Any] = {
            "type": self.__class__.__name__,
            "category": self.category,
            "message": self.message,
            "error_code": self.error_code,
            "is_fatal": self.is_fatal,
            "is_retriable": self.is_retriable,
            "details": self.details,
        }
        for key, value in self._custom_attrs().items():
            data[key] = str(value) if isinstance(value, BaseException) else value
        return data

    def _custom_attrs(self) -> dict[str, Any]:
        """Collect subclass-specific attributes that are set."""
        return {
            key: value
            for key, value in vars(self).items()
            if key not in self._base_attrs and not key.startswith("_") and value is not None
        }

    def __repr__(self) -> str:
        """Return a detailed representation including custom attributes."""
        parts = [f"message={self.message!r}", f"error_code={hex(self.error_code)}"]
        if self.details:
            parts.append(f"details={self.details!r}")
        parts.extend(f"{key}={value!r}" for key, value in self._custom_attrs().items())
        return f"{self.__class__.__name__}({', '.join(parts)})"

    def __str__(self) -> str:
        """Return a concise string representation."""
        return f"[{hex(self.error_code)}] {self.message}"


class ConfigurationError(CloudLeaseError):
    """Raised when a configuration value is invalid."""

    def __init__(self, message: str, *, config_key: str | None = None, **kwargs: Any) -> None:
        """Initialize the configuration error."""
        kwargs.setdefault("error_code", ErrorCodes.INVALID_ARGUMENT)
        super().__init__(message, **kwargs)
        self.config_key = config_key


class PoolError(CloudLeaseError):
    """Base class for session pool failures."""

    def __init__(self, message: str, *, pool_size: int | None = None, **kwargs: Any) -> None:
        """Initialize the pool error."""
        super().__init__(message, **kwargs)
        self.pool_size = pool_size


class PoolExhaustedError(PoolError):
    """Raised when no pooled object became available within the acquisition timeout."""

    def __init__(self, message: str, *, timeout: float | None = None, **kwargs: Any) -> None:
        """Initialize the exhaustion error."""
        kwargs.setdefault("error_code", ErrorCodes.RESOURCE_EXHAUSTED)
        super().__init__(message, **kwargs)
        self.timeout = timeout


class PoolClosedError(PoolError):
    """Raised when an operation is attempted on a closed pool."""

    def __init__(self, message: str = "Pool is closed.", **kwargs: Any) -> None:
        """Initialize the closed-pool error."""
        kwargs.setdefault("error_code", ErrorCodes.FAILED_PRECONDITION)
        super().__init__(message, **kwargs)


class SessionError(CloudLeaseError):
    """Base class for session lifecycle failures."""

    def __init__(self, message: str, *, session_name: str | None = None, **kwargs: Any) -> None:
        """Initialize the session error."""
        super().__init__(message, **kwargs)
        self.session_name = session_name

    def __str__(self) -> str:
        """Return a string that includes the session name when known."""
        base = super().__str__()
        return f"{base} (session={self.session_name})" if self.session_name else base


class SessionInvalidError(SessionError):
    """Raised when the server reports that a session no longer exists."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        """Initialize the invalid-session error."""
        kwargs.setdefault("error_code", ErrorCodes.NOT_FOUND)
        super().__init__(message, **kwargs)


class CommitError(CloudLeaseError):
    """Raised when a commit RPC fails with a transport error."""

    def __init__(
        self,
        message: str,
        *,
        session_name: str | None = None,
        original_exception: BaseException | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the commit error."""
        if "error_code" not in kwargs and isinstance(original_exception, GoogleAPIError):
            kwargs["error_code"] = error_code_from_api_error(original_exception)
        super().__init__(message, **kwargs)
        self.session_name = session_name
        self.original_exception = original_exception


class PubsubError(CloudLeaseError):
    """Raised when a Pub/Sub RPC fails."""

    def __init__(
        self,
        message: str,
        *,
        resource: str | None = None,
        original_exception: BaseException | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the Pub/Sub error."""
        if "error_code" not in kwargs and isinstance(original_exception, GoogleAPIError):
            kwargs["error_code"] = error_code_from_api_error(original_exception)
        super().__init__(message, **kwargs)
        self.resource = resource
        self.original_exception = original_exception


def error_code_from_api_error(exc: GoogleAPIError) -> ErrorCodes:
    """Map a google-api-core error to its gRPC status code."""
    if isinstance(exc, RetryError):
        return ErrorCodes.DEADLINE_EXCEEDED
    if not isinstance(exc, GoogleAPICallError):
        return ErrorCodes.UNKNOWN
    status = exc.grpc_status_code
    if status is None:
        return ErrorCodes.UNKNOWN
    try:
        return ErrorCodes(status.value[0])
    except ValueError:
        return ErrorCodes.UNKNOWN
