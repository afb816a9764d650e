"""Structured configuration objects for pools and clients."""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Self

from cloudlease.constants import (
    DEFAULT_ACQUISITION_TIMEOUT,
    DEFAULT_KEEPALIVE_INTERVAL,
    DEFAULT_KEEPALIVE_THRESHOLD,
    DEFAULT_MAX_SESSION_RETRIES,
    DEFAULT_POOL_MAX_SIZE,
    DEFAULT_POOL_MIN_SIZE,
    DEFAULT_SHUTDOWN_TIMEOUT,
)
from cloudlease.exceptions import ConfigurationError
from cloudlease.types import Timeout

__all__: list[str] = ["ClientConfig", "PoolConfig"]

_POOL_ALIASES: dict[str, str] = {"min": "min_size", "max": "max_size", "keepalive": "keepalive_interval"}


@dataclass(kw_only=True)
class PoolConfig:
    """Configuration for a session pool."""

    min_size: int = DEFAULT_POOL_MIN_SIZE
    max_size: int = DEFAULT_POOL_MAX_SIZE
    keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL
    keepalive_threshold: float = DEFAULT_KEEPALIVE_THRESHOLD
    acquisition_timeout: Timeout = DEFAULT_ACQUISITION_TIMEOUT
    shutdown_timeout: Timeout = DEFAULT_SHUTDOWN_TIMEOUT

    def __post_init__(self) -> None:
        """Validate the configuration after initialization."""
        _validate_non_negative_int(key="min_size", value=self.min_size)
        _validate_positive_int(key="max_size", value=self.max_size)
        if self.min_size > self.max_size:
            raise ConfigurationError(
                f"min_size ({self.min_size}) cannot exceed max_size ({self.max_size})", config_key="min_size"
            )
        _validate_timeout(key="keepalive_interval", value=self.keepalive_interval, allow_none=False)
        _validate_timeout(key="keepalive_threshold", value=self.keepalive_threshold, allow_none=False)
        _validate_timeout(key="acquisition_timeout", value=self.acquisition_timeout)
        _validate_timeout(key="shutdown_timeout", value=self.shutdown_timeout)

    @classmethod
    def from_dict(cls, *, config_dict: dict[str, Any]) -> Self:
        """Create a config from a dictionary, accepting short option names."""
        normalized = {_POOL_ALIASES.get(key, key): value for key, value in config_dict.items()}
        valid_keys = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in normalized.items() if key in valid_keys})

    def copy(self) -> Self:
        """Return a deep copy of the configuration."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert the configuration to a dictionary."""
        return asdict(self)

    def update(self, **kwargs: Any) -> Self:
        """Return a new config with the given values updated."""
        return _updated(self, kwargs)


@dataclass(kw_only=True)
class ClientConfig:
    """Configuration for a transactional client."""

    pool: PoolConfig = field(default_factory=PoolConfig)
    max_session_retries: int = DEFAULT_MAX_SESSION_RETRIES
    emulator_host: str | None = None

    def __post_init__(self) -> None:
        """Validate the configuration after initialization."""
        if isinstance(self.pool, dict):
            self.pool = PoolConfig.from_dict(config_dict=self.pool)
        if not isinstance(self.pool, PoolConfig):
            raise ConfigurationError("pool must be a PoolConfig or a dict", config_key="pool")
        _validate_non_negative_int(key="max_session_retries", value=self.max_session_retries)
        if self.emulator_host is not None and not self.emulator_host:
            raise ConfigurationError("emulator_host cannot be empty", config_key="emulator_host")

    @classmethod
    def from_dict(cls, *, config_dict: dict[str, Any]) -> Self:
        """Create a config from a dictionary, ignoring unknown keys."""
        valid_keys = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in config_dict.items() if key in valid_keys})

    def copy(self) -> Self:
        """Return a deep copy of the configuration."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert the configuration to a dictionary."""
        return asdict(self)

    def update(self, **kwargs: Any) -> Self:
        """Return a new config with the given values updated."""
        return _updated(self, kwargs)


def _updated(config: Any, changes: dict[str, Any]) -> Any:
    """Apply changes to a copy of a config, re-running validation."""
    valid_keys = {f.name for f in fields(config)}
    for key in changes:
        if key not in valid_keys:
            raise ConfigurationError(f"Unknown configuration key: '{key}'", config_key=key)

    data = {f.name: copy.deepcopy(getattr(config, f.name)) for f in fields(config)}
    data.update(changes)
    return type(config)(**data)


def _validate_non_negative_int(*, key: str, value: Any) -> None:
    """Ensure a value is an integer greater than or equal to zero."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{key} must be an integer", config_key=key)
    if value < 0:
        raise ConfigurationError(f"{key} must be non-negative", config_key=key)


def _validate_positive_int(*, key: str, value: Any) -> None:
    """Ensure a value is an integer greater than zero."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{key} must be an integer", config_key=key)
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive", config_key=key)


def _validate_timeout(*, key: str, value: Any, allow_none: bool = True) -> None:
    """Ensure a timeout is a positive number, or None where allowed."""
    if value is None:
        if allow_none:
            return
        raise ConfigurationError(f"{key}: Timeout cannot be None", config_key=key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{key}: Timeout must be a number", config_key=key)
    if value <= 0:
        raise ConfigurationError(f"{key}: Timeout must be positive", config_key=key)
