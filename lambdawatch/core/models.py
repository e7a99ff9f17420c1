"""Domain models for the lambdawatch telemetry adapter.

All models in this module use only Python standard library types,
keeping the core free of any dependency on the tracking backend.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, TypeAlias

Event: TypeAlias = dict[str, Any]
EventFilter: TypeAlias = Callable[[Event, dict[str, Any]], Event | None]

DEFAULT_TIMEOUT_WARNING_LIMIT_MS = 500
DEFAULT_FLUSH_TIMEOUT_MS = 2000


def pass_through_event(event: Event, hint: dict[str, Any]) -> Event | None:
    """Forward every event unchanged."""
    return event


class Level(Enum):
    """Severity levels understood by the tracking backend."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"

    @classmethod
    def coerce(cls, value: Any) -> "Level":
        """Map a level name (or Level) to a Level, defaulting to INFO."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.INFO


@dataclass(frozen=True)
class TelemetryConfig:
    """Backend configuration resolved from the environment at init time."""

    endpoint_credential: str | None
    environment: str
    sample_rate: float
    debug: bool = False
    timeout_warning_limit_ms: int = DEFAULT_TIMEOUT_WARNING_LIMIT_MS
    flush_timeout_ms: int = DEFAULT_FLUSH_TIMEOUT_MS
    event_filter: EventFilter = field(default=pass_through_event, compare=False)

    def __post_init__(self) -> None:
        """Validate config invariants on creation."""
        if not 0.0 <= self.sample_rate <= 1.0:
            raise ValueError(
                f"sample_rate must be between 0 and 1, got {self.sample_rate}"
            )
        if self.timeout_warning_limit_ms <= 0:
            raise ValueError("timeout_warning_limit_ms must be positive")
        if self.flush_timeout_ms <= 0:
            raise ValueError("flush_timeout_ms must be positive")

    @property
    def has_credential(self) -> bool:
        """True when a non-blank endpoint credential is configured."""
        return bool(self.endpoint_credential and self.endpoint_credential.strip())

    @property
    def wrap_options(self) -> "WrapOptions":
        return WrapOptions(
            timeout_warning_limit_ms=self.timeout_warning_limit_ms,
            flush_timeout_ms=self.flush_timeout_ms,
        )


@dataclass(frozen=True)
class WrapOptions:
    """Per-invocation limits applied by the handler wrapper."""

    timeout_warning_limit_ms: int = DEFAULT_TIMEOUT_WARNING_LIMIT_MS
    flush_timeout_ms: int = DEFAULT_FLUSH_TIMEOUT_MS

    @property
    def flush_timeout_seconds(self) -> float:
        return self.flush_timeout_ms / 1000.0


def _as_mapping(value: Any) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    return {}


@dataclass(frozen=True)
class ScopeContext:
    """Tags, extra data and user identity attached to a single capture.

    Exists only for the duration of one capture call; never persisted.
    """

    tags: Mapping[str, str] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)
    user: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        """Freeze the sub-mappings."""
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))
        if self.user is not None:
            object.__setattr__(self, "user", MappingProxyType(dict(self.user)))

    @classmethod
    def coerce(cls, value: Any) -> "ScopeContext":
        """Build a ScopeContext from whatever the caller passed.

        Accepts None, a ScopeContext, or a mapping with optional
        ``tags``, ``extra`` and ``user`` keys. Anything malformed is
        dropped rather than rejected.
        """
        if isinstance(value, cls):
            return value
        source = _as_mapping(value)
        tags = {
            str(key): str(tag_value)
            for key, tag_value in _as_mapping(source.get("tags")).items()
        }
        extra = {str(key): item for key, item in _as_mapping(source.get("extra")).items()}
        user = source.get("user")
        return cls(
            tags=tags,
            extra=extra,
            user=dict(user) if isinstance(user, Mapping) and user else None,
        )

    @property
    def is_empty(self) -> bool:
        return not self.tags and not self.extra and not self.user


@dataclass(frozen=True)
class Breadcrumb:
    """One entry in the backend's ambient breadcrumb trail."""

    message: str
    category: str = "default"
    level: Level = Level.INFO
    data: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Render in the backend's breadcrumb shape."""
        return {
            "message": self.message,
            "category": self.category,
            "level": self.level.value,
            "data": dict(self.data),
            "timestamp": self.timestamp,
        }
