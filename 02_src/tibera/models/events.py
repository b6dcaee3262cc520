"""Telemetry event data models."""

import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Literal

EventSource = Literal["client", "server", "db"]
PrivacyLevel = Literal["standard", "sensitive", "redacted"]

PRIVACY_LEVELS: tuple[str, ...] = ("standard", "sensitive", "redacted")


def new_event_id() -> str:
    """Generate a globally unique event id."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@dataclass
class AppEvent:
    """A single telemetry record, as queued, persisted and sent."""

    event_id: str
    event_type: str  # dotted, e.g. "assistant.v3.error"
    ts: str  # ISO-8601
    source: EventSource = "client"
    session_id: str | None = None
    correlation_id: str | None = None
    idempotency_key: str | None = None  # server dedup key
    schema_version: int = 1
    privacy_level: PrivacyLevel = "standard"
    payload: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Field mapping (payload and context are not copied)."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class EmitOptions:
    """Per-call overrides for emit(); None means use the default."""

    session_id: str | None = None
    correlation_id: str | None = None
    idempotency_key: str | None = None
    privacy_level: PrivacyLevel | None = None
    schema_version: int | None = None
    context: dict[str, Any] | None = None
