"""Core data models for Tibera Events."""

from .events import (
    PRIVACY_LEVELS,
    AppEvent,
    EmitOptions,
    EventSource,
    PrivacyLevel,
    new_event_id,
    now_iso,
)
from .queue_state import FlushState

__all__ = [
    # Events
    "AppEvent",
    "EmitOptions",
    "EventSource",
    "PrivacyLevel",
    "PRIVACY_LEVELS",
    "new_event_id",
    "now_iso",
    # Queue
    "FlushState",
]
