"""Client-side durable event emission."""

from .environment import ClientEnvironment, VisibilityState
from .local_store import FileLocalStore, ILocalStore, MemoryLocalStore
from .queue import EventQueue, get_event_queue, reset_event_queue
from .transport import HttpTransport, IEventTransport

__all__ = [
    "ClientEnvironment",
    "VisibilityState",
    "ILocalStore",
    "MemoryLocalStore",
    "FileLocalStore",
    "IEventTransport",
    "HttpTransport",
    "EventQueue",
    "get_event_queue",
    "reset_event_queue",
]
