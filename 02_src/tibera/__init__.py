"""Tibera Events: durable client telemetry queue and its ingest service."""

from .app import Application, IApplication
from .client import (
    ClientEnvironment,
    EventQueue,
    FileLocalStore,
    HttpTransport,
    IEventTransport,
    ILocalStore,
    MemoryLocalStore,
    get_event_queue,
    reset_event_queue,
)
from .config import QueueConfig
from .models import AppEvent, EmitOptions, FlushState
from .storage import EventStore, IEventStore

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "AppEvent",
    "EmitOptions",
    "FlushState",
    # Client
    "QueueConfig",
    "ClientEnvironment",
    "ILocalStore",
    "MemoryLocalStore",
    "FileLocalStore",
    "IEventTransport",
    "HttpTransport",
    "EventQueue",
    "get_event_queue",
    "reset_event_queue",
    # Storage
    "IEventStore",
    "EventStore",
]
