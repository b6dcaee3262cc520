"""Storage module."""

from .storage import EventStore, IEventStore

__all__ = ["EventStore", "IEventStore"]
