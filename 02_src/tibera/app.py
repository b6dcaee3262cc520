"""Ingest service bootstrap and lifecycle management."""

import os
from typing import Protocol

from .config import resolve_db_path
from .logging_config import get_logger
from .storage import EventStore, IEventStore

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...

    @property
    def store(self) -> IEventStore:
        """Event store of a started application."""
        ...


class Application:
    """Ingest service bootstrap."""

    def __init__(self, db_path: str | None = None):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)

        # Initialized in start()
        self._store: IEventStore | None = None

    @property
    def is_started(self) -> bool:
        return self._store is not None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        if self._store is not None:
            return
        logger.info("Starting ingest service")

        store = EventStore(self._db_path)
        await store.init()
        self._store = store
        logger.info("Event store initialized")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._store:
            await self._store.close()
            self._store = None
            logger.info("Event store closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._store:
            await self._store.clear()
            logger.info("Event store cleared")

    @property
    def store(self) -> IEventStore:
        """Get event store instance."""
        if not self._store:
            raise RuntimeError("Application not started")
        return self._store
