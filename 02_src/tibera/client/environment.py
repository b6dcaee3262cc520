"""Host runtime surface the event queue runs against."""

from typing import Callable, Literal

from ..logging_config import get_logger
from .local_store import ILocalStore, MemoryLocalStore

logger = get_logger(__name__)

VisibilityState = Literal["visible", "hidden"]
Listener = Callable[[], None]

ENVIRONMENT_EVENTS = ("online", "offline", "visibilitychange")


class ClientEnvironment:
    """Durable storage, connectivity and visibility of the host process.

    The host flips ``set_online`` / ``set_visibility`` as its own lifecycle
    changes (network probe, app backgrounded, shutdown requested); listeners
    registered by the queue react to those transitions.
    """

    def __init__(
        self,
        storage: ILocalStore | None = None,
        online: bool = True,
        visibility_state: VisibilityState = "visible",
    ):
        self.storage: ILocalStore = storage if storage is not None else MemoryLocalStore()
        self._online = online
        self._visibility_state: VisibilityState = visibility_state
        self._listeners: dict[str, list[Listener]] = {
            name: [] for name in ENVIRONMENT_EVENTS
        }

    @property
    def online(self) -> bool:
        return self._online

    @property
    def visibility_state(self) -> VisibilityState:
        return self._visibility_state

    def add_listener(self, event: str, listener: Listener) -> None:
        """Register a listener; adding the same one twice is a no-op."""
        if event not in self._listeners:
            raise ValueError(f"Unknown environment event: {event}")
        if listener not in self._listeners[event]:
            self._listeners[event].append(listener)

    def remove_listener(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def set_online(self, online: bool) -> None:
        """Update connectivity, notifying on transitions only."""
        if online == self._online:
            return
        self._online = online
        self._dispatch("online" if online else "offline")

    def set_visibility(self, state: VisibilityState) -> None:
        """Update visibility, notifying on transitions only."""
        if state == self._visibility_state:
            return
        self._visibility_state = state
        self._dispatch("visibilitychange")

    def _dispatch(self, event: str) -> None:
        for listener in list(self._listeners[event]):
            try:
                listener()
            except Exception as e:
                logger.error("Error in %s listener: %s", event, e)
