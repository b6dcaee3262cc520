"""Durable client-side event queue.

Events are buffered in memory, mirrored to the environment's local store on
every mutation, and delivered to the ingestion endpoint in FIFO batches.
Failed batches stay queued and are retried with exponential backoff, so
events survive restarts and offline periods (at-least-once, best effort).

Nothing here raises to the caller: telemetry must never break the host.
"""

import asyncio
import json
from dataclasses import fields
from typing import Any, Mapping

from ..config import QueueConfig
from ..logging_config import get_logger
from ..models import AppEvent, EmitOptions, FlushState, new_event_id, now_iso
from .environment import ClientEnvironment
from .transport import HttpTransport, IEventTransport

logger = get_logger(__name__)


def _is_sendable(record: dict[str, Any]) -> bool:
    """Strict JSON only: NaN and Infinity are rejected by the HTTP encoder."""
    try:
        json.dumps(record, allow_nan=False)
    except (TypeError, ValueError, RecursionError):
        return False
    return True


def _coerce_options(options: Any) -> EmitOptions:
    if isinstance(options, EmitOptions):
        return options
    if isinstance(options, Mapping):
        known = {f.name for f in fields(EmitOptions)}
        return EmitOptions(**{k: v for k, v in options.items() if k in known})
    return EmitOptions()


class EventQueue:
    """Buffers, persists and flushes telemetry events."""

    def __init__(
        self,
        environment: ClientEnvironment | None = None,
        transport: IEventTransport | None = None,
        config: QueueConfig | None = None,
    ):
        self._env = environment
        self._transport: IEventTransport = (
            transport if transport is not None else HttpTransport()
        )
        self._config = config or QueueConfig()

        self._queue: list[dict[str, Any]] = []
        self._base_context: dict[str, Any] = {}
        self._session_id: str | None = None
        self._flush_timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._flushing = False
        self._initialized = False
        self._backoff_ms = self._config.base_backoff_ms
        self._state = FlushState.IDLE

    # Read-only views

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    @property
    def backoff_ms(self) -> int:
        return self._backoff_ms

    @property
    def state(self) -> FlushState:
        return self._state

    @property
    def is_flushing(self) -> bool:
        return self._flushing

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def base_context(self) -> dict[str, Any]:
        return dict(self._base_context)

    @property
    def config(self) -> QueueConfig:
        return self._config

    def snapshot(self) -> list[dict[str, Any]]:
        """Copy of the pending events, oldest first."""
        return [dict(event) for event in self._queue]

    # Public API

    def init(self) -> None:
        """Load persisted events, attach lifecycle listeners, schedule a flush.

        Idempotent. Without an environment this only marks the queue as
        initialised.
        """
        if self._initialized:
            return
        self._initialized = True

        if self._env is None:
            return

        self._queue = self._load(self._env)
        self._env.add_listener("online", self._handle_online)
        self._env.add_listener("visibilitychange", self._handle_visibility)

        logger.debug("Event queue initialized with %d pending events", len(self._queue))
        self._schedule_flush(self._config.initial_flush_ms)

    def set_base_context(self, context: Mapping[str, Any] | None) -> None:
        """Shallow-merge into the context attached to future events."""
        if isinstance(context, Mapping):
            self._base_context = {**self._base_context, **context}

    def set_session_id(self, session_id: str | None) -> None:
        """Session id for future events that do not override it."""
        self._session_id = session_id

    def emit(
        self,
        event_type: str,
        payload: Mapping[str, Any] | None = None,
        options: EmitOptions | None = None,
    ) -> None:
        """Record an event. Fire-and-forget; invalid input is ignored."""
        if self._env is None:
            return
        if not event_type or not isinstance(event_type, str):
            return
        self.init()

        options = _coerce_options(options)
        event_id = new_event_id()
        event = AppEvent(
            event_id=event_id,
            event_type=event_type,
            ts=now_iso(),
            source="client",
            session_id=(
                options.session_id
                if options.session_id is not None
                else self._session_id
            ),
            correlation_id=options.correlation_id,
            idempotency_key=(
                options.idempotency_key
                if isinstance(options.idempotency_key, str) and options.idempotency_key
                else event_id
            )[: self._config.max_idempotency_key],
            schema_version=(
                options.schema_version if options.schema_version is not None else 1
            ),
            privacy_level=options.privacy_level or "standard",
            payload=dict(payload) if isinstance(payload, Mapping) else {},
            context={
                **self._base_context,
                **(options.context if isinstance(options.context, Mapping) else {}),
            },
        )

        # Detaches the record from caller-owned mappings and rejects
        # anything that could not be persisted or sent.
        try:
            record = json.loads(json.dumps(event.to_dict(), allow_nan=False))
        except (TypeError, ValueError, RecursionError) as e:
            logger.debug("Dropping unserializable event %s: %s", event_type, e)
            return

        self._queue.append(record)
        if len(self._queue) > self._config.max_queue:
            del self._queue[: len(self._queue) - self._config.max_queue]

        self._persist()
        self._schedule_flush(self._config.debounce_ms)

    def flush_soon(self) -> None:
        """Flush as soon as the event loop gets to it."""
        self.init()
        self._schedule_flush(0)

    async def flush(self) -> None:
        """Send queued events in batches until empty or a batch fails."""
        if self._env is None:
            return
        if self._flushing:
            return
        if not self._env.online:
            return
        if not self._queue:
            return

        self._flushing = True
        self._state = FlushState.FLUSHING
        failed = False
        try:
            while self._queue:
                batch = self._queue[: self._config.flush_batch]

                if not await self._send(batch):
                    failed = True
                    self._backoff_ms = min(
                        self._config.max_backoff_ms,
                        int(round(self._backoff_ms * self._config.backoff_factor)),
                    )
                    logger.debug(
                        "Event batch failed, retrying in %d ms",
                        self._backoff_ms,
                        extra={"context": {"pending": len(self._queue)}},
                    )
                    self._schedule_flush(self._backoff_ms, FlushState.BACKING_OFF)
                    return

                # By identity: emit() may have evicted from the front meanwhile.
                sent = {id(event) for event in batch}
                self._queue = [event for event in self._queue if id(event) not in sent]
                self._persist()
                self._backoff_ms = self._config.base_backoff_ms
        finally:
            self._flushing = False
            if self._flush_timer is not None:
                self._state = FlushState.BACKING_OFF if failed else FlushState.DEBOUNCED
            else:
                self._state = FlushState.IDLE

    async def close(self, flush_pending: bool = False) -> None:
        """Detach from the environment and release the transport.

        With ``flush_pending`` one last delivery attempt is made first;
        anything still queued stays in the local store for the next run.
        """
        if flush_pending:
            await self.flush()

        self._cancel_timer()
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

        if self._env is not None:
            self._env.remove_listener("online", self._handle_online)
            self._env.remove_listener("visibilitychange", self._handle_visibility)

        try:
            await self._transport.close()
        except Exception as e:
            logger.debug("Transport close failed: %s", e)

        self._initialized = False
        self._state = FlushState.IDLE

    # Internals

    def _load(self, env: ClientEnvironment) -> list[dict[str, Any]]:
        try:
            raw = env.storage.get_item(self._config.storage_key)
        except (OSError, ValueError) as e:
            logger.debug("Could not read persisted events: %s", e)
            return []
        if not raw:
            return []

        try:
            existing = json.loads(raw)
        except (ValueError, RecursionError):
            logger.debug("Discarding corrupted persisted events")
            return []
        if not isinstance(existing, list):
            return []

        records: list[dict[str, Any]] = []
        seen_ids: set[str] = set()
        for item in existing:
            if not isinstance(item, dict) or not _is_sendable(item):
                continue
            event_id = item.get("event_id")
            if isinstance(event_id, str):
                if event_id in seen_ids:
                    continue
                seen_ids.add(event_id)
            records.append(item)
        return records[-self._config.max_queue :]

    def _persist(self) -> None:
        if self._env is None:
            return
        try:
            self._env.storage.set_item(
                self._config.storage_key,
                json.dumps(self._queue[-self._config.max_queue :], allow_nan=False),
            )
        except (OSError, TypeError, ValueError) as e:
            logger.debug("Could not persist events: %s", e)

    async def _send(self, batch: list[dict[str, Any]]) -> bool:
        try:
            return await self._transport.send(batch)
        except Exception as e:
            logger.debug("Transport error: %s", e)
            return False

    def _schedule_flush(
        self, delay_ms: int, state: FlushState = FlushState.DEBOUNCED
    ) -> None:
        if self._env is None:
            return
        self._cancel_timer()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; flush deferred")
            return

        self._flush_timer = loop.call_later(
            max(0, delay_ms) / 1000, self._on_flush_timer
        )
        if not self._flushing:
            self._state = state

    def _cancel_timer(self) -> None:
        if self._flush_timer is not None:
            self._flush_timer.cancel()
            self._flush_timer = None

    def _on_flush_timer(self) -> None:
        self._flush_timer = None
        if not self._flushing:
            self._state = FlushState.IDLE
        task = asyncio.get_running_loop().create_task(self.flush())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _handle_online(self) -> None:
        self.flush_soon()

    def _handle_visibility(self) -> None:
        if self._env is not None and self._env.visibility_state == "hidden":
            self._schedule_flush(0)


# importlib.reload() re-executes this module in the same namespace, so an
# existing instance is picked up instead of starting a second writer.
_event_queue: EventQueue | None = globals().get("_event_queue")


def get_event_queue(
    environment: ClientEnvironment | None = None,
    transport: IEventTransport | None = None,
    config: QueueConfig | None = None,
) -> EventQueue:
    """Process-wide queue; arguments only apply to the first call."""
    global _event_queue
    if _event_queue is None:
        _event_queue = EventQueue(
            environment=environment,
            transport=transport,
            config=config,
        )
    return _event_queue


def reset_event_queue() -> None:
    """Forget the process-wide queue (tests)."""
    global _event_queue
    _event_queue = None
