"""SIM implementation - scripted health-tracking session."""

import asyncio
import random
import uuid
from typing import Protocol

from tibera.client import ClientEnvironment, EventQueue
from tibera.logging_config import get_logger
from tibera.models import EmitOptions

logger = get_logger(__name__)

# (event_type, payload, privacy_level)
SCENARIO: list[tuple[str, dict, str]] = [
    ("meal.saved", {"meal_type": "breakfast", "items": 3, "calories_kcal": 420}, "sensitive"),
    ("supplement.taken", {"supplement": "omega-3", "dose_mg": 1000}, "sensitive"),
    ("sleep.logged", {"hours": 7.5, "quality": 4}, "sensitive"),
    ("assistant.v3.error", {"stage": "plan", "message": "timeout"}, "standard"),
    ("symptom.logged", {"symptom": "headache", "severity": 2}, "sensitive"),
    ("meal.saved", {"meal_type": "dinner", "items": 5, "calories_kcal": 710}, "sensitive"),
]


class ISim(Protocol):
    """Generate client telemetry from a scripted session."""

    async def start(self) -> None:
        """Start the scripted session."""
        ...

    async def stop(self) -> None:
        """Stop the session."""
        ...


class Sim:
    """Drives an EventQueue through one app session, including an offline gap."""

    def __init__(
        self,
        queue: EventQueue,
        environment: ClientEnvironment,
        step_delay: tuple[float, float] = (0.5, 1.5),
    ):
        self._queue = queue
        self._env = environment
        self._step_delay = step_delay
        self._running = False
        self._task: asyncio.Task | None = None
        self.emitted = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scripted session in the background."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Stop the session."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def run(self) -> None:
        """Play the scenario to completion."""
        self._running = True
        correlation_id = str(uuid.uuid4())

        self._queue.init()
        self._queue.set_base_context({"app": "tibera-sim", "screen": "dashboard"})
        self._queue.set_session_id(str(uuid.uuid4()))

        try:
            for i, (event_type, payload, privacy_level) in enumerate(SCENARIO):
                if not self._running:
                    break

                # Middle of the session happens without connectivity.
                if i == len(SCENARIO) // 2:
                    logger.info("SIM: going offline")
                    self._env.set_online(False)

                self._queue.emit(
                    event_type,
                    payload,
                    EmitOptions(
                        correlation_id=correlation_id,
                        privacy_level=privacy_level,
                        context={"step": i},
                    ),
                )
                self.emitted += 1
                logger.info("SIM: emitted %s", event_type)

                await asyncio.sleep(random.uniform(*self._step_delay))

            if not self._env.online:
                logger.info("SIM: back online")
                self._env.set_online(True)

            # App backgrounded: last chance to deliver.
            self._env.set_visibility("hidden")
            await self._queue.flush()

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            self._running = False
            logger.info(
                "SIM: finished, %d emitted, %d pending",
                self.emitted,
                self._queue.queue_length,
            )
