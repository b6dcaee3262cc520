"""Tests for Sim."""

import asyncio

import pytest

from conftest import wait_until
from sim import Sim
from sim.sim import SCENARIO


class TestSim:
    """Tests for the scripted session."""

    @pytest.mark.asyncio
    async def test_run_delivers_all_events(self, fast_queue, environment, transport):
        """Test that every scripted event reaches the transport."""
        sim = Sim(fast_queue, environment, step_delay=(0, 0))

        await sim.run()
        await wait_until(lambda: fast_queue.queue_length == 0)

        assert sim.emitted == len(SCENARIO)
        assert [e["event_type"] for e in transport.sent_events] == [s[0] for s in SCENARIO]
        assert environment.online
        assert environment.visibility_state == "hidden"

    @pytest.mark.asyncio
    async def test_run_tags_events(self, fast_queue, environment, transport):
        """Test base context, session and correlation on emitted events."""
        sim = Sim(fast_queue, environment, step_delay=(0, 0))

        await sim.run()
        await wait_until(lambda: fast_queue.queue_length == 0)

        events = transport.sent_events
        assert len({e["session_id"] for e in events}) == 1
        assert len({e["correlation_id"] for e in events}) == 1
        assert all(e["context"]["app"] == "tibera-sim" for e in events)
        assert [e["context"]["step"] for e in events] == list(range(len(SCENARIO)))

    @pytest.mark.asyncio
    async def test_start_and_stop(self, fast_queue, environment):
        """Test background run and cancellation."""
        sim = Sim(fast_queue, environment, step_delay=(1, 1))

        await sim.start()
        await asyncio.sleep(0.05)
        assert sim.is_running

        await sim.stop()
        assert not sim.is_running
        assert sim.emitted == 1
