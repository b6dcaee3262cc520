"""Flush state machine for the durable event queue."""

from enum import Enum


class FlushState(str, Enum):
    """Where the queue is in its flush cycle."""

    IDLE = "idle"  # no timer, nothing in flight
    DEBOUNCED = "debounced"  # timer pending after emit / flush_soon / init
    FLUSHING = "flushing"  # a batch request is in flight
    BACKING_OFF = "backing_off"  # timer pending after a failed batch
