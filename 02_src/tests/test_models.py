"""Tests for data models."""

import json
from datetime import datetime

from tibera.models import (
    PRIVACY_LEVELS,
    AppEvent,
    EmitOptions,
    FlushState,
    new_event_id,
    now_iso,
)


class TestAppEvent:
    """Tests for AppEvent model."""

    def test_create_event_defaults(self):
        """Test creating an AppEvent with defaults."""
        event = AppEvent(event_id="e1", event_type="meal.saved", ts="2026-01-01T00:00:00.000Z")

        assert event.source == "client"
        assert event.session_id is None
        assert event.correlation_id is None
        assert event.idempotency_key is None
        assert event.schema_version == 1
        assert event.privacy_level == "standard"
        assert event.payload == {}
        assert event.context == {}

    def test_default_mappings_not_shared(self):
        """Test that each event gets its own payload/context."""
        a = AppEvent(event_id="a", event_type="x", ts="t")
        b = AppEvent(event_id="b", event_type="x", ts="t")
        a.payload["k"] = 1

        assert b.payload == {}

    def test_to_dict_is_json_ready(self):
        """Test field mapping of to_dict()."""
        event = AppEvent(
            event_id="e1",
            event_type="sleep.logged",
            ts="2026-01-01T00:00:00.000Z",
            payload={"hours": 7.5},
            context={"app": "web"},
        )

        data = event.to_dict()

        assert list(data) == [
            "event_id",
            "event_type",
            "ts",
            "source",
            "session_id",
            "correlation_id",
            "idempotency_key",
            "schema_version",
            "privacy_level",
            "payload",
            "context",
        ]
        assert json.loads(json.dumps(data)) == data


class TestEmitOptions:
    """Tests for EmitOptions model."""

    def test_all_defaults_none(self):
        """Test that unset options defer to queue defaults."""
        options = EmitOptions()

        assert options.session_id is None
        assert options.correlation_id is None
        assert options.idempotency_key is None
        assert options.privacy_level is None
        assert options.schema_version is None
        assert options.context is None


class TestHelpers:
    """Tests for id and timestamp helpers."""

    def test_new_event_id_unique(self):
        """Test uuid4 generation."""
        assert len({new_event_id() for _ in range(100)}) == 100

    def test_now_iso_is_utc(self):
        """Test UTC ISO-8601 with a Z suffix."""
        value = now_iso()

        assert value.endswith("Z")
        assert datetime.fromisoformat(value.replace("Z", "+00:00")).utcoffset().total_seconds() == 0

    def test_privacy_levels(self):
        """Test the allowed privacy levels."""
        assert PRIVACY_LEVELS == ("standard", "sensitive", "redacted")


class TestFlushState:
    """Tests for FlushState enum."""

    def test_values(self):
        """Test enum values."""
        assert FlushState.IDLE.value == "idle"
        assert FlushState.DEBOUNCED.value == "debounced"
        assert FlushState.FLUSHING.value == "flushing"
        assert FlushState.BACKING_OFF.value == "backing_off"

    def test_is_str(self):
        """Test string comparison."""
        assert FlushState.IDLE == "idle"
