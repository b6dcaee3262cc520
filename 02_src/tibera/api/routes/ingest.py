"""Event ingestion API routes."""

import json
import uuid
from datetime import datetime, timezone
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...app import IApplication
from ...logging_config import get_logger
from ...models import AppEvent

logger = get_logger(__name__)

MAX_BATCH = 50
MAX_PAYLOAD_CHARS = 50_000
MAX_CONTEXT_CHARS = 20_000
MAX_IDEMPOTENCY_KEY = 220


class IngestEvent(BaseModel):
    """One event as accepted on the wire."""

    model_config = ConfigDict(extra="forbid")

    event_id: uuid.UUID | None = None
    event_type: str = Field(min_length=1, max_length=160)
    ts: datetime | None = None
    source: Literal["client", "server", "db"] | None = None
    session_id: uuid.UUID | None = None
    correlation_id: uuid.UUID | None = None
    idempotency_key: Annotated[str, Field(min_length=1, max_length=MAX_IDEMPOTENCY_KEY)] | None = None
    schema_version: Annotated[int, Field(ge=1, le=10)] | None = None
    privacy_level: Literal["standard", "sensitive", "redacted"] | None = None
    payload: dict[str, Any] | None = None
    context: dict[str, Any] | None = None


class IngestRequest(BaseModel):
    """Request body for a batch of events."""

    model_config = ConfigDict(extra="forbid")

    events: list[IngestEvent] = Field(min_length=1, max_length=MAX_BATCH)


class PayloadTooLarge(ValueError):
    """Serialized payload or context over the per-event limit."""


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (
        value.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def _serialized_length(value: dict[str, Any]) -> int:
    return len(json.dumps(value, separators=(",", ":"), ensure_ascii=False))


def to_app_event(event: IngestEvent, received_at: str) -> AppEvent:
    """Fill server-side defaults for a validated wire event."""
    event_id = str(event.event_id) if event.event_id else str(uuid.uuid4())
    payload = event.payload or {}
    context = event.context or {}

    if (
        _serialized_length(payload) > MAX_PAYLOAD_CHARS
        or _serialized_length(context) > MAX_CONTEXT_CHARS
    ):
        raise PayloadTooLarge("Event payload too large")

    return AppEvent(
        event_id=event_id,
        event_type=event.event_type,
        ts=_iso(event.ts) if event.ts else received_at,
        source=event.source or "client",
        session_id=str(event.session_id) if event.session_id else None,
        correlation_id=str(event.correlation_id) if event.correlation_id else None,
        idempotency_key=(event.idempotency_key or event_id)[:MAX_IDEMPOTENCY_KEY],
        schema_version=event.schema_version or 1,
        privacy_level=event.privacy_level or "standard",
        payload=payload,
        context=context,
    )


def create_ingest_router(app: IApplication) -> APIRouter:
    """Create ingest router."""
    router = APIRouter(prefix="/api", tags=["events"])

    @router.post("/events/ingest")
    async def ingest_events(
        request: Request,
        x_user_id: str | None = Header(None),
    ) -> JSONResponse:
        """Accept a batch of events; duplicates by idempotency key are ignored."""
        user_id = (x_user_id or "").strip()
        if not user_id:
            return _error(401, "Not authenticated")

        try:
            raw = await request.json()
        except ValueError:
            raw = None

        try:
            parsed = IngestRequest.model_validate(raw)
        except ValidationError:
            return _error(400, "Invalid request body")

        received_at = _iso(datetime.now(timezone.utc))
        try:
            rows = [to_app_event(e, received_at) for e in parsed.events]
        except PayloadTooLarge as e:
            return _error(413, str(e))

        try:
            inserted = await app.store.save_events(user_id, rows)
        except Exception as e:
            logger.error("Failed to ingest events: %s", e, exc_info=True)
            return _error(500, str(e) or "Failed to ingest events")

        logger.info(
            "Ingested %d events (%d new)",
            len(rows),
            inserted,
            extra={"context": {"user_id": user_id}},
        )
        return JSONResponse(
            content={
                "success": True,
                "data": {"accepted": len(rows), "inserted": inserted},
            }
        )

    return router
