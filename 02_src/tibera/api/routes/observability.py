"""Observability API routes."""

from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, Header, HTTPException, Query

from ...app import IApplication


class EventResponse(BaseModel):
    """Response model for a stored event."""

    event_id: str
    event_type: str
    ts: str
    source: str
    session_id: str | None
    correlation_id: str | None
    idempotency_key: str | None
    schema_version: int
    privacy_level: str
    payload: dict[str, Any]
    context: dict[str, Any]


def create_observability_router(app: IApplication) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/events", response_model=list[EventResponse])
    async def get_events(
        x_user_id: str | None = Header(None),
        limit: int = Query(100, ge=1, le=1000),
        event_type: str | None = Query(None, description="Filter by event type"),
        session_id: str | None = Query(None, description="Filter by session"),
    ) -> list[dict]:
        """Get the caller's stored events, newest first."""
        user_id = (x_user_id or "").strip()
        if not user_id:
            raise HTTPException(status_code=401, detail="Not authenticated")

        try:
            events = await app.store.get_events(
                user_id,
                event_type=event_type,
                session_id=session_id,
                limit=limit,
            )
            return [e.to_dict() for e in events]

        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
