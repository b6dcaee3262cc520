"""Batch delivery to the remote ingestion endpoint."""

from typing import Any, Protocol

import httpx

from ..config import QueueConfig, resolve_api_url
from ..logging_config import get_logger

logger = get_logger(__name__)


class IEventTransport(Protocol):
    """Sends one batch of events; reports acceptance."""

    async def send(self, events: list[dict[str, Any]]) -> bool:
        """POST a batch. True on any 2xx, False on error or other status."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...


class HttpTransport:
    """httpx-based transport posting {"events": [...]} as JSON."""

    def __init__(
        self,
        base_url: str | None = None,
        path: str = QueueConfig.ingest_path,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self._base_url = resolve_api_url(base_url)
        self._path = path
        self._headers = dict(headers or {})
        self._client = client
        self._owns_client = client is None

    @property
    def url(self) -> str:
        return f"{self._base_url}{self._path}"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def send(self, events: list[dict[str, Any]]) -> bool:
        """POST a batch. True on any 2xx, False on error or other status."""
        try:
            response = await self._get_client().post(
                self.url,
                json={"events": events},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            logger.debug("Event batch delivery failed: %s", e)
            return False

        if not response.is_success:
            logger.debug(
                "Event batch rejected: %s",
                response.status_code,
                extra={"context": {"batch_size": len(events)}},
            )
            return False
        return True

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
