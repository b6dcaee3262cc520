"""Tests for HttpTransport."""

import json

import httpx
import pytest

from tibera.client import HttpTransport


def make_transport(handler, **kwargs) -> tuple[HttpTransport, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTransport(base_url="http://tibera.test", client=client, **kwargs), client


class TestHttpTransport:
    """Tests for HttpTransport.send()."""

    async def test_posts_events_as_json(self):
        """Test method, URL, headers and body of a batch request."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"success": True})

        transport, client = make_transport(handler, headers={"X-User-Id": "u1"})
        async with client:
            ok = await transport.send([{"event_id": "a", "event_type": "meal.saved"}])

        assert ok is True
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://tibera.test/api/events/ingest"
        assert request.headers["X-User-Id"] == "u1"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "events": [{"event_id": "a", "event_type": "meal.saved"}]
        }

    @pytest.mark.parametrize("status", [200, 201, 202, 204])
    async def test_any_2xx_is_success(self, status):
        """Test that the response body is not inspected."""
        transport, client = make_transport(lambda request: httpx.Response(status))
        async with client:
            assert await transport.send([{}]) is True

    @pytest.mark.parametrize("status", [301, 400, 401, 413, 429, 500, 503])
    async def test_non_2xx_is_failure(self, status):
        """Test that other statuses report failure."""
        transport, client = make_transport(lambda request: httpx.Response(status))
        async with client:
            assert await transport.send([{}]) is False

    async def test_network_error_is_failure(self):
        """Test that connection errors report failure instead of raising."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        transport, client = make_transport(handler)
        async with client:
            assert await transport.send([{}]) is False

    def test_url_from_env(self, monkeypatch):
        """Test TIBERA_API_URL with a trailing slash."""
        monkeypatch.setenv("TIBERA_API_URL", "https://api.tibera.test/")

        assert HttpTransport().url == "https://api.tibera.test/api/events/ingest"

    async def test_close_owned_client(self):
        """Test that a lazily created client is closed and dropped."""
        transport = HttpTransport(base_url="http://tibera.test")
        client = transport._get_client()

        await transport.close()

        assert client.is_closed
        assert transport._client is None

    async def test_close_leaves_injected_client_open(self):
        """Test that injected clients belong to the caller."""
        transport, client = make_transport(lambda request: httpx.Response(200))

        await transport.close()

        assert not client.is_closed
        await client.aclose()
