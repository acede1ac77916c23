"""Tests for the rate-limited device transport."""

from __future__ import annotations

import asyncio

import aiohttp
import pytest

from custom_components.somneo.exceptions import TransportError
from custom_components.somneo.transport import SomneoTransport, _truncate

from .fakes import FakeResponse, FakeSession


def make_transport(session, **kwargs) -> SomneoTransport:
    kwargs.setdefault("min_interval", 0)
    kwargs.setdefault("wait_min", 0)
    kwargs.setdefault("wait_max", 0)
    return SomneoTransport("somneo.local", session=session, **kwargs)


class TestRequests:
    """Test request shaping and response handling."""

    @pytest.mark.asyncio
    async def test_get_builds_device_url(self) -> None:
        session = FakeSession([FakeResponse(200, {"mstmp": 21.0})])
        transport = make_transport(session)

        data = await transport.get("/wusrd")

        assert data == {"mstmp": 21.0}
        method, url, body, headers = session.calls[0]
        assert method == "GET"
        assert url == "https://somneo.local/di/v1/products/1/wusrd"
        assert body is None
        assert headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_put_sends_json_body(self) -> None:
        session = FakeSession([FakeResponse(200, {"onoff": True})])
        transport = make_transport(session)

        await transport.put("/wulgt", {"onoff": True})

        assert session.calls[0][0] == "PUT"
        assert session.calls[0][2] == {"onoff": True}

    @pytest.mark.asyncio
    async def test_empty_body_is_empty_dict(self) -> None:
        transport = make_transport(FakeSession([FakeResponse(200, None)]))
        assert await transport.get("/fac") == {}

    @pytest.mark.asyncio
    async def test_invalid_json_is_not_retried(self) -> None:
        session = FakeSession([FakeResponse(200, "<html>"), FakeResponse(200, {"mstmp": 21.0})])
        transport = make_transport(session, attempts=4)

        with pytest.raises(TransportError) as err:
            await transport.get("/wusrd")

        assert err.value.retryable is False
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_closed_transport(self) -> None:
        transport = make_transport(FakeSession(), attempts=1)
        await transport.close()
        with pytest.raises(TransportError):
            await transport.get("/wusrd")


class TestRetry:
    """Test the bounded retry policy."""

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self) -> None:
        session = FakeSession(
            [FakeResponse(500, "busy"), FakeResponse(503, "busy"), FakeResponse(200, {"ok": 1})]
        )
        transport = make_transport(session, attempts=4)

        assert await transport.get("/wusts") == {"ok": 1}
        assert len(session.calls) == 3

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self) -> None:
        session = FakeSession([FakeResponse(404, "nope", "Not Found"), FakeResponse(200, {})])
        transport = make_transport(session, attempts=4)

        with pytest.raises(TransportError) as err:
            await transport.get("/wusts")

        assert err.value.status == 404
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self) -> None:
        session = FakeSession([FakeResponse(503, "busy") for _ in range(5)])
        transport = make_transport(session, attempts=3)

        with pytest.raises(TransportError) as err:
            await transport.get("/wusts")

        assert err.value.status == 503
        assert len(session.calls) == 3

    @pytest.mark.asyncio
    async def test_timeouts_and_connection_errors(self) -> None:
        session = FakeSession(
            [asyncio.TimeoutError(), aiohttp.ClientConnectionError("reset"), FakeResponse(200, {"ok": 1})]
        )
        transport = make_transport(session, attempts=3)

        assert await transport.get("/wusts") == {"ok": 1}
        assert len(session.calls) == 3

    @pytest.mark.asyncio
    async def test_timeout_surfaces_without_status(self) -> None:
        session = FakeSession([asyncio.TimeoutError(), asyncio.TimeoutError()])
        transport = make_transport(session, attempts=2)

        with pytest.raises(TransportError) as err:
            await transport.get("/wusts")

        assert err.value.status is None


class TestPacing:
    """Test single-flight and minimum spacing between requests."""

    @pytest.mark.asyncio
    async def test_single_flight_fifo_and_spacing(self) -> None:
        session = FakeSession(latency=0.01)
        transport = make_transport(session, min_interval=0.05)

        await asyncio.gather(transport.get("/a"), transport.get("/b"), transport.get("/c"))

        assert session.max_active == 1
        assert [call[1].rsplit("/", 1)[1] for call in session.calls] == ["a", "b", "c"]
        for previous_end, next_start in zip(session.finished, session.started[1:]):
            assert next_start - previous_end >= 0.045

    @pytest.mark.asyncio
    async def test_retry_keeps_its_place_in_the_queue(self) -> None:
        session = FakeSession([FakeResponse(500, "busy"), FakeResponse(200, {}), FakeResponse(200, {})])
        transport = make_transport(session, attempts=3)

        await asyncio.gather(transport.get("/a"), transport.get("/b"))

        assert [call[1].rsplit("/", 1)[1] for call in session.calls] == ["a", "a", "b"]
        assert session.max_active == 1

    @pytest.mark.asyncio
    async def test_failed_request_still_spaces_the_next(self) -> None:
        session = FakeSession([FakeResponse(400, "bad"), FakeResponse(200, {})])
        transport = make_transport(session, min_interval=0.05, attempts=1)

        with pytest.raises(TransportError):
            await transport.get("/a")
        await transport.get("/b")

        assert session.started[1] - session.finished[0] >= 0.045


def test_truncate_long_bodies() -> None:
    """Logged bodies are capped."""
    text = _truncate("x" * 1000)
    assert len(text) == 256 + 3
    assert text.endswith("...")
    assert _truncate(None) == ""
