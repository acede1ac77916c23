"""Rate-limited, retrying HTTP transport for the Somneo local API."""
from __future__ import annotations

import asyncio
import json
import logging
import ssl
import time
from typing import Any, Dict

import aiohttp
from aiohttp import ClientSession
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .const import (
    API_BASE,
    LOG_BODY_LIMIT,
    MIN_REQUEST_INTERVAL,
    REQUEST_TIMEOUT,
    RETRY_ATTEMPTS,
    RETRY_WAIT_MAX,
    RETRY_WAIT_MIN,
)
from .exceptions import TransportError

_LOGGER = logging.getLogger(__name__)

_HEADERS = {
    "Accept": "*/*",
    "Content-Type": "application/json",
    # The firmware expects this header even though bodies are plain JSON
    "Content-Encoding": "gzip",
    "Connection": "keep-alive",
}


def _truncate(value: Any) -> str:
    if value is None:
        return ""
    text = value if isinstance(value, str) else json.dumps(value, separators=(",", ":"))
    if len(text) > LOG_BODY_LIMIT:
        return text[:LOG_BODY_LIMIT] + "..."
    return text


def _is_transient(ex: BaseException) -> bool:
    """Timeouts, resets and 5xx are retried; 4xx and unreadable bodies are permanent."""
    return isinstance(ex, TransportError) and ex.retryable and not ex.is_client_error


def make_ssl_context() -> ssl.SSLContext:
    """TLS context for the device's self-signed, legacy-cipher endpoint."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.set_ciphers("DEFAULT:@SECLEVEL=1")
    return context


class SomneoTransport:
    """Single-flight device transport.

    At most one request is outstanding at a time and consecutive requests
    are spaced by ``min_interval`` seconds. Waiters are served in FIFO order
    (asyncio.Lock wakes waiters in arrival order).
    """

    def __init__(
        self,
        host: str,
        session: ClientSession | None = None,
        *,
        min_interval: float = MIN_REQUEST_INTERVAL,
        timeout: float = REQUEST_TIMEOUT,
        attempts: int = RETRY_ATTEMPTS,
        wait_min: float = RETRY_WAIT_MIN,
        wait_max: float = RETRY_WAIT_MAX,
    ):
        self.host = host
        self._base_url = API_BASE.format(host=host)
        self._session = session
        self._owns_session = session is None
        self._ssl_context: ssl.SSLContext | None = None
        self._min_interval = min_interval
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._attempts = max(1, attempts)
        self._wait_min = wait_min
        self._wait_max = wait_max
        self._lock = asyncio.Lock()
        self._last_request = 0.0

    @classmethod
    async def create(cls, host: str, hass=None, **kwargs) -> "SomneoTransport":
        """Async-safe constructor."""
        self = cls(host, **kwargs)
        # Loading the default cipher tables blocks; keep it off the event loop
        if hass is not None:
            self._ssl_context = await hass.async_add_executor_job(make_ssl_context)
        else:
            self._ssl_context = make_ssl_context()
        await self._init_session()
        return self

    async def _init_session(self):
        """Initialize aiohttp session with the device SSL context."""
        if self._session and not self._session.closed:
            await self._session.close()

        connector = aiohttp.TCPConnector(ssl=self._ssl_context, limit=1)
        self._session = ClientSession(connector=connector)
        self._owns_session = True

    async def close(self):
        """Gracefully close aiohttp session."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get(self, path: str) -> Dict[str, Any]:
        return await self._request("GET", path)

    async def put(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", path, body)

    async def _request(self, method: str, path: str, body: Dict[str, Any] | None = None) -> Dict[str, Any]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=self._wait_min, min=self._wait_min, max=self._wait_max),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        # The lock spans retries so a retried request keeps its place in the queue
        async with self._lock:
            async for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        _LOGGER.debug(
                            "Retrying %s %s (attempt %s/%s)",
                            method,
                            path,
                            attempt.retry_state.attempt_number,
                            self._attempts,
                        )
                    data = await self._paced(method, path, body)
        return data

    async def _paced(self, method: str, path: str, body: Dict[str, Any] | None) -> Dict[str, Any]:
        wait = self._min_interval - (time.monotonic() - self._last_request)
        if wait > 0:
            await asyncio.sleep(wait)
        try:
            return await self._send(method, path, body)
        finally:
            self._last_request = time.monotonic()

    async def _send(self, method: str, path: str, body: Dict[str, Any] | None) -> Dict[str, Any]:
        if self._session is None:
            raise TransportError("Transport is closed")

        url = f"{self._base_url}{path}"
        _LOGGER.debug("Outgoing request: [%s] %s %s", method, url, _truncate(body))
        try:
            async with self._session.request(
                method, url, json=body, headers=_HEADERS, timeout=self._timeout
            ) as resp:
                text = await resp.text()
                if resp.status >= 400:
                    _LOGGER.warning(
                        "Request [%s] %s failed with status %s: %s",
                        method,
                        path,
                        resp.status,
                        _truncate(text),
                    )
                    raise TransportError(f"{method} {path} failed: {_truncate(text) or resp.reason}", resp.status)
                _LOGGER.debug("Response [%s] %s: %s", method, path, _truncate(text))
                if not text:
                    return {}
                try:
                    data = json.loads(text)
                except ValueError as ex:
                    raise TransportError(
                        f"{method} {path} returned invalid JSON", resp.status, retryable=False
                    ) from ex
        except (aiohttp.ClientError, asyncio.TimeoutError) as ex:
            _LOGGER.warning("Request [%s] %s failed: %s", method, path, ex)
            raise TransportError(f"{method} {path} failed: {ex}") from ex
        return data if isinstance(data, dict) else {"data": data}
