"""WebSocket frame source for queue events.

:class:`QueueSocket` connects to the queue gateway with aiohttp and yields
raw frames interleaved with :class:`~komiut_queue.models.state.ConnectionSignal`
reports. Reconnection and backoff live here; the store only ever sees the
resulting signals.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from urllib.parse import quote

import aiohttp

from komiut_queue.config import QueueConfig
from komiut_queue.exceptions import KomiutConfigError, KomiutTransportError
from komiut_queue.ingestion.decode import RawFrame
from komiut_queue.models.state import ConnectionSignal, QueueConnectionState

_logger = logging.getLogger(__name__)

# Handshake statuses that retrying cannot fix.
_FATAL_HANDSHAKE_STATUSES = frozenset({401, 403, 404})


def backoff_delay(attempt: int, base: float, maximum: float) -> float:
    """Exponential backoff for the *attempt*-th consecutive reconnect (1-based)."""
    if attempt < 1 or base <= 0:
        return 0.0
    return min(maximum, base * 2 ** (attempt - 1))


class QueueSocket:
    """Reconnecting WebSocket reader for one or more route queues."""

    def __init__(self, config: QueueConfig, http_session: aiohttp.ClientSession) -> None:
        if not config.ws_url:
            raise KomiutConfigError("ws_url is required to open a queue socket")
        self._config = config
        self._http = http_session

    def route_url(self, route_id: str) -> str:
        separator = "&" if "?" in self._config.ws_url else "?"
        return f"{self._config.ws_url}{separator}routeId={quote(route_id, safe='')}"

    async def stream(self, route_id: str) -> AsyncIterator[RawFrame | ConnectionSignal]:
        """Yield frames and connection signals for *route_id*.

        Runs until the consumer stops iterating, or until
        ``max_reconnect_attempts`` consecutive reconnects fail, in which
        case a final ``error`` signal is yielded.

        Raises
        ------
        KomiutTransportError
            If the gateway rejects the handshake with a non-retryable
            status (after an ``error`` signal has been yielded).
        """
        url = self.route_url(route_id)
        config = self._config
        heartbeat = config.heartbeat if config.heartbeat > 0 else None
        failures = 0

        yield ConnectionSignal(state=QueueConnectionState.CONNECTING)
        while True:
            try:
                async with self._http.ws_connect(url, heartbeat=heartbeat) as ws:
                    failures = 0
                    _logger.debug("Queue socket connected: %s", url)
                    yield ConnectionSignal(state=QueueConnectionState.CONNECTED)
                    async for message in ws:
                        if message.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                            yield message.data
                        elif message.type == aiohttp.WSMsgType.ERROR:
                            _logger.debug("Queue socket error on %s", url, exc_info=ws.exception())
                            break
                reason = "Queue socket closed"
            except aiohttp.WSServerHandshakeError as exc:
                if exc.status in _FATAL_HANDSHAKE_STATUSES:
                    detail = f"Queue socket handshake rejected with HTTP {exc.status}"
                    yield ConnectionSignal(state=QueueConnectionState.ERROR, reason=detail)
                    raise KomiutTransportError(detail, status_code=exc.status, url=url) from exc
                reason = f"Queue socket handshake failed with HTTP {exc.status}"
            except aiohttp.ClientError as exc:
                reason = f"Queue socket failed: {exc}"

            failures += 1
            if config.max_reconnect_attempts and failures > config.max_reconnect_attempts:
                _logger.debug("Queue socket giving up on %s after %d attempt(s)", url, failures - 1)
                yield ConnectionSignal(state=QueueConnectionState.ERROR, reason=reason)
                return

            delay = backoff_delay(failures, config.reconnect_delay, config.max_reconnect_delay)
            _logger.debug("%s; reconnecting to %s in %.1fs", reason, url, delay)
            yield ConnectionSignal(state=QueueConnectionState.RECONNECTING, reason=reason)
            if delay > 0:
                await asyncio.sleep(delay)
