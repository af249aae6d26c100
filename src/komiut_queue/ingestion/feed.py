"""Queue stream ingestion.

This module owns the loops that fold a transport's output into a
:class:`~komiut_queue.state.store.QueueStore`:

- :func:`consume_queue_source` folds raw frames and connection signals in
  delivery order.
- :func:`expire_selections_periodically` is the timer that fails pending
  selections once their deadline passes.

The transport itself (see :mod:`komiut_queue._transport`) is only one
possible source; any async iterable of frames and signals works.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable

from komiut_queue.ingestion.decode import RawFrame
from komiut_queue.models.state import ConnectionSignal, QueueState
from komiut_queue.state.store import QueueStore

_logger = logging.getLogger(__name__)

QueueSourceItem = RawFrame | ConnectionSignal


async def consume_queue_source(
    store: QueueStore,
    route_id: str,
    source: AsyncIterable[QueueSourceItem],
) -> QueueState:
    """Fold every item of *source* into the store's state for *route_id*.

    Returns the route's state once the source is exhausted. Exceptions
    raised by the source itself propagate to the caller.
    """
    state = store.open(route_id)
    frames = 0
    async for item in source:
        if isinstance(item, ConnectionSignal):
            state = store.apply_signal(route_id, item)
        else:
            frames += 1
            state = store.apply_frame(route_id, item)
    _logger.debug("Queue source for route %s ended after %d frame(s)", route_id, frames)
    return state


async def expire_selections_periodically(store: QueueStore, interval: float = 1.0) -> None:
    """Time out overdue selections every *interval* seconds until cancelled."""
    if interval <= 0:
        raise ValueError("interval must be positive")
    while True:
        await asyncio.sleep(interval)
        expired = store.expire_selections()
        if expired:
            _logger.debug("Selection timed out on route(s): %s", ", ".join(expired))
