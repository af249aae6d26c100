#!/usr/bin/env python3
"""Watch a live route queue over the gateway WebSocket.

Reads ``KOMIUT_*`` settings from the environment (``KOMIUT_WS_URL`` is
required) and prints the queue every time it changes.

Usage
-----
    KOMIUT_WS_URL=wss://gateway.example/queue python scripts/watch_queue.py route-42
    python scripts/watch_queue.py --duration 60 --record frames.jsonl route-42
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator
from pathlib import Path
from typing import IO

import aiohttp

# Allow running from repo root without installing the package.
_src = Path(__file__).resolve().parent.parent / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from komiut_queue import (  # noqa: E402
    ConnectionSignal,
    KomiutError,
    QueueConfig,
    QueueSocket,
    QueueState,
    QueueStore,
    consume_queue_source,
)
from komiut_queue.ingestion.feed import QueueSourceItem  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch a live Komiut route queue.")
    parser.add_argument("route_id", help="Route to watch")
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--record",
        type=Path,
        default=None,
        help="Append every received frame to this JSON-lines file.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging.")
    return parser.parse_args()


def _print_state(state: QueueState) -> None:
    print(f"[{state.connection_state.value}] {state.vehicle_count} vehicle(s), {state.total_available_seats} seat(s) free")
    for vehicle in state.vehicles:
        print(
            f"  {vehicle.position:>3}  {vehicle.registration_number or vehicle.vehicle_id:<12}"
            f"  {vehicle.status.value:<10}  {vehicle.available_seats}/{vehicle.total_seats}"
        )
    if state.error:
        print(f"  error: {state.error}")


async def _recording(source: AsyncIterator[QueueSourceItem], sink: IO[str]) -> AsyncIterator[QueueSourceItem]:
    async for item in source:
        if not isinstance(item, ConnectionSignal):
            text = item.decode("utf-8", "replace") if isinstance(item, (bytes, bytearray)) else item
            sink.write((text if isinstance(text, str) else json.dumps(text)) + "\n")
            sink.flush()
        yield item


async def _run(args: argparse.Namespace) -> int:
    config = QueueConfig.from_env(frame_trace_enabled=args.debug)
    store = QueueStore(config=config)
    store.subscribe(args.route_id, _print_state)

    async with aiohttp.ClientSession() as session:
        socket = QueueSocket(config, session)
        source = socket.stream(args.route_id)
        sink = args.record.open("a", encoding="utf-8") if args.record else None
        try:
            consume = consume_queue_source(store, args.route_id, _recording(source, sink) if sink else source)
            await asyncio.wait_for(consume, timeout=args.duration or None)
        except TimeoutError:
            pass
        finally:
            if sink is not None:
                sink.close()

    state = store.get(args.route_id)
    return 1 if state is None or state.connection_state.has_issue else 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KomiutError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
