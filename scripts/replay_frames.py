#!/usr/bin/env python3
"""Replay recorded queue frames through the store and print the result.

Each line of the input file is one frame as received from the gateway
(a JSON object). Blank lines and lines starting with ``#`` are skipped.

Usage
-----
    python scripts/replay_frames.py route-42 frames.jsonl
    python scripts/replay_frames.py --steps route-42 frames.jsonl
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_src = Path(__file__).resolve().parent.parent / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from komiut_queue import QueueConfig, QueueState, QueueStore  # noqa: E402


def _summary(version: int, state: QueueState) -> str:
    vehicles = " ".join(
        f"{v.position}:{v.registration_number or v.vehicle_id}({v.available_seats}/{v.total_seats})"
        for v in state.vehicles
    )
    error = f"  error={state.error!r}" if state.error else ""
    return f"v{version:<4} {state.connection_state.value:<12} [{vehicles}]{error}"


def main() -> int:
    parser = argparse.ArgumentParser(description="Replay recorded queue frames.")
    parser.add_argument("route_id", help="Route whose queue the frames belong to")
    parser.add_argument("frames", help="JSON-lines file of recorded frames")
    parser.add_argument("--steps", action="store_true", help="Print a summary after every frame")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging with frame tracing")
    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    store = QueueStore(config=QueueConfig.from_env(frame_trace_enabled=args.debug))
    store.open(args.route_id)
    if args.steps:
        store.subscribe(args.route_id, lambda state: print(_summary(store.version(args.route_id), state)))

    frames = 0
    for line in Path(args.frames).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        store.apply_frame(args.route_id, line)
        frames += 1

    snapshot = store.snapshot(args.route_id)
    if snapshot is None:
        return 1
    print(json.dumps(snapshot.state.to_json(), indent=2))
    print(f"\n{frames} frame(s), version {snapshot.version}, {snapshot.state.total_available_seats} seat(s) free.")
    return 1 if snapshot.state.has_error else 0


if __name__ == "__main__":
    raise SystemExit(main())
