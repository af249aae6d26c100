"""Library configuration for komiut_queue."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from komiut_queue.exceptions import KomiutConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise KomiutConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class QueueConfig:
    """Queue sync configuration.

    Parameters
    ----------
    ws_url : str
        WebSocket endpoint serving queue events. The route is appended
        as a ``routeId`` query parameter. Only needed by the socket
        adapter; the store works without it.
    selection_timeout : float
        Seconds a vehicle selection may stay pending before it is
        failed with ``"Selection timed out"``. ``0`` disables the deadline.
    reconnect_delay : float
        Initial backoff (seconds) after the socket drops. Doubles per
        consecutive failure.
    max_reconnect_delay : float
        Upper bound for the reconnect backoff.
    max_reconnect_attempts : int
        Consecutive failed reconnects before the socket gives up with an
        ``error`` signal. ``0`` retries forever.
    heartbeat : float
        WebSocket ping interval in seconds. ``0`` disables pings.
    connection_error_codes : tuple[str, ...]
        Server error codes (case-insensitive) that mean the connection
        itself failed. Error events carrying one of these codes move the
        queue into the ``error`` connection state.
    frame_trace_enabled : bool
        Log every incoming frame (redacted) at DEBUG level.
    """

    ws_url: str = ""
    selection_timeout: float = 30.0
    reconnect_delay: float = 1.0
    max_reconnect_delay: float = 30.0
    max_reconnect_attempts: int = 0
    heartbeat: float = 30.0
    connection_error_codes: tuple[str, ...] = ("CONNECTION_LOST", "CONNECTION_ERROR", "UNAUTHORIZED")
    frame_trace_enabled: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> QueueConfig:
        """Create configuration from ``KOMIUT_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        KomiutConfigError
            When a numeric variable cannot be parsed.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        url = env.get("KOMIUT_WS_URL")
        if url is not None:
            config_kwargs["ws_url"] = url.strip()

        _ENV_NUMBERS: dict[str, tuple[str, type[int] | type[float]]] = {
            "KOMIUT_SELECTION_TIMEOUT": ("selection_timeout", float),
            "KOMIUT_RECONNECT_DELAY": ("reconnect_delay", float),
            "KOMIUT_MAX_RECONNECT_DELAY": ("max_reconnect_delay", float),
            "KOMIUT_MAX_RECONNECT_ATTEMPTS": ("max_reconnect_attempts", int),
            "KOMIUT_HEARTBEAT": ("heartbeat", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMBERS.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val.strip(), cast)

        codes_env = env.get("KOMIUT_CONNECTION_ERROR_CODES")
        if codes_env is not None and "connection_error_codes" not in overrides:
            config_kwargs["connection_error_codes"] = tuple(
                code.strip() for code in codes_env.split(",") if code.strip()
            )

        if "frame_trace_enabled" not in overrides:
            config_kwargs["frame_trace_enabled"] = _env_bool(env.get("KOMIUT_FRAME_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
