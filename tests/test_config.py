from __future__ import annotations

import pytest

from komiut_queue.config import QueueConfig
from komiut_queue.exceptions import KomiutConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "KOMIUT_WS_URL",
        "KOMIUT_SELECTION_TIMEOUT",
        "KOMIUT_RECONNECT_DELAY",
        "KOMIUT_MAX_RECONNECT_DELAY",
        "KOMIUT_MAX_RECONNECT_ATTEMPTS",
        "KOMIUT_HEARTBEAT",
        "KOMIUT_CONNECTION_ERROR_CODES",
        "KOMIUT_FRAME_TRACE_ENABLED",
    ):
        monkeypatch.delenv(key, raising=False)


def test_from_env_defaults() -> None:
    assert QueueConfig.from_env() == QueueConfig()


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KOMIUT_WS_URL", " wss://queue.example.test/ws ")
    monkeypatch.setenv("KOMIUT_SELECTION_TIMEOUT", "12.5")
    monkeypatch.setenv("KOMIUT_MAX_RECONNECT_ATTEMPTS", "4")
    monkeypatch.setenv("KOMIUT_CONNECTION_ERROR_CODES", "SOCKET_CLOSED, ,token_expired")
    monkeypatch.setenv("KOMIUT_FRAME_TRACE_ENABLED", "yes")

    config = QueueConfig.from_env()

    assert config.ws_url == "wss://queue.example.test/ws"
    assert config.selection_timeout == 12.5
    assert config.max_reconnect_attempts == 4
    assert config.connection_error_codes == ("SOCKET_CLOSED", "token_expired")
    assert config.frame_trace_enabled is True


def test_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KOMIUT_HEARTBEAT", "not-a-number")
    monkeypatch.setenv("KOMIUT_FRAME_TRACE_ENABLED", "1")

    config = QueueConfig.from_env(heartbeat=0.0, frame_trace_enabled=False)

    assert config.heartbeat == 0.0
    assert config.frame_trace_enabled is False


def test_bad_number_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KOMIUT_RECONNECT_DELAY", "soon")

    with pytest.raises(KomiutConfigError, match="KOMIUT_RECONNECT_DELAY"):
        QueueConfig.from_env()


def test_unrecognised_bool_keeps_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KOMIUT_FRAME_TRACE_ENABLED", "maybe")

    assert QueueConfig.from_env().frame_trace_enabled is False
