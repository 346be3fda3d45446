from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_CONFIG_PATH_ENV = "SIMULATOR_CONFIG_PATH"
_LISTEN_HOST_ENV = "SIMULATOR_LISTEN_HOST"
_LISTEN_PORT_ENV = "SIMULATOR_LISTEN_PORT"
_RECV_BUFFER_ENV = "SIMULATOR_RECV_BUFFER"
_POLL_TIMEOUT_ENV = "SIMULATOR_POLL_TIMEOUT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_LISTEN_PORT = 8888


@dataclass(frozen=True)
class Settings:
    config_path: str
    listen_host: str
    listen_port: int
    recv_buffer_size: int
    poll_timeout: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int(name: str, default: int, upper: int | None = None) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    if parsed <= 0 or (upper is not None and parsed > upper):
        return default
    return parsed


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        config_path=_read_str_env(_CONFIG_PATH_ENV, "config.json"),
        listen_host=_read_str_env(_LISTEN_HOST_ENV, "0.0.0.0"),
        listen_port=_read_positive_int(_LISTEN_PORT_ENV, DEFAULT_LISTEN_PORT, upper=65535),
        recv_buffer_size=_read_positive_int(_RECV_BUFFER_ENV, 1024),
        poll_timeout=_read_positive_float(_POLL_TIMEOUT_ENV, 0.5),
        log_level=_read_log_level("INFO"),
    )
