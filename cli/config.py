from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from settings import get_settings

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_UPDATE_HOST = "127.0.0.1"

_BASE_URL_ENV = "API_BASE_URL"
_UPDATE_HOST_ENV = "SIMULATOR_UPDATE_HOST"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    update_host: str = DEFAULT_UPDATE_HOST
    update_port: int = 8888


def load_config(
    base_url: Optional[str] = None,
    update_host: Optional[str] = None,
    update_port: Optional[int] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    host = update_host or (os.getenv(_UPDATE_HOST_ENV) or "").strip() or DEFAULT_UPDATE_HOST
    if update_port is None:
        update_port = get_settings().listen_port
    return CLIConfig(
        base_url=url.rstrip("/"),
        update_host=host,
        update_port=update_port,
    )
