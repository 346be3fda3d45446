"""Loading and validation of the simulator configuration record."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Union

from pydantic import ValidationError

from app.schemas import SimulatorConfig
from services.errors import ConfigurationError, summarize_validation_error
from transport.udp import Destination, resolve_destination


def parse_config(raw: Mapping[str, Any]) -> SimulatorConfig:
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Configuration must be a JSON object.")
    try:
        return SimulatorConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {summarize_validation_error(exc)}") from exc


def load_config(path: Union[str, Path]) -> SimulatorConfig:
    """Read and validate the JSON configuration file at ``path``."""
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Unable to read configuration file {config_path}: {exc}") from exc

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Configuration file {config_path} is not valid JSON: {exc}") from exc

    return parse_config(raw)


def resolve_config_destination(config: SimulatorConfig) -> Destination:
    try:
        return resolve_destination(config.host, config.port)
    except OSError as exc:
        raise ConfigurationError(f"Unable to resolve HOST_UDP {config.host!r}: {exc}") from exc
