from __future__ import annotations

import json
import socket
from pathlib import Path

import pytest

from services.configuration import load_config, parse_config, resolve_config_destination
from services.errors import ConfigurationError


def _valid_config() -> dict:
    return {
        "HOST_UDP": "127.0.0.1",
        "PORT_UDP": 9999,
        "SEND_INTERVAL": 5,
        "SENSORS": [
            {"sensorId": 1, "location": "room-a"},
            {"sensorId": 2, "location": "room-b"},
        ],
    }


def _write(tmp_path: Path, payload) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(payload) if not isinstance(payload, str) else payload)
    return path


def test_load_config_reads_all_fields(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, _valid_config()))

    assert config.host == "127.0.0.1"
    assert config.port == 9999
    assert config.send_interval == 5
    assert [(entry.sensor_id, entry.location) for entry in config.sensors] == [
        (1, "room-a"),
        (2, "room-b"),
    ]


@pytest.mark.parametrize("missing", ["HOST_UDP", "PORT_UDP", "SEND_INTERVAL", "SENSORS"])
def test_missing_required_field_is_reported(missing: str) -> None:
    raw = _valid_config()
    del raw[missing]

    with pytest.raises(ConfigurationError) as excinfo:
        parse_config(raw)

    assert missing in str(excinfo.value)


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("PORT_UDP", 0),
        ("PORT_UDP", 70000),
        ("PORT_UDP", "not-a-port"),
        ("SEND_INTERVAL", 0),
        ("SENSORS", "room-a"),
    ],
)
def test_malformed_field_is_rejected(field: str, value) -> None:
    raw = _valid_config()
    raw[field] = value

    with pytest.raises(ConfigurationError):
        parse_config(raw)


def test_sensor_without_location_is_rejected() -> None:
    raw = _valid_config()
    raw["SENSORS"].append({"sensorId": 3})

    with pytest.raises(ConfigurationError) as excinfo:
        parse_config(raw)

    assert "location" in str(excinfo.value)


def test_non_object_config_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        parse_config(["HOST_UDP"])  # type: ignore[arg-type]


def test_missing_file_raises_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        load_config(tmp_path / "absent.json")

    assert "absent.json" in str(excinfo.value)


def test_invalid_json_raises_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        load_config(_write(tmp_path, "{not json"))

    assert "not valid JSON" in str(excinfo.value)


def test_destination_resolves_loopback() -> None:
    destination = resolve_config_destination(parse_config(_valid_config()))

    assert destination.port == 9999
    assert destination.family == socket.AF_INET
    assert destination.sockaddr == ("127.0.0.1", 9999)
    assert str(destination) == "127.0.0.1:9999"


def test_unresolvable_host_raises_configuration_error(monkeypatch) -> None:
    def fail(*_args, **_kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(socket, "getaddrinfo", fail)
    raw = _valid_config()
    raw["HOST_UDP"] = "no-such-host.invalid"

    with pytest.raises(ConfigurationError) as excinfo:
        resolve_config_destination(parse_config(raw))

    assert "no-such-host.invalid" in str(excinfo.value)
