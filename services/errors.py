"""Error types raised by the simulator."""

from __future__ import annotations

from pydantic import ValidationError


class SimulatorError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(SimulatorError):
    """The configuration record is missing, malformed or unusable."""


class TransportSetupError(SimulatorError):
    """A UDP socket could not be created or bound."""


class TransportSendError(SimulatorError):
    """A single outbound datagram could not be sent."""


class MessageParseError(SimulatorError):
    """An inbound datagram could not be decoded into an update."""


class UnknownLocationError(SimulatorError, KeyError):
    """No sensor is registered for the requested location."""

    def __init__(self, location: str) -> None:
        super().__init__(f"Sensor for location {location!r} not found.")
        self.location = location

    def __str__(self) -> str:
        return str(self.args[0])


def summarize_validation_error(exc: ValidationError) -> str:
    """Flatten a pydantic error list into ``field: message`` pairs."""
    parts = []
    for error in exc.errors():
        field = ".".join(str(item) for item in error.get("loc", ())) or "<root>"
        parts.append(f"{field}: {error.get('msg')}")
    return "; ".join(parts)
