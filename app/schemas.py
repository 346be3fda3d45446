"""Pydantic schemas for the configuration record, the datagram payloads and the HTTP layer."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import SensorReading

UPDATABLE_FIELDS = ("temperature", "humidity", "light")


class SensorEntry(BaseModel):
    """One ``SENSORS`` element of the configuration file."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sensor_id: int = Field(..., alias="sensorId")
    location: str = Field(..., min_length=1)


class SimulatorConfig(BaseModel):
    """Validated configuration record consumed at startup."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    host: str = Field(..., alias="HOST_UDP", min_length=1)
    port: int = Field(..., alias="PORT_UDP", ge=1, le=65535)
    send_interval: int = Field(
        ..., alias="SEND_INTERVAL", gt=0, description="Seconds between broadcast ticks."
    )
    sensors: List[SensorEntry] = Field(..., alias="SENSORS")


class ReadingPayload(BaseModel):
    """Outbound datagram body, also returned by the HTTP API."""

    model_config = ConfigDict(populate_by_name=True)

    location: str
    sensor_id: int = Field(..., alias="sensorId")
    temperature: float
    humidity: float
    co2: int
    light: float
    pm2_5: int

    @classmethod
    def from_reading(cls, reading: SensorReading) -> "ReadingPayload":
        return cls(
            location=reading.location,
            sensor_id=reading.sensor_id,
            temperature=reading.temperature,
            humidity=reading.humidity,
            co2=reading.co2,
            light=reading.light,
            pm2_5=reading.pm2_5,
        )

    def to_datagram(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")


class InboundUpdate(BaseModel):
    """Inbound datagram body. Fields other than these four are ignored."""

    model_config = ConfigDict(allow_inf_nan=False)

    location: str
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    light: Optional[float] = None

    def changes(self) -> Dict[str, float]:
        """Return only the metric fields that were supplied."""
        return self.model_dump(include=set(UPDATABLE_FIELDS), exclude_none=True)


class BroadcasterStats(BaseModel):
    ticks: int = Field(0, ge=0)
    sent: int = Field(0, ge=0)
    send_failures: int = Field(0, ge=0)


class ListenerStats(BaseModel):
    received: int = Field(0, ge=0)
    applied: int = Field(0, ge=0)
    rejected: int = Field(0, ge=0)
    ignored: int = Field(0, ge=0)


class RegistryStats(BaseModel):
    sensor_count: int = Field(0, ge=0)
    unknown_location_updates: int = Field(0, ge=0)


class SimulatorStats(BaseModel):
    """Counters exposed by ``GET /stats``."""

    running: bool
    broadcaster: BroadcasterStats
    listener: ListenerStats
    registry: RegistryStats
