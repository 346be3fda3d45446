"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class SensorReading:
    """Current metric values of one simulated sensor.

    ``location`` and ``sensor_id`` identify the sensor and never change once the
    reading is created. The registry owns the live instances and hands out copies.
    """

    location: str
    sensor_id: int
    temperature: float
    humidity: float
    co2: int
    light: float
    pm2_5: int
