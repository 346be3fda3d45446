from __future__ import annotations

import logging
import random
from dataclasses import replace
from threading import Lock
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from app.schemas import UPDATABLE_FIELDS, RegistryStats, SensorEntry
from models.records import SensorReading
from services.errors import (
    ConfigurationError,
    UnknownLocationError,
    summarize_validation_error,
)
from services.fluctuation import (
    CO2_MAX_DELTA,
    CO2_UPPER_BOUND,
    PM25_MAX_DELTA,
    PM25_UPPER_BOUND,
    fluctuate,
)

logger = logging.getLogger(__name__)

TEMPERATURE_RANGE = 35.0
HUMIDITY_RANGE = 100.0
LIGHT_RANGE = 10000.0

SensorSpec = Union[SensorEntry, Mapping[str, Any]]


class SensorRegistry:
    """In-memory map of location to reading, shared by the broadcast and listen loops.

    A single lock guards the map and is held for one read or mutation at a time.
    Callers only ever receive copies of the stored readings.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._readings: Dict[str, SensorReading] = {}
        self._rng = rng or random.Random()
        self._lock = Lock()
        self._unknown_location_updates = 0

    def initialize(self, sensors: Iterable[SensorSpec]) -> None:
        """Create a randomly seeded reading per entry; later duplicates replace earlier ones."""
        readings: Dict[str, SensorReading] = {}
        for index, raw in enumerate(sensors):
            entry = self._coerce_entry(raw, index)
            readings[entry.location] = self._new_reading(entry)

        with self._lock:
            self._readings = readings
        logger.info("Sensor registry initialized", extra={"sensor_count": len(readings)})

    def snapshot_all(self) -> list[SensorReading]:
        with self._lock:
            return [replace(reading) for reading in self._readings.values()]

    def get(self, location: str) -> SensorReading:
        with self._lock:
            reading = self._readings.get(location)
            if reading is None:
                raise UnknownLocationError(location)
            return replace(reading)

    def locations(self) -> list[str]:
        with self._lock:
            return list(self._readings)

    def apply_fluctuation(self, location: str) -> Optional[SensorReading]:
        """Drift ``co2`` and ``pm2_5`` for one sensor and return the updated copy."""
        with self._lock:
            reading = self._readings.get(location)
            if reading is None:
                return None
            reading.co2 = fluctuate(reading.co2, CO2_MAX_DELTA, CO2_UPPER_BOUND, self._rng)
            reading.pm2_5 = fluctuate(
                reading.pm2_5, PM25_MAX_DELTA, PM25_UPPER_BOUND, self._rng
            )
            return replace(reading)

    def apply_partial_update(
        self, location: str, fields: Mapping[str, Optional[float]]
    ) -> bool:
        """Overwrite the supplied temperature, humidity and light values.

        Returns ``False`` without touching anything when the location is unknown.
        """
        changes = {
            name: float(value)
            for name, value in fields.items()
            if name in UPDATABLE_FIELDS and value is not None
        }
        with self._lock:
            reading = self._readings.get(location)
            if reading is None:
                self._unknown_location_updates += 1
                unknown = True
            else:
                unknown = False
                for name, value in changes.items():
                    setattr(reading, name, value)

        if unknown:
            logger.debug("Ignoring update for unknown sensor", extra={"location": location})
            return False
        return True

    def stats(self) -> RegistryStats:
        with self._lock:
            return RegistryStats(
                sensor_count=len(self._readings),
                unknown_location_updates=self._unknown_location_updates,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._readings)

    def __contains__(self, location: object) -> bool:
        with self._lock:
            return location in self._readings

    def _new_reading(self, entry: SensorEntry) -> SensorReading:
        rng = self._rng
        return SensorReading(
            location=entry.location,
            sensor_id=entry.sensor_id,
            temperature=rng.random() * TEMPERATURE_RANGE,
            humidity=rng.random() * HUMIDITY_RANGE,
            co2=rng.randrange(CO2_UPPER_BOUND),
            light=rng.random() * LIGHT_RANGE,
            pm2_5=rng.randrange(PM25_UPPER_BOUND),
        )

    @staticmethod
    def _coerce_entry(raw: SensorSpec, index: int) -> SensorEntry:
        if isinstance(raw, SensorEntry):
            return raw
        if not isinstance(raw, Mapping):
            raise ConfigurationError(f"Sensor entry #{index} is not an object.")
        if not raw.get("location"):
            raise ConfigurationError(f"Sensor entry #{index} is missing 'location'.")
        try:
            return SensorEntry.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Sensor entry #{index} is invalid: {summarize_validation_error(exc)}"
            ) from exc
