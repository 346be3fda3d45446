"""Periodic broadcast of every sensor reading."""

from __future__ import annotations

import logging
from threading import Event, Lock

from app.schemas import BroadcasterStats, ReadingPayload
from datastore.registry import SensorRegistry
from services.errors import TransportSendError
from transport.udp import UdpSender

logger = logging.getLogger(__name__)


class Broadcaster:
    """Fluctuates and sends one datagram per sensor every ``interval`` seconds."""

    def __init__(
        self,
        registry: SensorRegistry,
        sender: UdpSender,
        interval: float,
        stop_event: Event,
    ) -> None:
        self.registry = registry
        self.sender = sender
        self.interval = interval
        self._stop_event = stop_event
        self._stats_lock = Lock()
        self._ticks = 0
        self._sent = 0
        self._send_failures = 0

    def run(self) -> None:
        logger.info(
            "Broadcaster started",
            extra={"destination": str(self.sender.destination), "interval": self.interval},
        )
        while not self._stop_event.is_set():
            self.tick()
            if self._stop_event.wait(self.interval):
                break
        logger.info("Broadcaster stopped")

    def tick(self) -> int:
        """Send every reading once; returns how many datagrams went out."""
        sent = 0
        failures = 0
        for reading in self.registry.snapshot_all():
            # Drift happens whether or not the datagram is delivered.
            updated = self.registry.apply_fluctuation(reading.location)
            if updated is None:
                continue

            payload = ReadingPayload.from_reading(updated).to_datagram()
            try:
                self.sender.send(payload)
            except TransportSendError as exc:
                failures += 1
                logger.warning(
                    "Skipping reading after send failure",
                    extra={"location": updated.location, "reason": str(exc)},
                )
                continue

            sent += 1
            logger.debug(
                "Reading sent",
                extra={
                    "location": updated.location,
                    "sensor_id": updated.sensor_id,
                    "payload_bytes": len(payload),
                },
            )

        with self._stats_lock:
            self._ticks += 1
            self._sent += sent
            self._send_failures += failures
        return sent

    def stats(self) -> BroadcasterStats:
        with self._stats_lock:
            return BroadcasterStats(
                ticks=self._ticks, sent=self._sent, send_failures=self._send_failures
            )
