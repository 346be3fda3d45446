"""Inbound partial updates received over UDP."""

from __future__ import annotations

import logging
from threading import Event, Lock
from typing import Any, Optional

from pydantic import ValidationError

from app.schemas import InboundUpdate, ListenerStats
from datastore.registry import SensorRegistry
from services.errors import MessageParseError, summarize_validation_error
from transport.udp import UdpReceiver

logger = logging.getLogger(__name__)


def parse_update(data: bytes) -> InboundUpdate:
    """Decode one datagram into an ``InboundUpdate`` or raise ``MessageParseError``."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MessageParseError("payload is not valid UTF-8") from exc

    try:
        return InboundUpdate.model_validate_json(text)
    except ValidationError as exc:
        raise MessageParseError(summarize_validation_error(exc)) from exc


def _format_peer(peer: Any) -> Optional[str]:
    if not peer:
        return None
    if isinstance(peer, tuple) and len(peer) >= 2:
        return f"{peer[0]}:{peer[1]}"
    return str(peer)


class Listener:
    def __init__(
        self,
        registry: SensorRegistry,
        receiver: UdpReceiver,
        stop_event: Event,
    ) -> None:
        self.registry = registry
        self.receiver = receiver
        self._stop_event = stop_event
        self._stats_lock = Lock()
        self._received = 0
        self._applied = 0
        self._rejected = 0
        self._ignored = 0

    def run(self) -> None:
        address = self.receiver.address
        logger.info("Listener started", extra={"listen": _format_peer(address)})
        while not self._stop_event.is_set():
            try:
                packet = self.receiver.receive()
            except OSError:
                # Closing the socket during shutdown interrupts the blocking receive.
                if self._stop_event.is_set():
                    break
                raise
            if packet is None:
                continue
            data, peer = packet
            self.handle_datagram(data, peer)
        logger.info("Listener stopped")

    def handle_datagram(self, data: bytes, peer: Any = None) -> bool:
        """Apply one inbound datagram; returns ``True`` when a reading changed."""
        with self._stats_lock:
            self._received += 1

        try:
            update = parse_update(data)
        except MessageParseError as exc:
            with self._stats_lock:
                self._rejected += 1
            logger.warning(
                "Dropping malformed update",
                extra={
                    "peer": _format_peer(peer),
                    "reason": str(exc),
                    "payload_bytes": len(data),
                },
            )
            return False

        if not self.registry.apply_partial_update(update.location, update.changes()):
            with self._stats_lock:
                self._ignored += 1
            return False

        with self._stats_lock:
            self._applied += 1
        logger.debug(
            "Update applied",
            extra={"location": update.location, "peer": _format_peer(peer)},
        )
        return True

    def stats(self) -> ListenerStats:
        with self._stats_lock:
            return ListenerStats(
                received=self._received,
                applied=self._applied,
                rejected=self._rejected,
                ignored=self._ignored,
            )
