from __future__ import annotations

import json
import logging
import random
import threading

from datastore.registry import SensorRegistry
from services.broadcaster import Broadcaster
from services.errors import TransportSendError
from transport.udp import UdpReceiver, UdpSender, resolve_destination

PAYLOAD_KEYS = {"location", "sensorId", "temperature", "humidity", "co2", "light", "pm2_5"}


class FixedDeltaRandom(random.Random):
    def __init__(self, delta: int) -> None:
        super().__init__(0)
        self.delta = delta

    def randint(self, a: int, b: int) -> int:
        return self.delta


class RecordingSender:
    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.destination = "test-destination"
        self.fail_for = fail_for or set()
        self.payloads: list[dict] = []

    def send(self, payload: bytes) -> int:
        decoded = json.loads(payload)
        if decoded["location"] in self.fail_for:
            raise TransportSendError(f"refused {decoded['location']}")
        self.payloads.append(decoded)
        return len(payload)


def _registry(rng: random.Random | None = None) -> SensorRegistry:
    registry = SensorRegistry(rng=rng or random.Random(4))
    registry.initialize(
        [
            {"sensorId": 1, "location": "room-a"},
            {"sensorId": 2, "location": "room-b"},
            {"sensorId": 3, "location": "room-c"},
        ]
    )
    return registry


def test_tick_sends_one_full_record_per_sensor() -> None:
    registry = _registry()
    sender = RecordingSender()
    broadcaster = Broadcaster(registry, sender, interval=1, stop_event=threading.Event())

    sent = broadcaster.tick()

    assert sent == 3
    assert [payload["location"] for payload in sender.payloads] == ["room-a", "room-b", "room-c"]
    for payload in sender.payloads:
        assert set(payload) == PAYLOAD_KEYS
        current = registry.get(payload["location"])
        assert payload["sensorId"] == current.sensor_id
        assert payload["co2"] == current.co2
        assert payload["pm2_5"] == current.pm2_5
        assert payload["temperature"] == current.temperature


def test_tick_fluctuates_before_sending() -> None:
    registry = _registry(FixedDeltaRandom(1))
    before = {reading.location: reading for reading in registry.snapshot_all()}
    sender = RecordingSender()

    Broadcaster(registry, sender, interval=1, stop_event=threading.Event()).tick()

    for payload in sender.payloads:
        previous = before[payload["location"]]
        assert payload["co2"] == min(previous.co2 + 1, 2000)
        assert payload["pm2_5"] == min(previous.pm2_5 + 1, 300)


def test_send_failure_does_not_abort_tick(caplog) -> None:
    registry = _registry(FixedDeltaRandom(-1))
    before = {reading.location: reading for reading in registry.snapshot_all()}
    sender = RecordingSender(fail_for={"room-b"})
    broadcaster = Broadcaster(registry, sender, interval=1, stop_event=threading.Event())

    with caplog.at_level(logging.WARNING):
        sent = broadcaster.tick()

    assert sent == 2
    assert [payload["location"] for payload in sender.payloads] == ["room-a", "room-c"]
    # Undelivered sensors still drift.
    assert registry.get("room-b").co2 == max(before["room-b"].co2 - 1, 0)

    stats = broadcaster.stats()
    assert (stats.ticks, stats.sent, stats.send_failures) == (1, 2, 1)
    assert any(
        getattr(record, "location", None) == "room-b" for record in caplog.records
    )


def test_run_stops_promptly_when_signalled() -> None:
    stop = threading.Event()
    sender = RecordingSender()
    broadcaster = Broadcaster(_registry(), sender, interval=60, stop_event=stop)
    thread = threading.Thread(target=broadcaster.run, daemon=True)

    thread.start()
    stop.set()
    thread.join(timeout=5)

    assert not thread.is_alive()
    assert broadcaster.stats().ticks <= 1


def test_run_delivers_datagrams_over_loopback() -> None:
    receiver = UdpReceiver("127.0.0.1", 0, timeout=2.0)
    host, port = receiver.address[:2]
    sender = UdpSender(resolve_destination(host, port))
    stop = threading.Event()
    broadcaster = Broadcaster(_registry(), sender, interval=0.01, stop_event=stop)
    thread = threading.Thread(target=broadcaster.run, daemon=True)

    try:
        thread.start()
        packets = [receiver.receive() for _ in range(3)]
    finally:
        stop.set()
        thread.join(timeout=5)
        sender.close()
        receiver.close()

    locations = set()
    for packet in packets:
        assert packet is not None
        data, _peer = packet
        payload = json.loads(data.decode("utf-8"))
        assert set(payload) == PAYLOAD_KEYS
        locations.add(payload["location"])
    assert locations == {"room-a", "room-b", "room-c"}
