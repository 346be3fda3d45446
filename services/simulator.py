"""Lifecycle of the broadcast and listen loops around one shared registry."""

from __future__ import annotations

import logging
import random
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from functools import lru_cache
from threading import Event, Lock
from typing import Dict, Optional

from app.schemas import (
    BroadcasterStats,
    ListenerStats,
    SimulatorConfig,
    SimulatorStats,
)
from datastore.registry import SensorRegistry
from services.broadcaster import Broadcaster
from services.configuration import load_config, resolve_config_destination
from services.errors import TransportSetupError
from services.listener import Listener
from settings import Settings, get_settings
from transport.udp import UdpReceiver, UdpSender

logger = logging.getLogger(__name__)


class SimulatorService:
    """Owns the registry, both network loops, their sockets and the stop signal."""

    def __init__(
        self,
        config: SimulatorConfig,
        settings: Settings,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.settings = settings
        self.destination = resolve_config_destination(config)
        self.registry = SensorRegistry(rng=rng)
        self.registry.initialize(config.sensors)
        self.stop_event = Event()
        self.executor: Optional[ThreadPoolExecutor] = None
        self.broadcaster: Optional[Broadcaster] = None
        self.listener: Optional[Listener] = None
        self._sender: Optional[UdpSender] = None
        self._receiver: Optional[UdpReceiver] = None
        self._futures: Dict[str, Future[None]] = {}
        self._lock = Lock()

    @property
    def started(self) -> bool:
        return self.executor is not None

    @property
    def running(self) -> bool:
        return self.started and not self.stop_event.is_set()

    def start(self) -> None:
        """Open both sockets, then run the broadcaster and listener on worker threads."""
        with self._lock:
            if self.executor is not None:
                raise RuntimeError("Simulator has already been started.")
            if self.stop_event.is_set():
                raise RuntimeError("Simulator has been shut down.")

            sender = UdpSender(self.destination)
            try:
                receiver = UdpReceiver(
                    self.settings.listen_host,
                    self.settings.listen_port,
                    buffer_size=self.settings.recv_buffer_size,
                    timeout=self.settings.poll_timeout,
                )
            except TransportSetupError:
                sender.close()
                raise

            self._sender = sender
            self._receiver = receiver
            self.broadcaster = Broadcaster(
                registry=self.registry,
                sender=sender,
                interval=self.config.send_interval,
                stop_event=self.stop_event,
            )
            self.listener = Listener(
                registry=self.registry,
                receiver=receiver,
                stop_event=self.stop_event,
            )
            self.executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="simulator")
            loops = (("broadcaster", self.broadcaster.run), ("listener", self.listener.run))
            for name, target in loops:
                future = self.executor.submit(target)
                self._futures[name] = future

        for name, future in list(self._futures.items()):
            future.add_done_callback(lambda f, loop=name: self._on_loop_done(loop, f))

        logger.info(
            "Simulator started",
            extra={
                "sensor_count": len(self.registry),
                "destination": str(self.destination),
                "listen": f"{self.settings.listen_host}:{self.settings.listen_port}",
            },
        )

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until a loop ends, then stop the other one.

        Returns ``False`` if ``timeout`` elapsed first. Re-raises the exception of a
        loop that failed.
        """
        with self._lock:
            futures = list(self._futures.values())
        if not futures:
            return True

        done, _pending = wait_futures(futures, timeout=timeout, return_when=FIRST_COMPLETED)
        if not done:
            return False

        self.shutdown()
        for future in futures:
            if future.cancelled():
                continue
            exc = future.exception()
            if exc is not None:
                raise exc
        return True

    def shutdown(self) -> None:
        """Signal both loops to stop, wait for them and release the sockets."""
        self.stop_event.set()
        with self._lock:
            executor = self.executor
            sender, self._sender = self._sender, None
            receiver, self._receiver = self._receiver, None

        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)
        if sender is not None:
            sender.close()
        if receiver is not None:
            receiver.close()
        logger.info("Simulator stopped")

    def stats(self) -> SimulatorStats:
        return SimulatorStats(
            running=self.running,
            broadcaster=self.broadcaster.stats() if self.broadcaster else BroadcasterStats(),
            listener=self.listener.stats() if self.listener else ListenerStats(),
            registry=self.registry.stats(),
        )

    def _on_loop_done(self, loop: str, future: Future[None]) -> None:
        if not future.cancelled():
            exc = future.exception()
            if exc is not None:
                logger.error(
                    "Simulator %s loop failed",
                    loop,
                    exc_info=(type(exc), exc, exc.__traceback__),
                    extra={"reason": str(exc)},
                )
        # Either loop ending takes the other one down with it.
        self.stop_event.set()


@lru_cache
def build_default_simulator(config_path: Optional[str] = None) -> SimulatorService:
    """Factory that wires the simulator from process settings and the config file."""
    settings = get_settings()
    config = load_config(config_path or settings.config_path)
    return SimulatorService(config=config, settings=settings)
