from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from services.errors import TransportSendError, TransportSetupError

Address = Tuple[Any, ...]


@dataclass(frozen=True)
class Destination:
    """A resolved datagram endpoint."""

    host: str
    port: int
    family: int
    sockaddr: Address

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


def resolve_destination(host: str, port: int, passive: bool = False) -> Destination:
    """Resolve ``host``/``port`` to the first usable UDP address.

    Raises ``OSError`` (usually ``socket.gaierror``) when the name cannot be resolved.
    """
    flags = socket.AI_PASSIVE if passive else 0
    infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM, flags=flags)
    if not infos:
        raise socket.gaierror(f"No address found for {host!r}.")
    family, _type, _proto, _canonname, sockaddr = infos[0]
    return Destination(host=host, port=port, family=family, sockaddr=sockaddr)


class UdpSender:
    """Unconnected datagram socket that sends to one fixed destination."""

    def __init__(self, destination: Destination) -> None:
        self.destination = destination
        try:
            self._socket = socket.socket(destination.family, socket.SOCK_DGRAM)
        except OSError as exc:
            raise TransportSetupError(f"Unable to create send socket: {exc}") from exc

    def send(self, payload: bytes) -> int:
        try:
            return self._socket.sendto(payload, self.destination.sockaddr)
        except OSError as exc:
            raise TransportSendError(
                f"Failed to send {len(payload)} bytes to {self.destination}: {exc}"
            ) from exc

    def close(self) -> None:
        self._socket.close()


class UdpReceiver:
    """Bound datagram socket with a receive timeout so callers can poll a stop flag."""

    def __init__(
        self,
        host: str,
        port: int,
        buffer_size: int = 1024,
        timeout: Optional[float] = 0.5,
    ) -> None:
        self.buffer_size = buffer_size
        sock: Optional[socket.socket] = None
        try:
            local = resolve_destination(host, port, passive=True)
            sock = socket.socket(local.family, socket.SOCK_DGRAM)
            sock.bind(local.sockaddr)
            sock.settimeout(timeout)
        except OSError as exc:
            if sock is not None:
                sock.close()
            raise TransportSetupError(f"Unable to bind listen socket on {host}:{port}: {exc}") from exc
        self._socket = sock

    @property
    def address(self) -> Address:
        return self._socket.getsockname()

    def receive(self) -> Optional[Tuple[bytes, Address]]:
        """Return ``(payload, peer)`` or ``None`` when the timeout elapsed."""
        try:
            return self._socket.recvfrom(self.buffer_size)
        except socket.timeout:
            return None

    def close(self) -> None:
        self._socket.close()
