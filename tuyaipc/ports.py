"""UDP port allocation for RTP/RTCP listeners."""

from __future__ import annotations

import ipaddress
import socket
import threading
from dataclasses import dataclass


class PortAllocationError(OSError):
    """Raised when no suitable UDP port could be bound."""


def _host(ip) -> str:
    return "0.0.0.0" if ip is None else str(ip)


def _bind_udp(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ipaddress.ip_address(host).version == 6 else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_DGRAM)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    return sock


@dataclass
class UDPPortPair:
    """Bound RTP socket on an even port and RTCP socket on the next one."""

    rtp_socket: socket.socket | None
    rtcp_socket: socket.socket | None
    rtp_port: int
    rtcp_port: int

    def close(self) -> None:
        """Close both sockets."""
        if self.rtp_socket is not None:
            self.rtp_socket.close()
        if self.rtcp_socket is not None:
            self.rtcp_socket.close()

    def __enter__(self) -> "UDPPortPair":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class PortAllocator:
    """Binds UDP sockets, serialising allocations with a lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def get_consecutive_udp_ports(self, ip, max_attempts: int) -> UDPPortPair:
        """Bind an even port and the port after it, trying up to ``max_attempts`` times."""
        host = _host(ip)
        with self._lock:
            for _ in range(max_attempts):
                try:
                    probe = _bind_udp(host, 0)
                except OSError:
                    continue
                base_port = probe.getsockname()[1]
                probe.close()

                if base_port % 2 == 1:
                    base_port -= 1

                try:
                    rtp = _bind_udp(host, base_port)
                except OSError:
                    continue
                try:
                    rtcp = _bind_udp(host, base_port + 1)
                except OSError:
                    rtp.close()
                    continue
                return UDPPortPair(rtp, rtcp, base_port, base_port + 1)

        raise PortAllocationError(
            f"failed to allocate consecutive UDP ports after {max_attempts} attempts"
        )

    def get_single_udp_port(self, ip) -> tuple[socket.socket, int]:
        """Bind any free UDP port and return the socket and its port."""
        sock = _bind_udp(_host(ip), 0)
        return sock, sock.getsockname()[1]

    def get_udp_port_in_range(self, ip, min_port: int, max_port: int) -> tuple[socket.socket, int]:
        """Bind the first free UDP port from ``min_port`` to ``max_port`` inclusive."""
        host = _host(ip)
        with self._lock:
            for port in range(min_port, max_port + 1):
                try:
                    return _bind_udp(host, port), port
                except OSError:
                    continue
        raise PortAllocationError(f"no available UDP port in range {min_port}-{max_port}")


DEFAULT_PORT_ALLOCATOR = PortAllocator()