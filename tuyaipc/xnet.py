"""Network address helpers."""

from __future__ import annotations

import ipaddress
import socket
from typing import Callable

import psutil

from tuyaipc.util import atoi

DOCKER_NETWORK = ipaddress.IPv4Network("172.16.0.0/12")

IPFilter = Callable[[ipaddress.IPv4Address], bool]


def _split_host_port(address: str) -> tuple[str, str]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address: {address}")
    if host.startswith("["):
        if not host.endswith("]"):
            raise ValueError(f"invalid address: {address}")
        host = host[1:-1]
    elif ":" in host:
        raise ValueError(f"too many colons in address: {address}")
    return host, port


def parse_unspecified_port(address: str) -> int:
    """Return the port of an address on no specific host (":8555", "0.0.0.0:8555"), else 0."""
    try:
        host, port = _split_host_port(address)
    except ValueError:
        return 0
    if host not in ("", "0.0.0.0", "[::]"):
        return 0
    return atoi(port)


def is_docker_ip(ip: str | ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    """Tell whether an IPv4 address lies in the usual Docker range 172.16.0.0/12."""
    addr = ipaddress.ip_address(str(ip))
    if isinstance(addr, ipaddress.IPv6Address):
        addr = addr.ipv4_mapped
    return addr is not None and addr in DOCKER_NETWORK


def ip_nets(ip_filter: IPFilter | None = None) -> list[ipaddress.IPv4Interface]:
    """List IPv4 networks of interfaces that are up and not loopback, filtered by ``ip_filter``."""
    stats = psutil.net_if_stats()
    nets: list[ipaddress.IPv4Interface] = []
    for name, addrs in psutil.net_if_addrs().items():
        iface = stats.get(name)
        if iface is None or not iface.isup or "loopback" in getattr(iface, "flags", "").split(","):
            continue
        ips = [(ipaddress.IPv4Address(a.address), a.netmask) for a in addrs if a.family == socket.AF_INET]
        if any(ip.is_loopback for ip, _ in ips):
            continue
        nets += [
            ipaddress.IPv4Interface(f"{ip}/{mask}" if mask else ip)
            for ip, mask in ips
            if ip_filter is None or ip_filter(ip)
        ]
    return nets