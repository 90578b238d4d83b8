"""Detection of the IP stack capabilities of the running host."""

from __future__ import annotations

import functools
import socket
from dataclasses import dataclass


@dataclass(frozen=True)
class IpStackCapability:
    """Which IP protocol families the host can use."""

    ipv4: bool
    ipv6: bool
    ipv4_mapped_ipv6: bool


def _probe_ipv4() -> bool:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP):
            return True
    except OSError:
        return False


def _probe_ipv6() -> bool:
    try:
        sock = socket.socket(socket.AF_INET6, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    except OSError:
        return False
    with sock:
        try:
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
        except (OSError, AttributeError):
            # A failure here is deliberately ignored; binding decides.
            pass
        try:
            sock.bind(("::1", 0))
        except OSError:
            return False
        return True


def _probe_ipv4_mapped_ipv6() -> bool:
    try:
        sock = socket.socket(socket.AF_INET6, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    except OSError:
        return False
    with sock:
        try:
            only_v6 = sock.getsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY)
        except (OSError, AttributeError):
            return False
        return not only_v6


@functools.lru_cache(maxsize=None)
def probe() -> IpStackCapability:
    """Probe the host once and return the cached capabilities."""
    return IpStackCapability(
        ipv4=_probe_ipv4(),
        ipv6=_probe_ipv6(),
        ipv4_mapped_ipv6=_probe_ipv4_mapped_ipv6(),
    )