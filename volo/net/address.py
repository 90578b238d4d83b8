"""Network addresses: IP socket addresses and unix socket paths."""

from __future__ import annotations

import ipaddress
import os
from dataclasses import dataclass
from pathlib import PurePath
from typing import Union

from volo.net.probe import probe

IpHost = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class IpAddress:
    """An IP address with a port."""

    host: IpHost
    port: int

    def __post_init__(self) -> None:
        if not isinstance(self.host, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            object.__setattr__(self, "host", ipaddress.ip_address(self.host))
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port out of range: {self.port}")

    @classmethod
    def parse(cls, text: str) -> IpAddress:
        """Parse ``a.b.c.d:port`` or ``[v6]:port``."""
        if text.startswith("["):
            host, sep, rest = text[1:].partition("]")
            if not sep or not rest.startswith(":"):
                raise ValueError(f"invalid socket address: {text!r}")
            port_text = rest[1:]
            ip: IpHost = ipaddress.IPv6Address(host)
        else:
            host, sep, port_text = text.rpartition(":")
            if not sep:
                raise ValueError(f"invalid socket address: {text!r}")
            ip = ipaddress.IPv4Address(host)
        if not (port_text.isascii() and port_text.isdigit()):
            raise ValueError(f"invalid port in socket address: {text!r}")
        return cls(ip, int(port_text))

    @property
    def sockaddr(self) -> tuple[str, int]:
        """The ``(host, port)`` pair used by the socket module."""
        return str(self.host), self.port

    def favor_dual_stack(self) -> IpAddress:
        """Swap an unspecified address for ``::`` when IPv6 serves both stacks."""
        if self.host.is_unspecified and should_favor_ipv6():
            return IpAddress(ipaddress.IPv6Address("::"), self.port)
        return self

    def __str__(self) -> str:
        if isinstance(self.host, ipaddress.IPv6Address):
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class UnixAddress:
    """A unix domain socket path."""

    path: PurePath

    def __post_init__(self) -> None:
        if not isinstance(self.path, PurePath):
            object.__setattr__(self, "path", PurePath(os.fsdecode(self.path)))

    def favor_dual_stack(self) -> UnixAddress:
        return self

    def __str__(self) -> str:
        return "-"


Address = Union[IpAddress, UnixAddress]


def should_favor_ipv6() -> bool:
    """True when IPv4 is missing or IPv6 sockets also accept IPv4."""
    probed = probe()
    return not probed.ipv4 or probed.ipv4_mapped_ipv6


def address_from_sockname(sockname) -> Address:
    """Build an address from a value returned by ``getsockname``/``getpeername``."""
    if isinstance(sockname, tuple):
        host, port = sockname[0], sockname[1]
        return IpAddress(ipaddress.ip_address(host), port)
    if isinstance(sockname, (str, bytes, os.PathLike)):
        path = os.fsdecode(sockname)
        if path and not path.startswith("\0"):
            return UnixAddress(PurePath(path))
    raise OSError("unix socket doesn't have an address")