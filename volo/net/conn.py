"""Connections over TCP or unix sockets built on asyncio streams."""

from __future__ import annotations

import asyncio
import socket
from dataclasses import dataclass
from typing import Awaitable, Optional, TypeVar

from volo.net.address import Address, address_from_sockname

T = TypeVar("T")


@dataclass
class ConnInfo:
    """Facts about a connection known when it was made."""

    peer_addr: Optional[Address] = None


def _peer_address(writer: asyncio.StreamWriter) -> Optional[Address]:
    peer = writer.get_extra_info("peername")
    if peer is None:
        return None
    try:
        return address_from_sockname(peer)
    except (OSError, ValueError):
        return None


def _set_nodelay(writer: asyncio.StreamWriter) -> None:
    sock = writer.get_extra_info("socket")
    if sock is None or sock.family not in (socket.AF_INET, socket.AF_INET6):
        return
    try:
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    except OSError:
        pass


@dataclass(eq=False)
class Conn:
    """A stream connection; ``timeout`` bounds each read, write and flush."""

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    info: ConnInfo
    timeout: Optional[float] = None

    @classmethod
    def from_streams(cls, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> Conn:
        """Wrap asyncio streams, recording the peer and disabling Nagle for TCP."""
        _set_nodelay(writer)
        return cls(reader, writer, ConnInfo(peer_addr=_peer_address(writer)))

    async def _bounded(self, operation: Awaitable[T]) -> T:
        if self.timeout is None:
            return await operation
        try:
            return await asyncio.wait_for(operation, self.timeout)
        except asyncio.TimeoutError as exc:
            raise TimeoutError("operation timed out") from exc

    async def read(self, n: int = -1) -> bytes:
        """Read up to ``n`` bytes; an empty result means end of stream."""
        return await self._bounded(self.reader.read(n))

    async def write(self, data: bytes) -> int:
        """Write ``data`` and wait until the transport accepts it."""
        self.writer.write(data)
        await self._bounded(self.writer.drain())
        return len(data)

    async def flush(self) -> None:
        await self._bounded(self.writer.drain())

    async def close(self) -> None:
        """Shut the connection down."""
        self.writer.close()
        await self.writer.wait_closed()

    def split(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """Return the read and write halves."""
        return self.reader, self.writer

    async def __aenter__(self) -> Conn:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()