"""Listening for incoming connections as an async iterator."""

from __future__ import annotations

import asyncio
from typing import Optional, Union

from volo.net.address import Address, UnixAddress, address_from_sockname
from volo.net.conn import Conn

_CLOSED = object()


class Incoming:
    """Accepted connections of a listener, yielded by ``async for``."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._server: Optional[asyncio.AbstractServer] = None
        self._closed = False

    async def _accept(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        if self._closed:
            writer.close()
            return
        await self._queue.put(Conn.from_streams(reader, writer))

    @property
    def local_address(self) -> Address:
        """The address the listener is bound to."""
        if self._server is None or not self._server.sockets:
            raise OSError("listener is not bound")
        return address_from_sockname(self._server.sockets[0].getsockname())

    def __aiter__(self) -> Incoming:
        return self

    async def __anext__(self) -> Conn:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item

    async def close(self) -> None:
        """Stop listening and drop connections that were never taken."""
        if self._closed:
            return
        self._closed = True
        if self._server is not None:
            self._server.close()
        while not self._queue.empty():
            pending = self._queue.get_nowait()
            if isinstance(pending, Conn):
                pending.writer.close()
        self._queue.put_nowait(_CLOSED)

    async def __aenter__(self) -> Incoming:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Incoming({state})"


async def make_incoming(address: Union[Address, Incoming]) -> Incoming:
    """Bind a listener on ``address``; an ``Incoming`` is returned unchanged."""
    if isinstance(address, Incoming):
        return address
    incoming = Incoming()
    if isinstance(address, UnixAddress):
        incoming._server = await asyncio.start_unix_server(incoming._accept, str(address.path))
    else:
        host, port = address.sockaddr
        incoming._server = await asyncio.start_server(incoming._accept, host, port)
    return incoming