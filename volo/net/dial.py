"""Opening client connections to addresses."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from volo.net.address import Address, UnixAddress
from volo.net.conn import Conn


@dataclass(frozen=True)
class DialConfig:
    """Timeouts in seconds; None means no limit."""

    connect_timeout: Optional[float] = None
    read_write_timeout: Optional[float] = None


@dataclass(frozen=True)
class MakeConnection:
    """Dials addresses, optionally with timeouts."""

    cfg: Optional[DialConfig] = None

    async def make_connection(self, address: Address) -> Conn:
        """Connect to ``address``; raises OSError (or TimeoutError) on failure."""
        if isinstance(address, UnixAddress):
            reader, writer = await asyncio.open_unix_connection(str(address.path))
            return Conn.from_streams(reader, writer)

        host, port = address.sockaddr
        opening = asyncio.open_connection(host, port)
        cfg = self.cfg
        if cfg is not None and cfg.connect_timeout is not None:
            try:
                reader, writer = await asyncio.wait_for(opening, cfg.connect_timeout)
            except asyncio.TimeoutError as exc:
                raise TimeoutError(f"connecting to {address} timed out") from exc
        else:
            reader, writer = await opening

        conn = Conn.from_streams(reader, writer)
        if cfg is not None:
            conn.timeout = cfg.read_write_timeout
        return conn