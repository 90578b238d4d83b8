"""A buffered async reader that can compact its buffer and wait for a minimum length."""

from __future__ import annotations

from typing import Protocol

DEFAULT_BUF_SIZE = 8 * 1024


class AsyncReader(Protocol):
    async def read(self, n: int) -> bytes:
        ...


class BufReader:
    """Buffers reads from an async reader with a ``read(n)`` coroutine."""

    def __init__(self, inner: AsyncReader, capacity: int = DEFAULT_BUF_SIZE) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self.inner = inner
        self.buf = bytearray(capacity)
        self.pos = 0
        self.end = 0

    @property
    def capacity(self) -> int:
        return len(self.buf)

    def buffer(self) -> bytes:
        """The buffered, unconsumed bytes."""
        return bytes(self.buf[self.pos:self.end])

    def compact(self) -> None:
        """Move the unconsumed bytes to the front of the buffer."""
        if self.end == self.pos:
            self.clear()
            return
        length = self.end - self.pos
        self.buf[:length] = self.buf[self.pos:self.end]
        self.pos = 0
        self.end = length

    def clear(self) -> None:
        self.pos = 0
        self.end = 0

    def consume(self, amount: int) -> None:
        self.pos = min(self.pos + amount, self.end)

    async def _read_more(self) -> int:
        space = self.capacity - self.end
        data = await self.inner.read(space)
        if len(data) > space:
            raise ValueError("reader returned more bytes than requested")
        self.buf[self.end:self.end + len(data)] = data
        self.end += len(data)
        return len(data)

    async def fill_buf(self) -> bytes:
        """Return buffered bytes, reading from the inner reader only when none are buffered."""
        if self.pos >= self.capacity:
            self.clear()
            await self._read_more()
        elif self.pos == self.end and self.end < self.capacity:
            await self._read_more()
        return self.buffer()

    async def fill_buf_at_least(self, length: int) -> bytes:
        """Read until at least ``length`` bytes are buffered; EOFError if the stream ends first."""
        if self.end - self.pos >= length:
            return self.buffer()
        if length >= self.capacity:
            raise ValueError(
                f"requested length {length} does not fit a buffer of {self.capacity}"
            )
        if length > self.capacity - self.pos:
            self.compact()
        while self.end - self.pos < length:
            if not await self._read_more():
                raise EOFError("invalid eof")
        return self.buffer()

    async def read(self, n: int) -> bytes:
        """Read up to ``n`` bytes, bypassing the buffer for large reads when it is empty."""
        if n < 0:
            raise ValueError("n must not be negative")
        if self.pos == self.end and n >= self.capacity:
            data = await self.inner.read(n)
            self.clear()
            return data
        available = await self.fill_buf()
        chunk = available[:n]
        self.consume(len(chunk))
        return chunk

    def __repr__(self) -> str:
        return (
            f"BufReader(reader={self.inner!r}, "
            f"buffer={self.end - self.pos}/{self.capacity})"
        )