import pytest

from volo.buf_reader import DEFAULT_BUF_SIZE, BufReader


class ChunkReader:
    def __init__(self, *chunks):
        self._chunks = [bytes(c) for c in chunks if c]
        self.requests = []

    async def read(self, n):
        self.requests.append(n)
        if not self._chunks:
            return b""
        chunk = self._chunks[0]
        head, tail = chunk[:n], chunk[n:]
        if tail:
            self._chunks[0] = tail
        else:
            self._chunks.pop(0)
        return head


def test_default_capacity():
    assert BufReader(ChunkReader()).capacity == DEFAULT_BUF_SIZE


@pytest.mark.asyncio
async def test_compact_at_start():
    reader = BufReader(ChunkReader(bytes([1, 2, 3, 4, 5])), capacity=16)
    assert await reader.fill_buf() == bytes([1, 2, 3, 4, 5])
    reader.compact()
    assert reader.pos == 0
    assert reader.end == 5
    assert reader.buffer() == bytes([1, 2, 3, 4, 5])


@pytest.mark.asyncio
async def test_compact_moves_to_front():
    reader = BufReader(ChunkReader(bytes(range(1, 11))), capacity=16)
    await reader.fill_buf()
    reader.consume(5)
    assert reader.pos == 5
    reader.compact()
    assert reader.pos == 0
    assert reader.end == 5
    assert reader.buffer() == bytes([6, 7, 8, 9, 10])
    assert bytes(reader.buf[:5]) == bytes([6, 7, 8, 9, 10])


@pytest.mark.asyncio
async def test_compact_empty_resets():
    reader = BufReader(ChunkReader(b"abc"), capacity=16)
    await reader.fill_buf()
    reader.consume(3)
    reader.compact()
    assert (reader.pos, reader.end) == (0, 0)


@pytest.mark.asyncio
async def test_fill_buf_does_not_read_when_data_buffered():
    inner = ChunkReader(b"abc", b"def")
    reader = BufReader(inner, capacity=16)
    assert await reader.fill_buf() == b"abc"
    assert await reader.fill_buf() == b"abc"
    assert len(inner.requests) == 1


@pytest.mark.asyncio
async def test_fill_buf_at_least_reads_several_chunks():
    reader = BufReader(ChunkReader(b"ab", b"cd", b"ef"), capacity=8)
    assert await reader.fill_buf_at_least(5) == b"abcdef"


@pytest.mark.asyncio
async def test_fill_buf_at_least_compacts():
    reader = BufReader(ChunkReader(b"abcdefgh", b"ij"), capacity=8)
    assert await reader.fill_buf() == b"abcdefgh"
    reader.consume(6)
    assert await reader.fill_buf_at_least(4) == b"ghij"
    assert reader.pos == 0


@pytest.mark.asyncio
async def test_fill_buf_at_least_eof():
    reader = BufReader(ChunkReader(b"ab"), capacity=8)
    with pytest.raises(EOFError):
        await reader.fill_buf_at_least(4)


@pytest.mark.asyncio
async def test_fill_buf_at_least_too_large():
    reader = BufReader(ChunkReader(b"abcdefgh"), capacity=8)
    with pytest.raises(ValueError):
        await reader.fill_buf_at_least(8)


@pytest.mark.asyncio
async def test_read_small_uses_buffer():
    reader = BufReader(ChunkReader(b"abcdef"), capacity=16)
    assert await reader.read(3) == b"abc"
    assert reader.buffer() == b"def"
    assert await reader.read(10) == b"def"


@pytest.mark.asyncio
async def test_read_large_bypasses_buffer():
    inner = ChunkReader(b"0123456789")
    reader = BufReader(inner, capacity=4)
    assert await reader.read(10) == b"0123456789"
    assert inner.requests == [10]
    assert reader.buffer() == b""


@pytest.mark.asyncio
async def test_read_at_eof_returns_empty():
    reader = BufReader(ChunkReader(), capacity=4)
    assert await reader.read(2) == b""


@pytest.mark.asyncio
async def test_consume_is_clamped():
    reader = BufReader(ChunkReader(b"abc"), capacity=8)
    await reader.fill_buf()
    reader.consume(100)
    assert reader.pos == reader.end == 3


@pytest.mark.asyncio
async def test_clear_discards_buffer():
    reader = BufReader(ChunkReader(b"abc"), capacity=8)
    await reader.fill_buf()
    reader.clear()
    assert reader.buffer() == b""
    assert "0/8" in repr(reader)