"""
Record builders and connection doubles shared by the tests.
"""

import asyncio

from feed_server import FeedServer
from tickfetch.engine.connection import TCPConnectionProvider
from tickfetch.interfaces.connection_provider import Connection, ConnectionProvider
from tickfetch.models.codec import encode_record
from tickfetch.models.record import Record

SYMBOLS = ["MSFT", "AAPL", "AMZN", "META"]


def make_record(sequence: int, symbol: str | None = None) -> Record:
    """Build a deterministic record for a sequence."""
    return Record(
        symbol=symbol or SYMBOLS[sequence % len(SYMBOLS)],
        indicator="B" if sequence % 2 else "S",
        quantity=sequence * 10,
        price=100 + sequence,
        sequence=sequence,
    )


def make_records(*sequences: int) -> list[Record]:
    return [make_record(seq) for seq in sequences]


def wire(*sequences: int) -> bytes:
    """Concatenated wire bytes for the given sequences."""
    return b"".join(encode_record(make_record(seq)) for seq in sequences)


def provider_for(server: FeedServer, **kwargs) -> TCPConnectionProvider:
    host, port = server.address
    kwargs.setdefault("connect_timeout", 2.0)
    kwargs.setdefault("read_timeout", 2.0)
    return TCPConnectionProvider(host, port, **kwargs)


class ScriptedConnection(Connection):
    """Connection that replays a fixed list of chunks, then end-of-stream."""

    def __init__(self, chunks: list[bytes | BaseException], read_delay: float = 0.0, on_close=None):
        self._chunks = list(chunks)
        self._read_delay = read_delay
        self._on_close = on_close
        self.sent: list[bytes] = []
        self.closed = False

    async def send(self, payload: bytes) -> None:
        self.sent.append(payload)

    async def read(self, max_bytes: int) -> bytes:
        if self._read_delay:
            await asyncio.sleep(self._read_delay)

        if not self._chunks:
            return b""

        head = self._chunks[0]
        if isinstance(head, BaseException):
            self._chunks.pop(0)
            raise head

        chunk, rest = head[:max_bytes], head[max_bytes:]
        if rest:
            self._chunks[0] = rest
        else:
            self._chunks.pop(0)
        return chunk

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close()


class ScriptedProvider(ConnectionProvider):
    """
    Hands out one scripted response per connect() call, in order.

    An exception in place of a chunk list is raised by connect() itself.
    `read_delay` pauses before every read; `read_delays` overrides it per
    connection index (0-based). `max_open` records the peak number of
    connections open at the same time.
    """

    def __init__(
        self,
        responses: list[list[bytes | BaseException] | BaseException],
        read_delay: float = 0.0,
        read_delays: dict[int, float] | None = None,
    ):
        self._responses = list(responses)
        self._read_delay = read_delay
        self._read_delays = read_delays or {}
        self.connections: list[ScriptedConnection] = []
        self.open = 0
        self.max_open = 0

    async def connect(self) -> ScriptedConnection:
        if not self._responses:
            raise ConnectionRefusedError("no scripted response left")

        response = self._responses.pop(0)
        if isinstance(response, BaseException):
            raise response

        delay = self._read_delays.get(len(self.connections), self._read_delay)
        conn = ScriptedConnection(response, read_delay=delay, on_close=self._closed)
        self.connections.append(conn)
        self.open += 1
        self.max_open = max(self.max_open, self.open)
        return conn

    def _closed(self) -> None:
        self.open -= 1

    def describe(self) -> str:
        return "scripted"


class FlakyProvider(TCPConnectionProvider):
    """TCP provider that refuses selected connect() calls (1-based)."""

    def __init__(self, host: str, port: int, failing_calls: set[int]):
        super().__init__(host, port, connect_timeout=2.0, read_timeout=2.0)
        self.failing_calls = failing_calls
        self.calls = 0

    async def connect(self):
        self.calls += 1
        if self.calls in self.failing_calls:
            raise ConnectionResetError(f"connection {self.calls} reset")
        return await super().connect()
