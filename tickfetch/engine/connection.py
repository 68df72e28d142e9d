"""
TCP implementation of the connection provider.
"""

import asyncio

from tickfetch.interfaces.connection_provider import Connection, ConnectionProvider


class TCPConnection(Connection):
    """A stream connection with per-read timeouts."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        read_timeout: float,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._read_timeout = read_timeout
        self._closed = False

    async def send(self, payload: bytes) -> None:
        if self._closed:
            raise RuntimeError("Connection is closed")

        self._writer.write(payload)
        await asyncio.wait_for(self._writer.drain(), timeout=self._read_timeout)

    async def read(self, max_bytes: int) -> bytes:
        if self._closed:
            raise RuntimeError("Connection is closed")

        return await asyncio.wait_for(
            self._reader.read(max_bytes),
            timeout=self._read_timeout,
        )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError):
            # Peer already reset the socket; nothing left to release
            pass


class TCPConnectionProvider(ConnectionProvider):
    """
    Opens one TCP connection per request.

    Both the connect and every subsequent read are bounded by timeouts;
    expiry raises asyncio.TimeoutError.
    """

    DEFAULT_CONNECT_TIMEOUT = 5.0
    DEFAULT_READ_TIMEOUT = 30.0

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
    ) -> None:
        """
        Initialize the provider.

        Args:
            host: Feed host name or address.
            port: Feed TCP port.
            connect_timeout: Seconds allowed to establish a connection.
            read_timeout: Seconds allowed for each read or drain.
        """
        if connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be positive, got {connect_timeout}")
        if read_timeout <= 0:
            raise ValueError(f"read_timeout must be positive, got {read_timeout}")

        self.host = host
        self.port = port
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout

    async def connect(self) -> TCPConnection:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(self.host, self.port),
            timeout=self._connect_timeout,
        )
        return TCPConnection(reader, writer, self._read_timeout)

    def describe(self) -> str:
        return f"{self.host}:{self.port}"
