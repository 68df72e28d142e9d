"""
Connection and ConnectionProvider protocols for one-shot feed requests.
"""

from abc import ABC, abstractmethod


class Connection(ABC):
    """
    A single connection carrying exactly one request/response cycle.

    Implementations must support:
    - send(payload) to write the request
    - read(max_bytes) returning b"" once the remote end closes
    - close(), safe to call more than once
    - use as an async context manager that closes on exit
    """

    @abstractmethod
    async def send(self, payload: bytes) -> None:
        """Write the request payload and wait for it to drain."""
        pass

    @abstractmethod
    async def read(self, max_bytes: int) -> bytes:
        """
        Read the next available chunk.

        Args:
            max_bytes: Upper bound on the chunk size.

        Returns:
            Up to max_bytes bytes, or b"" at end-of-stream.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection. Idempotent."""
        pass

    async def __aenter__(self) -> "Connection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class ConnectionProvider(ABC):
    """
    Opens a fresh Connection to the feed for every request.

    Connection-level failures (refused, reset, timeout) surface as
    OSError or asyncio.TimeoutError from connect(), send() or read().
    """

    @abstractmethod
    async def connect(self) -> Connection:
        """Open a new connection to the feed."""
        pass

    @abstractmethod
    def describe(self) -> str:
        """Return a human readable description of the target."""
        pass
