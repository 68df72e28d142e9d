import asyncio
import logging
from collections.abc import Iterable

from tickfetch.models.codec import REQUEST_SIZE, CallType, decode_request, encode_record
from tickfetch.models.record import Record

logger = logging.getLogger(__name__)


class FeedServer:
    """
    Reference feed serving stream-all and resend-one requests.

    Records listed in `drop` are omitted from the stream; resends for
    sequences in `fail_resends` close the connection without a payload.
    `chunk_size` and `write_delay` split and pace the writes.
    """

    REQUEST_TIMEOUT = 5.0

    def __init__(
        self,
        records: Iterable[Record],
        host: str = '127.0.0.1',
        port: int = 0,
        drop: Iterable[int] = (),
        fail_resends: Iterable[int] = (),
        chunk_size: int | None = None,
        write_delay: float = 0.0,
    ):
        if chunk_size is not None and chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if write_delay < 0:
            raise ValueError(f"write_delay must be >= 0, got {write_delay}")

        self.host = host
        self.port = port
        self.records = list(records)
        self.drop = set(drop)
        self.fail_resends = set(fail_resends)
        self.chunk_size = chunk_size
        self.write_delay = write_delay
        self.requests: list[tuple[CallType, int]] = []
        self._by_sequence = {record.sequence: record for record in self.records}
        self._server: asyncio.Server | None = None

    @property
    def address(self) -> tuple[str, int]:
        """Bound (host, port); only valid once started."""
        if self._server is None:
            raise RuntimeError("Server not started")
        host, port = self._server.sockets[0].getsockname()[:2]
        return host, port

    async def parse_request(self, reader: asyncio.StreamReader) -> tuple[CallType, int] | None:
        """Read one request with a timeout"""
        try:
            data = await asyncio.wait_for(
                reader.readexactly(REQUEST_SIZE),
                timeout=self.REQUEST_TIMEOUT
            )
            return decode_request(data)
        except asyncio.TimeoutError:
            return None
        except asyncio.IncompleteReadError:
            return None
        except ValueError as e:
            logger.error(f"Error parsing request: {e}")
            return None

    def build_response(self, kind: CallType, sequence: int) -> bytes:
        """Build response bytes for a request"""
        if kind == CallType.STREAM_ALL:
            return b''.join(
                encode_record(record)
                for record in self.records
                if record.sequence not in self.drop
            )

        if sequence in self.fail_resends:
            return b''

        record = self._by_sequence.get(sequence)
        return encode_record(record) if record is not None else b''

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Handle a single one-shot request connection"""
        peer = writer.get_extra_info('peername')

        try:
            request = await self.parse_request(reader)
            if request is None:
                return

            kind, sequence = request
            self.requests.append(request)
            logger.debug(f"--> {kind.name} {sequence} from {peer}")

            payload = self.build_response(kind, sequence)
            step = self.chunk_size or len(payload) or 1
            for offset in range(0, len(payload), step):
                writer.write(payload[offset:offset + step])
                await writer.drain()
                if self.write_delay:
                    await asyncio.sleep(self.write_delay)

            logger.debug(f"<-- {len(payload)} bytes")
        except ConnectionResetError:
            pass
        except Exception as e:
            logger.error(f"Connection error from {peer}: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def start(self):
        """Start listening"""
        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port
        )

        host, port = self.address
        logger.info(f'Feed server running on {host}:{port}')

    async def serve_forever(self):
        """Start and serve until cancelled"""
        await self.start()
        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            logger.info("Server shutdown requested")
        finally:
            await self.stop()

    async def stop(self):
        """Gracefully shutdown the server"""
        if self._server is None:
            return
        logger.info("Shutting down feed server...")
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("Feed server shutdown complete")

    async def __aenter__(self) -> "FeedServer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
