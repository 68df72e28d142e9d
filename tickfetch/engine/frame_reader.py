"""
FrameReader - Split an unframed byte stream into fixed-width records.
"""

import logging
from collections.abc import Iterator

from tickfetch.models.codec import RECORD_SIZE, decode_record
from tickfetch.models.exceptions import MalformedRecordError
from tickfetch.models.record import Record

logger = logging.getLogger(__name__)


class FrameReader:
    """
    Buffers arbitrarily chunked bytes from one connection and yields
    every complete RECORD_SIZE frame as a decoded Record.

    One instance per connection; discard it when the connection closes.
    """

    def __init__(self, frame_size: int = RECORD_SIZE) -> None:
        self._frame_size = frame_size
        self._buffer = bytearray()
        self._frames: int = 0
        self._malformed: int = 0
        self._last_error: MalformedRecordError | None = None

    @property
    def pending(self) -> int:
        """Bytes buffered toward the next frame."""
        return len(self._buffer)

    @property
    def frames(self) -> int:
        """Number of complete frames consumed so far."""
        return self._frames

    @property
    def malformed(self) -> int:
        """Number of frames skipped because they failed to decode."""
        return self._malformed

    @property
    def last_error(self) -> MalformedRecordError | None:
        """Decode error of the most recently skipped frame."""
        return self._last_error

    def feed(self, chunk: bytes) -> Iterator[Record]:
        """
        Append a chunk, then return an iterator over every complete record.

        The chunk is buffered immediately, whether or not the returned
        iterator is consumed. Frames are extracted lazily as it is iterated;
        frames that fail to decode are logged and skipped. Any remainder
        shorter than one frame stays buffered for the next call.

        Args:
            chunk: Bytes as received from the connection.

        Returns:
            Iterator of decoded records in arrival order.
        """
        self._buffer.extend(chunk)
        return self._drain()

    def _drain(self) -> Iterator[Record]:
        while len(self._buffer) >= self._frame_size:
            frame = bytes(self._buffer[: self._frame_size])
            del self._buffer[: self._frame_size]
            self._frames += 1

            try:
                record = decode_record(frame)
            except MalformedRecordError as e:
                self._malformed += 1
                self._last_error = e
                logger.warning(f"Skipping frame #{self._frames}: {e.reason}")
                continue

            yield record

    def finish(self) -> int:
        """
        Mark end-of-stream and drop any partial frame.

        Returns:
            Number of trailing bytes discarded.
        """
        leftover = len(self._buffer)
        if leftover:
            logger.warning(
                f"Discarding {leftover} trailing bytes (partial frame) at end of stream"
            )
        self._buffer.clear()
        return leftover
