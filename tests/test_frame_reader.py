"""
Tests for FrameReader buffering over arbitrary chunk boundaries.
"""

import random
import struct

from helpers import make_records, wire
from tickfetch.engine.frame_reader import FrameReader
from tickfetch.models.codec import RECORD_SIZE, encode_record


def random_chunks(data: bytes, rng: random.Random, max_chunk: int) -> list[bytes]:
    chunks = []
    offset = 0
    while offset < len(data):
        size = rng.randint(1, max_chunk)
        chunks.append(data[offset : offset + size])
        offset += size
    return chunks


class TestFrameReaderChunking:
    """Framing correctness under different chunkings."""

    def test_single_chunk(self):
        """Test all frames arriving in one chunk."""
        reader = FrameReader()
        records = list(reader.feed(wire(1, 2, 3)))

        assert records == make_records(1, 2, 3)
        assert reader.pending == 0

    def test_byte_at_a_time(self):
        """Test one byte per feed call."""
        reader = FrameReader()
        data = wire(1, 2, 3, 4)

        records = []
        for i in range(len(data)):
            records.extend(reader.feed(data[i : i + 1]))
            assert reader.pending < RECORD_SIZE

        assert records == make_records(1, 2, 3, 4)

    def test_split_inside_frame(self):
        """Test a split in the middle of an integer field."""
        reader = FrameReader()
        data = wire(7, 8)

        first = list(reader.feed(data[:10]))
        assert first == []
        assert reader.pending == 10

        second = list(reader.feed(data[10:]))
        assert second == make_records(7, 8)

    def test_random_chunkings(self):
        """Test many random chunkings yield identical records in order."""
        rng = random.Random(1234)
        expected = make_records(*rng.sample(range(1, 200), 50))
        data = b"".join(encode_record(r) for r in expected)

        for max_chunk in (1, 5, 16, 17, 18, 40, 1000):
            reader = FrameReader()
            records = []
            for chunk in random_chunks(data, rng, max_chunk):
                records.extend(reader.feed(chunk))

            assert records == expected
            assert reader.pending == 0
            assert reader.frames == len(expected)

    def test_feed_buffers_without_iteration(self):
        """Test bytes are buffered even if the returned iterator is never consumed."""
        reader = FrameReader()
        reader.feed(wire(1)[:10])
        assert reader.pending == 10

        records = list(reader.feed(wire(1)[10:]))
        assert records == make_records(1)
        assert reader.pending == 0

    def test_unconsumed_frames_kept(self):
        """Test complete frames stay buffered until the iterator is drained."""
        reader = FrameReader()
        reader.feed(wire(1, 2))
        assert reader.pending == 2 * RECORD_SIZE

        assert list(reader.feed(b"")) == make_records(1, 2)
        assert reader.pending == 0

    def test_empty_chunk(self):
        """Test that an empty chunk yields nothing."""
        reader = FrameReader()
        assert list(reader.feed(b"")) == []
        assert reader.pending == 0


class TestFrameReaderErrors:
    """Malformed frames and trailing bytes."""

    def test_malformed_frame_skipped(self):
        """Test a bad frame is skipped while neighbours survive."""
        bad = b"MSFT" + b"B" + struct.pack(">iii", 1, 1, 0)
        reader = FrameReader()

        records = list(reader.feed(wire(1) + bad + wire(3)))

        assert [r.sequence for r in records] == [1, 3]
        assert reader.malformed == 1
        assert reader.frames == 3

    def test_finish_discards_partial(self):
        """Test end-of-stream drops a partial frame."""
        reader = FrameReader()
        list(reader.feed(wire(1) + b"\x00" * 5))

        assert reader.finish() == 5
        assert reader.pending == 0

    def test_last_error(self):
        """Test the most recent decode error is kept."""
        bad = b"MSFT" + b"B" + struct.pack(">iii", 1, 1, 0)
        reader = FrameReader()
        assert reader.last_error is None

        list(reader.feed(bad))
        assert "sequence" in reader.last_error.reason

    def test_finish_clean(self):
        """Test end-of-stream with nothing buffered."""
        reader = FrameReader()
        list(reader.feed(wire(1)))
        assert reader.finish() == 0
