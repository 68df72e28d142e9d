"""
Wire codec for feed requests and fixed-width records.

Request:  [call_type:1][resend_seq:1]
Record:   [symbol:4][indicator:1][quantity:4][price:4][sequence:4]

All integers are big-endian; text fields are ASCII, right-padded.
"""

import struct
from enum import IntEnum

from tickfetch.models.exceptions import MalformedRecordError, ResendOutOfRangeError
from tickfetch.models.record import Record

RECORD_SIZE = 17
REQUEST_SIZE = 2
MAX_RESEND_SEQUENCE = 255

SYMBOL_WIDTH = 4

_RECORD_STRUCT = struct.Struct(">4s1siii")
_REQUEST_STRUCT = struct.Struct(">BB")


class CallType(IntEnum):
    """Request kinds understood by the feed."""

    STREAM_ALL = 1
    RESEND_ONE = 2


def encode_request(kind: CallType, resend_sequence: int = 0) -> bytes:
    """
    Encode a request payload.

    Args:
        kind: STREAM_ALL or RESEND_ONE.
        resend_sequence: Target sequence for RESEND_ONE; ignored for STREAM_ALL.
                         Must fit in one unsigned byte.

    Returns:
        The 2-byte request payload.

    Raises:
        ResendOutOfRangeError: If a resend target does not fit the field.
    """
    if kind == CallType.STREAM_ALL:
        resend_sequence = 0
    elif not 0 <= resend_sequence <= MAX_RESEND_SEQUENCE:
        raise ResendOutOfRangeError(resend_sequence, MAX_RESEND_SEQUENCE)

    return _REQUEST_STRUCT.pack(int(kind), resend_sequence)


def decode_request(data: bytes) -> tuple[CallType, int]:
    """Decode a request payload into (kind, resend_sequence)."""
    if len(data) != REQUEST_SIZE:
        raise ValueError(f"Expected {REQUEST_SIZE} request bytes, got {len(data)}")

    kind, resend_sequence = _REQUEST_STRUCT.unpack(data)
    return CallType(kind), resend_sequence


def decode_record(data: bytes) -> Record:
    """
    Decode exactly one fixed-width record.

    Args:
        data: Exactly RECORD_SIZE bytes.

    Returns:
        The decoded Record.

    Raises:
        MalformedRecordError: On a length mismatch or an invalid field.
    """
    if len(data) != RECORD_SIZE:
        raise MalformedRecordError(
            f"expected {RECORD_SIZE} bytes, got {len(data)}", data
        )

    symbol_bytes, indicator_bytes, quantity, price, sequence = _RECORD_STRUCT.unpack(data)

    try:
        symbol = symbol_bytes.decode("ascii").strip(" \x00")
        indicator = indicator_bytes.decode("ascii")
    except UnicodeDecodeError as e:
        raise MalformedRecordError(f"non-ASCII text field: {e}", data) from e

    try:
        return Record(
            symbol=symbol,
            indicator=indicator,
            quantity=quantity,
            price=price,
            sequence=sequence,
        )
    except ValueError as e:
        raise MalformedRecordError(str(e), data) from e


def encode_record(record: Record) -> bytes:
    """Encode a Record into its RECORD_SIZE wire form."""
    symbol_bytes = record.symbol.encode("ascii")
    if len(symbol_bytes) > SYMBOL_WIDTH:
        raise ValueError(f"symbol longer than {SYMBOL_WIDTH} bytes: {record.symbol!r}")

    return _RECORD_STRUCT.pack(
        symbol_bytes.ljust(SYMBOL_WIDTH, b" "),
        record.indicator.encode("ascii"),
        record.quantity,
        record.price,
        record.sequence,
    )
