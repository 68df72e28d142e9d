"""
Custom exceptions for the feed client.
"""


class TickFetchError(Exception):
    """Base class for all feed client errors."""


class MalformedRecordError(TickFetchError):
    """
    Raised when a frame cannot be decoded into a Record.

    Callers skip the frame and continue; it never aborts a run.
    """

    def __init__(self, reason: str, frame: bytes):
        """
        Initialize malformed record error.

        Args:
            reason: Why decoding failed.
            frame: The raw frame bytes that failed to decode.
        """
        self.reason = reason
        self.frame = bytes(frame)
        super().__init__(f"Malformed record ({len(self.frame)} bytes): {reason}")


class StreamFailedError(TickFetchError):
    """
    Raised when the initial stream cannot be completed.

    The full stream is required for gap analysis, so this fails the run.
    """

    def __init__(self, target: str, cause: BaseException):
        self.target = target
        self.cause = cause
        self.phase = "streaming"
        super().__init__(f"Initial stream from {target} failed: {cause!r}")


class IncompleteResendError(TickFetchError):
    """Raised when a resend connection closes before a full record arrives."""

    def __init__(self, sequence: int, received: int):
        self.sequence = sequence
        self.received = received
        self.phase = "recovering"
        super().__init__(
            f"Connection closed after {received} bytes "
            f"before a full record arrived for sequence {sequence}"
        )


class ResendOutOfRangeError(TickFetchError):
    """Raised when a resend target does not fit the 1-byte request field."""

    def __init__(self, sequence: int, limit: int):
        self.sequence = sequence
        self.limit = limit
        self.phase = "recovering"
        super().__init__(
            f"Sequence {sequence} cannot be requested: resend field holds 0..{limit}"
        )


class UnexpectedSequenceError(TickFetchError):
    """Raised when a resend is answered with a record for another sequence."""

    def __init__(self, requested: int, received: int):
        self.requested = requested
        self.received = received
        self.sequence = requested
        self.phase = "recovering"
        super().__init__(
            f"Resend for sequence {requested} returned sequence {received}"
        )
