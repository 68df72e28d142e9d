"""
RecoveryCoordinator - Stream, find gaps, resend, and assemble the result.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from tickfetch.engine.frame_reader import FrameReader
from tickfetch.interfaces.connection_provider import ConnectionProvider
from tickfetch.models.codec import (
    MAX_RESEND_SEQUENCE,
    RECORD_SIZE,
    CallType,
    encode_request,
)
from tickfetch.models.exceptions import (
    IncompleteResendError,
    ResendOutOfRangeError,
    StreamFailedError,
    UnexpectedSequenceError,
)
from tickfetch.models.record import Record
from tickfetch.models.record_store import RecordStore

logger = logging.getLogger(__name__)


class RecoveryState(Enum):
    """Protocol states of a recovery run."""

    IDLE = "idle"
    STREAMING = "streaming"
    GAP_ANALYSIS = "gap_analysis"
    RECOVERING = "recovering"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ResendFailure:
    """
    A missing sequence that could not be recovered.

    Attributes:
        sequence: The sequence that was requested.
        error: Why it failed: a connection-level error (OSError or
               asyncio.TimeoutError), IncompleteResendError,
               MalformedRecordError, UnexpectedSequenceError or
               ResendOutOfRangeError.
    """

    sequence: int
    error: Exception

    @property
    def reason(self) -> str:
        return str(self.error) or type(self.error).__name__


@dataclass
class RecoveryResult:
    """
    Final artifact of a recovery run.

    Attributes:
        records: All received records, ascending by sequence.
        highest_sequence: Highest sequence observed during the run.
        complete: True when records cover every sequence in [1, highest_sequence].
        missing: Gaps found after the initial stream.
        failures: Gaps whose resend failed, ascending by sequence.
    """

    records: list[Record]
    highest_sequence: int
    complete: bool
    missing: list[int] = field(default_factory=list)
    failures: list[ResendFailure] = field(default_factory=list)

    @property
    def still_missing(self) -> list[int]:
        present = {record.sequence for record in self.records}
        return [seq for seq in range(1, self.highest_sequence + 1) if seq not in present]


class RecoveryCoordinator:
    """
    Drives one recovery run through the protocol states:

        IDLE -> STREAMING -> GAP_ANALYSIS -> RECOVERING -> DONE

    FAILED is entered from any state on an unrecoverable error. Only a
    failure of the initial stream is unrecoverable; a failed resend
    leaves its sequence missing and the run continues.

    Every request uses its own connection, which is closed before the
    next request is issued.
    """

    # Bytes requested per read during the initial stream
    READ_CHUNK_SIZE = 4096

    def __init__(
        self,
        provider: ConnectionProvider,
        store: RecordStore | None = None,
        max_concurrent_resends: int = 1,
        request_timeout: float | None = None,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            provider: Opens a new connection for each request.
            store: Store to populate. A fresh one is created if omitted.
            max_concurrent_resends: Resend requests allowed in flight at once.
                                    1 (default) recovers strictly in ascending order.
            request_timeout: Seconds allowed for one whole request/response
                             cycle (connect, send, read to completion).
                             None leaves only the provider's per-operation timeouts.
        """
        if max_concurrent_resends < 1:
            raise ValueError(
                f"max_concurrent_resends must be >= 1, got {max_concurrent_resends}"
            )
        if request_timeout is not None and request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {request_timeout}")

        self._provider = provider
        self._store = store if store is not None else RecordStore()
        self._max_concurrent_resends = max_concurrent_resends
        self._request_timeout = request_timeout
        self._state = RecoveryState.IDLE

        # Serializes store inserts when resends run concurrently
        self._store_lock = asyncio.Lock()

    @property
    def state(self) -> RecoveryState:
        return self._state

    @property
    def store(self) -> RecordStore:
        return self._store

    def _transition(self, new_state: RecoveryState) -> None:
        logger.debug(f"Recovery state {self._state.value} -> {new_state.value}")
        self._state = new_state

    async def run(self) -> RecoveryResult:
        """
        Execute the full recovery protocol.

        Returns:
            The sorted records plus completeness accounting.

        Raises:
            StreamFailedError: If the initial stream could not be read.
            RuntimeError: If this coordinator has already been run.
        """
        if self._state != RecoveryState.IDLE:
            raise RuntimeError(f"Coordinator already used (state={self._state.value})")

        try:
            await self._stream_all()

            self._transition(RecoveryState.GAP_ANALYSIS)
            missing = self._store.missing_up_to(self._store.highest_sequence)
            logger.info(f"Identified {len(missing)} missing sequences")

            failures: list[ResendFailure] = []
            if missing:
                logger.debug(f"Missing sequences: {missing}")
                self._transition(RecoveryState.RECOVERING)
                failures = await self._recover(missing)
                logger.info(
                    f"Finished requesting missing records: "
                    f"{len(missing) - len(failures)} recovered, {len(failures)} failed. "
                    f"Total unique records after resend: {len(self._store)}"
                )

            result = self._build_result(missing, failures)
            self._transition(RecoveryState.DONE)
            return result
        except Exception:
            self._transition(RecoveryState.FAILED)
            raise

    async def _stream_all(self) -> None:
        """Drain the stream-all response into the store until the feed closes."""
        self._transition(RecoveryState.STREAMING)
        target = self._provider.describe()
        logger.info(f"Connecting to {target} for initial stream...")

        reader = FrameReader()
        try:
            await asyncio.wait_for(self._stream_cycle(reader), timeout=self._request_timeout)
        except (OSError, asyncio.TimeoutError) as e:
            logger.error(f"Connection error during initial stream: {e!r}")
            raise StreamFailedError(target, e) from e

        reader.finish()
        logger.info(
            f"Initial stream finished. Highest sequence received: "
            f"{self._store.highest_sequence}, unique records: {len(self._store)}, "
            f"malformed frames skipped: {reader.malformed}"
        )

    async def _stream_cycle(self, reader: FrameReader) -> None:
        async with await self._provider.connect() as conn:
            await conn.send(encode_request(CallType.STREAM_ALL))

            while True:
                chunk = await conn.read(self.READ_CHUNK_SIZE)
                if not chunk:
                    break
                for record in reader.feed(chunk):
                    self._store.insert(record)

    async def _recover(self, missing: list[int]) -> list[ResendFailure]:
        """
        Request every missing sequence.

        Args:
            missing: Gaps in ascending order.

        Returns:
            Failures in ascending sequence order.
        """
        if self._max_concurrent_resends == 1:
            failures = []
            for sequence in missing:
                failure = await self._resend_one(sequence)
                if failure is not None:
                    failures.append(failure)
            return failures

        semaphore = asyncio.Semaphore(self._max_concurrent_resends)

        async def bounded(sequence: int) -> ResendFailure | None:
            async with semaphore:
                return await self._resend_one(sequence)

        tasks = [asyncio.create_task(bounded(seq)) for seq in missing]
        try:
            # gather keeps input order, so failures stay ascending
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return [failure for failure in results if failure is not None]

    async def _resend_one(self, sequence: int) -> ResendFailure | None:
        """
        Request and merge a single missing record.

        Args:
            sequence: The missing sequence.

        Returns:
            None on success, otherwise the failure to report.
        """
        if sequence > MAX_RESEND_SEQUENCE:
            return self._fail(sequence, ResendOutOfRangeError(sequence, MAX_RESEND_SEQUENCE))

        logger.info(f"Requesting missing record sequence: {sequence}")
        reader = FrameReader()

        try:
            record = await asyncio.wait_for(
                self._resend_cycle(sequence, reader), timeout=self._request_timeout
            )
        except (OSError, asyncio.TimeoutError) as e:
            return self._fail(sequence, e)

        if record is None:
            if reader.last_error is not None:
                return self._fail(sequence, reader.last_error)
            return self._fail(sequence, IncompleteResendError(sequence, reader.pending))

        async with self._store_lock:
            self._store.insert(record)

        if record.sequence != sequence:
            logger.warning(
                f"Resend for sequence {sequence} returned sequence {record.sequence}"
            )
            if sequence not in self._store:
                return self._fail(sequence, UnexpectedSequenceError(sequence, record.sequence))

        logger.info(f"Received resent record sequence: {record.sequence}")
        return None

    async def _resend_cycle(self, sequence: int, reader: FrameReader) -> Record | None:
        """Read until one frame arrives, a frame fails to decode, or the feed closes."""
        async with await self._provider.connect() as conn:
            await conn.send(encode_request(CallType.RESEND_ONE, sequence))

            while reader.malformed == 0:
                chunk = await conn.read(RECORD_SIZE - reader.pending)
                if not chunk:
                    break
                record = next(reader.feed(chunk), None)
                if record is not None:
                    return record

        return None

    def _fail(self, sequence: int, error: Exception) -> ResendFailure:
        failure = ResendFailure(sequence=sequence, error=error)
        logger.warning(f"Failed to resend sequence {sequence}: {failure.reason}")
        return failure

    def _build_result(
        self, missing: list[int], failures: list[ResendFailure]
    ) -> RecoveryResult:
        records = self._store.snapshot_sorted()
        highest = self._store.highest_sequence
        complete = len(records) == highest

        if not complete:
            logger.warning(
                f"Output size ({len(records)}) does not match highest sequence "
                f"received ({highest}). Some sequences are still missing."
            )

        return RecoveryResult(
            records=records,
            highest_sequence=highest,
            complete=complete,
            missing=missing,
            failures=failures,
        )
