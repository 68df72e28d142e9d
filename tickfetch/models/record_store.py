"""
RecordStore - Deduplicated collection of received records keyed by sequence.
"""

import logging
from collections.abc import Iterator

from tickfetch.models.record import Record

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Authoritative collection of records for one recovery run.

    Supports:
    - Upsert by sequence (last write wins)
    - Running maximum of every sequence ever inserted
    - Gap queries over [1, n]
    - Sorted snapshot for output
    """

    def __init__(self) -> None:
        self._records: dict[int, Record] = {}
        self._highest_sequence: int = 0
        self._conflicts: int = 0

    @property
    def highest_sequence(self) -> int:
        """Maximum sequence ever inserted, 0 if empty."""
        return self._highest_sequence

    @property
    def conflicts(self) -> int:
        """Number of duplicates whose payload differed from the stored one."""
        return self._conflicts

    def insert(self, record: Record) -> None:
        """
        Insert or replace the record for its sequence.

        Args:
            record: The record to store.
        """
        existing = self._records.get(record.sequence)
        if existing is not None and existing != record:
            self._conflicts += 1
            logger.warning(
                f"Divergent duplicate for sequence {record.sequence}: "
                f"replacing {existing} with {record}"
            )

        self._records[record.sequence] = record

        if record.sequence > self._highest_sequence:
            self._highest_sequence = record.sequence

    def get(self, sequence: int) -> Record | None:
        return self._records.get(sequence)

    def missing_up_to(self, n: int) -> list[int]:
        """
        Get the sequences in [1, n] that have no record.

        Args:
            n: Upper bound (inclusive).

        Returns:
            Missing sequences in ascending order.
        """
        return [seq for seq in range(1, n + 1) if seq not in self._records]

    def snapshot_sorted(self) -> list[Record]:
        """Return all records ordered by ascending sequence."""
        return [self._records[seq] for seq in sorted(self._records)]

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, sequence: object) -> bool:
        return sequence in self._records

    def __iter__(self) -> Iterator[Record]:
        return iter(self.snapshot_sorted())
