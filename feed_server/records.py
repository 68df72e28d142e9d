"""
Record sources for running the feed server locally.
"""

import json
from pathlib import Path

from tickfetch.models.record import Record

SYMBOLS = ["MSFT", "AAPL", "AMZN", "META"]


def generate_records(count: int) -> list[Record]:
    """Build `count` deterministic records with sequences 1..count."""
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    return [
        Record(
            symbol=SYMBOLS[seq % len(SYMBOLS)],
            indicator="B" if seq % 2 else "S",
            quantity=seq * 10,
            price=100 + seq,
            sequence=seq,
        )
        for seq in range(1, count + 1)
    ]


def load_records(path: str | Path) -> list[Record]:
    """Load records from a JSON array in the client's output format."""
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)
    return [Record(**item) for item in payload]


def parse_sequences(raw: str | None) -> set[int]:
    """Parse a comma separated list such as "3,7,11"."""
    if not raw:
        return set()
    return {int(part) for part in raw.split(",") if part.strip()}
