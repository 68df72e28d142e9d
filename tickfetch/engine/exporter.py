"""
JSON export of recovered records.
"""

import asyncio
import json
from pathlib import Path

from tickfetch.models.record import Record


def _write_sync(path: Path, records: list[Record]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [record.to_dict() for record in records]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


async def write_records_json(path: str | Path, records: list[Record]) -> Path:
    """
    Write records as a JSON array, file I/O in the thread pool.

    Args:
        path: Destination file. Parent directories are created.
        records: Records in the order they should appear.

    Returns:
        The resolved output path.
    """
    output_path = Path(path).resolve()
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, _write_sync, output_path, records)
    return output_path
