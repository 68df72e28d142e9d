import asyncio
import logging
import os
from collections.abc import Mapping

from feed_server import FeedServer, generate_records, load_records, parse_sequences

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger()


def build_server(environ: Mapping[str, str] | None = None) -> FeedServer:
    """
    Build a FeedServer from FEED_* environment variables.

    FEED_RECORDS (JSON file) takes precedence over FEED_COUNT (synthetic).
    FEED_DROP and FEED_FAIL_RESENDS are comma separated sequences.
    """
    env = os.environ if environ is None else environ

    records_path = env.get("FEED_RECORDS")
    if records_path:
        records = load_records(records_path)
    else:
        records = generate_records(int(env.get("FEED_COUNT", "14")))

    chunk_size = env.get("FEED_CHUNK_SIZE")

    return FeedServer(
        records,
        host=env.get("FEED_HOST", "0.0.0.0"),
        port=int(env.get("FEED_PORT", "3000")),
        drop=parse_sequences(env.get("FEED_DROP")),
        fail_resends=parse_sequences(env.get("FEED_FAIL_RESENDS")),
        chunk_size=int(chunk_size) if chunk_size else None,
        write_delay=float(env.get("FEED_WRITE_DELAY", "0")),
    )


async def main():
    server = build_server()
    logger.debug(f"Serving {len(server.records)} records, dropping {sorted(server.drop)}")
    await server.serve_forever()


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
