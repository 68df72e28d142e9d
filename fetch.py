import asyncio
import logging
import os
import sys

from tickfetch.config import ClientConfig
from tickfetch.engine import RecoveryCoordinator, TCPConnectionProvider, write_records_json
from tickfetch.models.exceptions import StreamFailedError

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger()

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INCOMPLETE = 2


async def run(config: ClientConfig) -> int:
    provider = TCPConnectionProvider(
        config.host,
        config.port,
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout,
    )
    coordinator = RecoveryCoordinator(
        provider,
        max_concurrent_resends=config.max_concurrent_resends,
        request_timeout=config.request_timeout,
    )

    try:
        result = await coordinator.run()
    except StreamFailedError as e:
        logger.error(f"An error occurred during the client process: {e}")
        return EXIT_FAILED

    output_path = await write_records_json(config.output_path, result.records)
    logger.info(f"Successfully wrote {len(result.records)} records to {output_path}")

    if not result.complete:
        logger.warning(f"Run incomplete; sequences still missing: {result.still_missing}")
        return EXIT_INCOMPLETE
    return EXIT_OK


def main() -> int:
    try:
        config = ClientConfig.from_env()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_FAILED

    return asyncio.run(run(config))


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
