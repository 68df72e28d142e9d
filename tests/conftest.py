"""
Shared pytest fixtures for feed client tests.
"""

import asyncio

import pytest

from feed_server import FeedServer
from helpers import make_records


@pytest.fixture
def sample_records():
    """Provide records with sequences 1..10."""
    return make_records(*range(1, 11))


@pytest.fixture
async def feed_factory():
    """Start FeedServers on free ports and stop them after the test."""
    servers: list[FeedServer] = []

    async def factory(records, **kwargs) -> FeedServer:
        server = FeedServer(records, host="127.0.0.1", port=0, **kwargs)
        await server.start()
        servers.append(server)
        return server

    try:
        yield factory
    finally:
        for server in servers:
            await server.stop()


@pytest.fixture
async def closed_port():
    """Provide a local port with nothing listening on it."""
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    return port
