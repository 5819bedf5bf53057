import asyncio

import pytest
import pytest_asyncio

from traffic_broadcaster.registry import Registry
from traffic_broadcaster.server import TrafficBroadcastServer


class FakeConnection:
    def __init__(self, name, open=True, fail=False):
        self.name = name
        self.open = open
        self.fail = fail
        self.sent = []


class FakeTransport:
    """In-memory stand-in for the WebSocket transport"""

    def __init__(self, *connections):
        self.clients = set(connections)

    def list_clients(self):
        return set(self.clients)

    def is_open(self, connection):
        return connection.open

    def send(self, connection, message):
        if connection.fail:
            raise ConnectionError(f"{connection.name} went away")
        connection.sent.append(message)


@pytest.fixture
def registry():
    return Registry.build()


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest_asyncio.fixture
async def running_server():
    server = TrafficBroadcastServer("127.0.0.1", 0)
    stop = asyncio.Event()
    task = asyncio.create_task(server.start_server(stop))
    while server.transport.server is None and not task.done():
        await asyncio.sleep(0.01)
    yield server
    stop.set()
    await asyncio.wait_for(task, timeout=5)
