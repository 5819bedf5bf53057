import asyncio
import json
import logging
import random

import pytest

from tests.conftest import FakeConnection, FakeTransport
from traffic_broadcaster.server import BroadcastLoop, LoopState


def test_tick_sends_to_open_clients_only(registry):
    alive = FakeConnection("alive")
    closing = FakeConnection("closing", open=False)
    transport = FakeTransport(alive, closing)
    loop = BroadcastLoop(registry, transport, rng=random.Random(1))

    assert loop.tick() == 1
    assert len(alive.sent) == 1
    assert closing.sent == []
    data = json.loads(alive.sent[0])
    assert len(data["roads"]) == 42
    assert len(data["cameras"]) == 440
    assert loop.ticks == 1


def test_all_clients_get_the_same_tick(registry):
    clients = [FakeConnection(f"client-{i}") for i in range(3)]
    loop = BroadcastLoop(registry, FakeTransport(*clients), rng=random.Random(2))
    loop.tick()
    assert len({client.sent[0] for client in clients}) == 1


def test_failing_client_does_not_block_others(registry, caplog):
    broken = FakeConnection("broken", fail=True)
    healthy = [FakeConnection(f"client-{i}") for i in range(3)]
    transport = FakeTransport(broken, *healthy)
    loop = BroadcastLoop(registry, transport, rng=random.Random(3))

    with caplog.at_level(logging.WARNING):
        assert loop.tick() == 3
    assert all(len(client.sent) == 1 for client in healthy)
    assert "went away" in caplog.text
    assert transport.clients == {broken, *healthy}


def test_tick_without_clients(registry, fake_transport):
    loop = BroadcastLoop(registry, fake_transport, rng=random.Random(4))
    assert loop.tick() == 0
    assert loop.ticks == 1


def test_initial_snapshot_has_every_camera_online(registry):
    newcomer = FakeConnection("newcomer")
    other = FakeConnection("other")
    loop = BroadcastLoop(registry, FakeTransport(newcomer, other), rng=random.Random(5))

    loop.send_initial_snapshot(newcomer)

    assert other.sent == []
    data = json.loads(newcomer.sent[0])
    assert len(data["roads"]) == 42
    assert {camera["status"] for camera in data["cameras"]} == {"online"}


def test_initial_snapshot_failure_is_logged(registry, caplog):
    broken = FakeConnection("broken", fail=True)
    loop = BroadcastLoop(registry, FakeTransport(broken), rng=random.Random(6))
    with caplog.at_level(logging.WARNING):
        loop.send_initial_snapshot(broken)
    assert "Failed to send initial snapshot" in caplog.text


@pytest.mark.asyncio
async def test_run_ticks_until_stopped(registry):
    client = FakeConnection("client")
    loop = BroadcastLoop(registry, FakeTransport(client), rng=random.Random(7), interval=0.02)
    stop = asyncio.Event()
    assert loop.state is LoopState.STOPPED

    task = asyncio.create_task(loop.run(stop))
    while loop.ticks < 3:
        await asyncio.sleep(0.01)
    assert loop.state is LoopState.RUNNING

    stop.set()
    await asyncio.wait_for(task, timeout=1)
    assert loop.state is LoopState.STOPPED
    assert len(client.sent) == loop.ticks


class FlakyTransport(FakeTransport):
    def __init__(self, *connections):
        super().__init__(*connections)
        self.calls = 0

    def list_clients(self):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("transport hiccup")
        return super().list_clients()


@pytest.mark.asyncio
async def test_failed_tick_does_not_stop_loop(registry, caplog):
    client = FakeConnection("client")
    transport = FlakyTransport(client)
    loop = BroadcastLoop(registry, transport, rng=random.Random(8), interval=0.02)
    stop = asyncio.Event()

    with caplog.at_level(logging.ERROR):
        task = asyncio.create_task(loop.run(stop))
        while len(client.sent) < 2:
            await asyncio.sleep(0.01)
        stop.set()
        await asyncio.wait_for(task, timeout=1)

    assert "Error while broadcasting snapshot" in caplog.text
    assert transport.calls >= 3


@pytest.mark.asyncio
async def test_stop_already_set_runs_no_tick(registry):
    client = FakeConnection("client")
    loop = BroadcastLoop(registry, FakeTransport(client), rng=random.Random(9), interval=0)
    stop = asyncio.Event()
    stop.set()

    await asyncio.wait_for(loop.run(stop), timeout=1)

    assert loop.ticks == 0
    assert client.sent == []
    assert loop.state is LoopState.STOPPED
