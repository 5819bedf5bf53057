#!/usr/bin/env python3
"""
Traffic Broadcast System - WebSocket Server
Push synthetic road and camera status to web clients once per second
"""

import asyncio
import logging
import random
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Set, Union

from websockets.asyncio.server import Server, ServerConnection, broadcast, serve
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from traffic_broadcaster import config
from traffic_broadcaster.generator import RandomSource, generate_snapshot
from traffic_broadcaster.protocol import describe_client_message, serialize_snapshot
from traffic_broadcaster.registry import Registry

logger = logging.getLogger(__name__)

ConnectHandler = Callable[[Any], None]
CloseHandler = Callable[[Any], None]
MessageHandler = Callable[[Any, Union[str, bytes]], None]

# ============================================================================
# TRANSPORT
# ============================================================================

class ClientTransport(Protocol):
    """What the broadcast loop needs from a real-time transport"""

    def list_clients(self) -> Iterable[Any]: ...

    def is_open(self, connection: Any) -> bool: ...

    def send(self, connection: Any, message: str) -> None: ...


class WebSocketTransport:
    """
    WebSocket server owning the set of connected clients

    Callbacks registered with on_connect / on_message / on_close run
    synchronously on the event loop for every connection event.
    """

    def __init__(self, host=config.DEFAULT_HOST, port=config.DEFAULT_PORT):
        self.host = host
        self.port = port
        self.clients: Set[ServerConnection] = set()
        self.server: Optional[Server] = None
        self._connect_handlers: List[ConnectHandler] = []
        self._message_handlers: List[MessageHandler] = []
        self._close_handlers: List[CloseHandler] = []

    def on_connect(self, handler: ConnectHandler) -> None:
        self._connect_handlers.append(handler)

    def on_message(self, handler: MessageHandler) -> None:
        self._message_handlers.append(handler)

    def on_close(self, handler: CloseHandler) -> None:
        self._close_handlers.append(handler)

    def list_clients(self) -> Set[ServerConnection]:
        return set(self.clients)

    def is_open(self, connection: ServerConnection) -> bool:
        return connection.protocol.state is State.OPEN

    def send(self, connection: ServerConnection, message: str) -> None:
        """Queue a text message without waiting for it to be written"""
        # broadcast() skips closed connections and logs write failures
        broadcast([connection], message)

    @property
    def bound_port(self) -> int:
        """Port actually listened on (differs from port when port is 0)"""
        if self.server is None:
            return self.port
        return next(iter(self.server.sockets)).getsockname()[1]

    def register_client(self, websocket: ServerConnection) -> None:
        """Register new client connection"""
        self.clients.add(websocket)
        logger.info(f"New client connected: {_client_info(websocket)}")
        for handler in self._connect_handlers:
            handler(websocket)

    def unregister_client(self, websocket: ServerConnection) -> None:
        """Unregister client connection"""
        self.clients.discard(websocket)
        logger.info(f"Client disconnected: {_client_info(websocket)}")
        for handler in self._close_handlers:
            handler(websocket)

    def handle_message(self, websocket: ServerConnection, message: Union[str, bytes]) -> None:
        """Handle incoming message from client: log it, never reply"""
        logger.info(f"Received {describe_client_message(message)}")
        for handler in self._message_handlers:
            handler(websocket, message)

    async def handle_client(self, websocket: ServerConnection) -> None:
        """Handle individual client connection"""
        self.register_client(websocket)
        try:
            async for message in websocket:
                self.handle_message(websocket, message)
        except ConnectionClosed:
            pass
        except Exception as e:
            logger.error(f"Error in client handler: {e}")
        finally:
            self.unregister_client(websocket)

    async def start(self) -> None:
        """Bind the listening socket"""
        self.server = await serve(
            self.handle_client,
            self.host,
            self.port,
            ping_interval=config.PING_INTERVAL,
            ping_timeout=config.PING_TIMEOUT,
            close_timeout=config.CLOSE_TIMEOUT,
            compression="deflate" if config.ENABLE_COMPRESSION else None,
        )

    async def close(self) -> None:
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()


def _client_info(websocket: ServerConnection) -> str:
    address = websocket.remote_address
    if not address:
        return "unknown"
    return f"{address[0]}:{address[1]}"

# ============================================================================
# BROADCAST LOOP
# ============================================================================

class LoopState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class BroadcastLoop:
    """
    Generate, serialize and fan out one snapshot per tick

    The loop only reads the transport's clients; membership belongs
    to the transport. One failing client never blocks the others.
    """

    def __init__(self, registry: Registry, transport: ClientTransport,
                 rng: Optional[RandomSource] = None,
                 interval: float = config.BROADCAST_INTERVAL):
        self.registry = registry
        self.transport = transport
        self.rng = rng if rng is not None else random.Random()
        self.interval = interval
        self.state = LoopState.STOPPED
        self.ticks = 0

    def tick(self) -> int:
        """
        Broadcast one snapshot to every open client

        Returns:
            Number of clients the message was handed to
        """
        snapshot = generate_snapshot(self.registry.roads, self.registry.cameras, self.rng)
        message = serialize_snapshot(snapshot)

        sent = 0
        for client in list(self.transport.list_clients()):
            if not self.transport.is_open(client):
                continue
            try:
                self.transport.send(client, message)
                sent += 1
            except Exception as e:
                logger.warning(f"Failed to send snapshot to client: {e}")

        self.ticks += 1
        logger.debug(f"Tick {self.ticks}: broadcasted snapshot to {sent} clients")
        return sent

    def send_initial_snapshot(self, connection: Any) -> None:
        """Send a snapshot with every camera online to a newly joined client"""
        snapshot = generate_snapshot(self.registry.roads, self.registry.cameras,
                                     self.rng, force_online=True)
        try:
            self.transport.send(connection, serialize_snapshot(snapshot))
        except Exception as e:
            logger.warning(f"Failed to send initial snapshot: {e}")

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        """
        Tick every interval until stop is set (or forever without one)

        Ticks are scheduled on the event loop clock, so a slow tick does
        not shift the following ones. Ticks that are missed entirely are
        skipped, not replayed.
        """
        loop = asyncio.get_running_loop()
        self.state = LoopState.RUNNING
        next_tick = loop.time() + self.interval
        try:
            while True:
                if await _wait_until(next_tick, stop):
                    break
                try:
                    self.tick()
                except Exception:
                    logger.exception("Error while broadcasting snapshot")
                next_tick += self.interval
                if next_tick <= loop.time():
                    next_tick = loop.time() + self.interval
        finally:
            self.state = LoopState.STOPPED


async def _wait_until(deadline: float, stop: Optional[asyncio.Event]) -> bool:
    """Sleep until the loop clock reaches deadline; True if stop was set"""
    delay = max(0.0, deadline - asyncio.get_running_loop().time())
    if stop is None:
        await asyncio.sleep(delay)
        return False
    if stop.is_set():
        return True
    try:
        await asyncio.wait_for(stop.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return False
    return True

# ============================================================================
# SERVER
# ============================================================================

class TrafficBroadcastServer:
    def __init__(self, host=config.DEFAULT_HOST, port=config.DEFAULT_PORT,
                 registry: Optional[Registry] = None,
                 rng: Optional[RandomSource] = None,
                 interval: float = config.BROADCAST_INTERVAL):
        self.registry = registry if registry is not None else Registry.build()
        self.transport = WebSocketTransport(host, port)
        self.loop = BroadcastLoop(self.registry, self.transport, rng=rng, interval=interval)
        self.transport.on_connect(self.loop.send_initial_snapshot)

    @property
    def port(self) -> int:
        return self.transport.bound_port

    async def start_server(self, stop: Optional[asyncio.Event] = None) -> None:
        """Start the WebSocket server and broadcast until stop is set"""
        host = self.transport.host
        logger.info(f"Starting Traffic Broadcast WebSocket Server on {host}:{self.transport.port}")

        await self.transport.start()

        logger.info("Server started successfully!")
        logger.info(f"WebSocket URL: ws://{host}:{self.port}")
        logger.info(f"Broadcasting {len(self.registry.roads)} roads and "
                    f"{len(self.registry.cameras)} cameras every {self.loop.interval}s")

        try:
            await self.loop.run(stop)
        finally:
            await self.transport.close()
            logger.info("Server closed")

    def get_status(self) -> Dict[str, Any]:
        """Get server status information"""
        return {
            "status": self.loop.state.value,
            "connected_clients": len(self.transport.clients),
            "roads": len(self.registry.roads),
            "cameras": len(self.registry.cameras),
            "ticks": self.loop.ticks,
            "timestamp": datetime.now().isoformat(),
            "server": "Python WebSocket Server",
        }
