#!/usr/bin/env python3
"""
Traffic Broadcast System - Server Starter
Command line entry point: parse arguments, configure logging, run the server
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional, Sequence

from traffic_broadcaster import config
from traffic_broadcaster.server import TrafficBroadcastServer

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Traffic Broadcast System - Python Server")
    parser.add_argument("--host", default=config.DEFAULT_HOST, help="Interface to listen on")
    parser.add_argument("--port", type=int, default=config.DEFAULT_PORT, help="Port to listen on")
    parser.add_argument("--log-level", default=config.LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level")
    return parser.parse_args(argv)


def install_signal_handlers(stop: asyncio.Event) -> None:
    """Set the stop event on SIGINT / SIGTERM"""
    loop = asyncio.get_running_loop()

    def request_shutdown(*_):
        logger.info("Received shutdown signal, closing server...")
        loop.call_soon_threadsafe(stop.set)

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, request_shutdown)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            signal.signal(signum, request_shutdown)


async def run(host: str, port: int) -> None:
    stop = asyncio.Event()
    install_signal_handlers(stop)
    server = TrafficBroadcastServer(host, port)
    await server.start_server(stop)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main function"""
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format=config.LOG_FORMAT)

    print("=" * 50)
    print("   Traffic Broadcast System - Python Server")
    print("=" * 50)
    print()
    print(f"WebSocket URL: ws://localhost:{args.port}")
    print("Press Ctrl+C to stop the server")
    print()

    try:
        asyncio.run(run(args.host, args.port))
    except KeyboardInterrupt:
        print("\nServer stopped by user")
    except OSError as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)
    logger.info("Server shutdown complete")


if __name__ == "__main__":
    main()
