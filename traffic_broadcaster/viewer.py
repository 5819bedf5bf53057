#!/usr/bin/env python3
"""
Traffic Broadcast System - Console Viewer
Connects to the broadcast server and logs a one-line summary per snapshot.
"""

import argparse
import asyncio
import logging
from collections import Counter
from typing import Dict, Optional, Sequence

from websockets.asyncio.client import connect
from websockets.exceptions import WebSocketException

from traffic_broadcaster import config
from traffic_broadcaster.protocol import CameraState, RoadColor, TrafficSnapshot, parse_snapshot_message

logger = logging.getLogger(__name__)


def summarize_snapshot(snapshot: TrafficSnapshot) -> Dict[str, int]:
    colors = Counter(road.color for road in snapshot.roads)
    online = sum(1 for camera in snapshot.cameras if camera.status is CameraState.ONLINE)
    return {
        "roads": len(snapshot.roads),
        "green": colors[RoadColor.GREEN],
        "yellow": colors[RoadColor.YELLOW],
        "red": colors[RoadColor.RED],
        "cameras": len(snapshot.cameras),
        "online": online,
    }


def format_summary(summary: Dict[str, int]) -> str:
    return (f"roads {summary['roads']} "
            f"(green {summary['green']}, yellow {summary['yellow']}, red {summary['red']}) | "
            f"cameras online {summary['online']}/{summary['cameras']}")


class ConsoleViewer:
    def __init__(self, ws_url: str):
        self.ws_url = ws_url
        self.running = True
        self.snapshots_received = 0
        self.connections = 0
        self.ws = None

    async def run_once(self):
        async with connect(
            self.ws_url,
            ping_interval=config.PING_INTERVAL,
            ping_timeout=config.PING_TIMEOUT,
            compression=None
        ) as ws:
            self.ws = ws
            self.connections += 1
            logger.info(f"Connected to {self.ws_url}")
            async for message in ws:
                try:
                    snapshot = parse_snapshot_message(message)
                except ValueError as e:
                    logger.warning(f"Ignoring message: {e}")
                    continue
                self.snapshots_received += 1
                logger.info(f"#{self.snapshots_received} {format_summary(summarize_snapshot(snapshot))}")

    async def run(self):
        logger.info(f"Connecting to {self.ws_url} ...")
        while self.running:
            try:
                await self.run_once()
            except (WebSocketException, OSError) as e:
                if not self.running:
                    break
                logger.warning(f"WebSocket error: {e}. Reconnecting in {config.RECONNECT_DELAY}s...")
            else:
                if not self.running:
                    break
                logger.info(f"Server closed the connection. Reconnecting in {config.RECONNECT_DELAY}s...")
            await asyncio.sleep(config.RECONNECT_DELAY)

    async def stop(self):
        """Stop reconnecting and close the current connection"""
        self.running = False
        if self.ws is not None:
            await self.ws.close()


def main(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(description="Traffic Broadcast System - Console Viewer")
    parser.add_argument("--url", default=config.DEFAULT_SERVER_URL, help="Broadcast server URL")
    args = parser.parse_args(argv)
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)

    viewer = ConsoleViewer(args.url)
    try:
        asyncio.run(viewer.run())
    except KeyboardInterrupt:
        print("\nViewer stopped by user")


if __name__ == '__main__':
    main()
