#!/usr/bin/env python3
"""
Protocol definitions for Traffic Broadcast System
Defines status records, the snapshot message and its JSON encoding
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Tuple, Union
import json

from traffic_broadcaster import config

# ============================================================================
# STATUS TYPES
# ============================================================================

class RoadColor(IntEnum):
    """Road congestion colors, valued as packed RGB for the wire"""
    GREEN = config.COLOR_GREEN
    YELLOW = config.COLOR_YELLOW
    RED = config.COLOR_RED


class CameraState(str, Enum):
    """Camera availability"""
    ONLINE = "online"
    OFFLINE = "offline"


@dataclass(frozen=True)
class RoadStatus:
    id: str
    density: float
    color: RoadColor


@dataclass(frozen=True)
class CameraStatus:
    id: str
    status: CameraState


@dataclass(frozen=True)
class TrafficSnapshot:
    """Status of every road and camera for one tick"""
    roads: Tuple[RoadStatus, ...]
    cameras: Tuple[CameraStatus, ...]


def traffic_color(density: float) -> RoadColor:
    """
    Map a congestion density to its road color

    Thresholds are exclusive upper bounds: 0.3 is already YELLOW
    and 0.7 is already RED.
    """
    if density < config.GREEN_THRESHOLD:
        return RoadColor.GREEN
    if density < config.YELLOW_THRESHOLD:
        return RoadColor.YELLOW
    return RoadColor.RED

# ============================================================================
# JSON MESSAGE FORMAT (For WebSocket clients)
# ============================================================================

def snapshot_to_dict(snapshot: TrafficSnapshot) -> Dict[str, Any]:
    """
    Create the snapshot message for web clients

    Format:
        {"roads": [{"id", "density", "color"}, ...],
         "cameras": [{"id", "status"}, ...]}

    Args:
        snapshot: Snapshot to encode

    Returns:
        JSON-serializable dict, colors as plain integers
    """
    return {
        "roads": [
            {"id": road.id, "density": road.density, "color": int(road.color)}
            for road in snapshot.roads
        ],
        "cameras": [
            {"id": camera.id, "status": camera.status.value}
            for camera in snapshot.cameras
        ],
    }


def serialize_snapshot(snapshot: TrafficSnapshot) -> str:
    """Encode a snapshot as a compact JSON text message"""
    return json.dumps(snapshot_to_dict(snapshot), separators=(',', ':'))


def parse_snapshot_message(message: Union[str, bytes]) -> TrafficSnapshot:
    """
    Decode a snapshot message received from the server

    Args:
        message: Text (or UTF-8 bytes) WebSocket message

    Returns:
        TrafficSnapshot

    Raises:
        ValueError: message is not valid JSON or not a snapshot
    """
    try:
        data = json.loads(message)
        roads = tuple(
            RoadStatus(
                id=str(item["id"]),
                density=float(item["density"]),
                color=RoadColor(item["color"]),
            )
            for item in data["roads"]
        )
        cameras = tuple(
            CameraStatus(id=str(item["id"]), status=CameraState(item["status"]))
            for item in data["cameras"]
        )
    except (TypeError, KeyError) as e:
        raise ValueError(f"Not a traffic snapshot: {e}") from e
    # json.JSONDecodeError and bad enum values are already ValueErrors
    return TrafficSnapshot(roads=roads, cameras=cameras)


def describe_client_message(message: Union[str, bytes]) -> str:
    """
    Describe an inbound client message for the server log

    JSON objects are reported by their 'type' field, anything else
    as the raw text. Never raises.
    """
    if isinstance(message, bytes):
        message = message.decode('utf-8', errors='replace')
    try:
        data = json.loads(message)
    except (ValueError, RecursionError):
        # oversized integer literals and deep nesting are not JSONDecodeErrors
        return f"text message: {message}"
    if isinstance(data, dict):
        return f"JSON message: {data.get('type', 'unknown')}"
    return f"JSON message: {message}"
