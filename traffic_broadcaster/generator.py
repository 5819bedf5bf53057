#!/usr/bin/env python3
"""
Snapshot Generator - synthetic road density and camera status
"""

from typing import Protocol, Sequence

from traffic_broadcaster import config
from traffic_broadcaster.protocol import (
    CameraState,
    CameraStatus,
    RoadStatus,
    TrafficSnapshot,
    traffic_color,
)


class RandomSource(Protocol):
    """Anything with a random() -> float in [0, 1), e.g. random.Random"""

    def random(self) -> float: ...


def generate_snapshot(road_ids: Sequence[str], camera_ids: Sequence[str],
                      rng: RandomSource, force_online: bool = False) -> TrafficSnapshot:
    """
    Generate one snapshot for every registered road and camera

    Each road draws a uniform density and gets the matching color.
    Each camera is online when its draw exceeds 0.5. Nothing is kept
    between calls.

    Args:
        road_ids: Road ids, in registry order
        camera_ids: Camera ids, in registry order
        rng: Random source
        force_online: Report every camera online without drawing
            (used for the snapshot sent on connect)

    Returns:
        TrafficSnapshot with one entry per id, in the given order
    """
    roads = []
    for road_id in road_ids:
        density = rng.random()
        roads.append(RoadStatus(id=road_id, density=density, color=traffic_color(density)))

    cameras = []
    for camera_id in camera_ids:
        if force_online or rng.random() > config.CAMERA_ONLINE_THRESHOLD:
            status = CameraState.ONLINE
        else:
            status = CameraState.OFFLINE
        cameras.append(CameraStatus(id=camera_id, status=status))

    return TrafficSnapshot(roads=tuple(roads), cameras=tuple(cameras))
