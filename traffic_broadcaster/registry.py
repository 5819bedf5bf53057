#!/usr/bin/env python3
"""
Registry - fixed road and camera ids of the simulated grid
"""

from dataclasses import dataclass
from typing import Tuple

from traffic_broadcaster import config


def build_road_ids() -> Tuple[str, ...]:
    """
    Enumerate road ids, one horizontal and one vertical road per grid line

    Returns:
        ('road-h--10', 'road-v--10', ..., 'road-h-10', 'road-v-10')
    """
    road_ids = []
    for i in range(config.GRID_MIN, config.GRID_MAX + 1):
        road_ids.append(f"road-h-{i}")
        road_ids.append(f"road-v-{i}")
    return tuple(road_ids)


def build_camera_ids() -> Tuple[str, ...]:
    """
    Enumerate camera ids, one per grid intersection except the origin
    """
    camera_ids = []
    for i in range(config.GRID_MIN, config.GRID_MAX + 1):
        for j in range(config.GRID_MIN, config.GRID_MAX + 1):
            if i == 0 and j == 0:
                continue
            camera_ids.append(f"camera-{i}-{j}")
    return tuple(camera_ids)


@dataclass(frozen=True)
class Registry:
    """Read-only ids shared by the broadcast loop for the process lifetime"""
    roads: Tuple[str, ...]
    cameras: Tuple[str, ...]

    @classmethod
    def build(cls) -> "Registry":
        return cls(roads=build_road_ids(), cameras=build_camera_ids())
