"""Pixel/world coordinate conversion.

Conventions:

* pixel row 0 is the top row of the raster in storage order;
* pixel ``(0, height)`` maps exactly to the world origin, so the
  bottom-left pixel edge sits on ``origin``;
* world Y grows upward, pixel rows grow downward.

All functions are pure.
"""

from __future__ import annotations

import math

from robodash.models.map import GridGeometry


def pixel_to_world(geometry: GridGeometry, px: float, py: float) -> tuple[float, float]:
    """Map pixel coordinates to world meters."""
    wx = geometry.origin.x + px * geometry.resolution
    wy = geometry.origin.y + (geometry.height - py) * geometry.resolution
    return wx, wy


def world_to_pixel(geometry: GridGeometry, wx: float, wy: float) -> tuple[int, int]:
    """Map world meters to (possibly out-of-bounds) pixel indices.

    Inverse of :func:`pixel_to_world` up to ``floor`` truncation.
    """
    px = math.floor((wx - geometry.origin.x) / geometry.resolution)
    py = math.floor(geometry.height - (wy - geometry.origin.y) / geometry.resolution)
    return px, py


def yaw_from_quaternion(x: float, y: float, z: float, w: float) -> float:
    """Rotation about Z in radians."""
    siny_cosp = 2.0 * (w * z + x * y)
    cosy_cosp = 1.0 - 2.0 * (y * y + z * z)
    return math.atan2(siny_cosp, cosy_cosp)


def quaternion_from_yaw(theta: float) -> tuple[float, float, float, float]:
    """Planar heading as an ``(x, y, z, w)`` quaternion."""
    return 0.0, 0.0, math.sin(theta / 2.0), math.cos(theta / 2.0)
