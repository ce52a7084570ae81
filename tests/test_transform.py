from __future__ import annotations

import math

import pytest

from robodash.mapping.transform import (
    pixel_to_world,
    quaternion_from_yaw,
    world_to_pixel,
    yaw_from_quaternion,
)
from robodash.models.map import GridGeometry, Pose2D


def test_bottom_left_pixel_maps_to_origin() -> None:
    geometry = GridGeometry(width=10, height=10, resolution=0.05, origin=Pose2D(-1.0, -1.0, 0.0))

    assert pixel_to_world(geometry, 0, 10) == (-1.0, -1.0)


def test_top_left_pixel_is_one_map_height_above_origin() -> None:
    geometry = GridGeometry(width=10, height=20, resolution=0.5, origin=Pose2D(2.0, 3.0, 0.0))

    assert pixel_to_world(geometry, 0, 0) == (2.0, 13.0)


def test_round_trip_is_within_one_pixel() -> None:
    geometry = GridGeometry(width=37, height=23, resolution=0.05, origin=Pose2D(-1.0, -1.0, 0.0))

    for px in range(geometry.width):
        for py in range(geometry.height):
            rx, ry = world_to_pixel(geometry, *pixel_to_world(geometry, px, py))
            assert abs(rx - px) <= 1
            assert abs(ry - py) <= 1


def test_round_trip_is_exact_for_binary_resolution() -> None:
    geometry = GridGeometry(width=16, height=8, resolution=0.25, origin=Pose2D(-2.0, 0.5, 0.0))

    for px in range(geometry.width):
        for py in range(geometry.height):
            assert world_to_pixel(geometry, *pixel_to_world(geometry, px, py)) == (px, py)


def test_world_to_pixel_may_leave_bounds() -> None:
    geometry = GridGeometry(width=10, height=10, resolution=1.0, origin=Pose2D(0.0, 0.0, 0.0))

    assert world_to_pixel(geometry, -3.5, 12.0) == (-4, -2)


@pytest.mark.parametrize("theta", [0.0, 0.7, -1.2, math.pi / 2, 3.0])
def test_yaw_quaternion_round_trip(theta: float) -> None:
    assert yaw_from_quaternion(*quaternion_from_yaw(theta)) == pytest.approx(theta)


def test_quaternion_from_yaw_is_planar() -> None:
    x, y, z, w = quaternion_from_yaw(math.pi)

    assert (x, y) == (0.0, 0.0)
    assert z == pytest.approx(1.0)
    assert w == pytest.approx(0.0, abs=1e-12)
