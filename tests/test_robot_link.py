from __future__ import annotations

import json
import math

import pytest

from conftest import FakeTransport, wait_until
from robodash.bridge import BridgeClient
from robodash.config import BridgeConfig
from robodash.models.goal import GoalPoint, GoalSource
from robodash.models.map import MapMetadata, OccupancyMap, OccupancyRaster, Pose2D
from robodash.models.messages import RobotPose
from robodash.robot import RobotLink, RobotTopics


def _bridge(transport: FakeTransport) -> BridgeClient:
    return BridgeClient(BridgeConfig(reconnect_interval=0), transport=transport)


def _amcl_frame(x: float, y: float, theta: float) -> str:
    msg = {
        "header": {"stamp": {"sec": 10, "nanosec": 0}, "frame_id": "map"},
        "pose": {
            "pose": {
                "position": {"x": x, "y": y, "z": 0.0},
                "orientation": {"x": 0.0, "y": 0.0, "z": math.sin(theta / 2), "w": math.cos(theta / 2)},
            },
            "covariance": [0.0] * 36,
        },
    }
    return json.dumps({"op": "publish", "topic": "/amcl_pose", "msg": msg})


@pytest.mark.asyncio
async def test_connection_sets_up_standard_topics(transport: FakeTransport) -> None:
    async with _bridge(transport) as bridge:
        RobotLink(bridge)
        await bridge.connect()

        frames = [json.loads(frame) for frame in transport.latest.sent]

    assert frames == [
        {"op": "subscribe", "topic": "/amcl_pose", "type": "geometry_msgs/PoseWithCovarianceStamped"},
        {"op": "subscribe", "topic": "/odom", "type": "nav_msgs/Odometry"},
        {"op": "advertise", "topic": "/cmd_vel", "type": "geometry_msgs/Twist"},
        {"op": "advertise", "topic": "/move_base_simple/goal", "type": "geometry_msgs/PoseStamped"},
    ]


@pytest.mark.asyncio
async def test_topic_names_are_configurable(transport: FakeTransport) -> None:
    async with _bridge(transport) as bridge:
        RobotLink(bridge, topics=RobotTopics(odom="/robot1/odom", cmd_vel="/robot1/cmd_vel"))
        await bridge.connect()

        topics = [json.loads(frame)["topic"] for frame in transport.latest.sent]

    assert topics == ["/amcl_pose", "/robot1/odom", "/robot1/cmd_vel", "/move_base_simple/goal"]


@pytest.mark.asyncio
async def test_topics_are_restored_after_reconnect(transport: FakeTransport) -> None:
    async with _bridge(transport) as bridge:
        RobotLink(bridge)
        await bridge.connect()
        transport.latest.drop()
        await wait_until(lambda: len(transport.connections) == 2 and len(transport.latest.sent) == 4)

        assert set(bridge.subscriptions) == {"/amcl_pose", "/odom"}


@pytest.mark.asyncio
async def test_amcl_pose_updates_robot_pose(transport: FakeTransport) -> None:
    seen: list[RobotPose] = []

    async with _bridge(transport) as bridge:
        link = RobotLink(bridge)
        link.on_pose(seen.append)
        await bridge.connect()
        assert link.robot_pose is None

        transport.latest.feed(_amcl_frame(1.5, -2.0, math.pi / 2))
        await wait_until(lambda: bool(seen))

    pose = link.robot_pose
    assert pose is not None
    assert (pose.x, pose.y) == (1.5, -2.0)
    assert pose.theta == pytest.approx(math.pi / 2)
    assert seen == [pose]


@pytest.mark.asyncio
async def test_odometry_updates_robot_pose_and_bad_messages_are_ignored(transport: FakeTransport) -> None:
    async with _bridge(transport) as bridge:
        link = RobotLink(bridge)
        await bridge.connect()

        connection = transport.latest
        connection.feed(json.dumps({"topic": "/odom", "msg": {"pose": {"pose": {"position": {"x": 3.0, "y": 4.0}}}}}))
        await wait_until(lambda: link.robot_pose is not None)
        connection.feed(json.dumps({"topic": "/odom", "msg": {"pose": {"pose": {"position": {"x": "far"}}}}}))
        connection.feed(json.dumps({"topic": "/amcl_pose", "msg": "garbage"}))
        connection.feed(_amcl_frame(5.0, 6.0, 0.0))
        await wait_until(lambda: link.robot_pose is not None and link.robot_pose.x == 5.0)

    assert link.robot_pose == RobotPose(x=5.0, y=6.0, theta=0.0)


@pytest.mark.asyncio
async def test_send_goal_publishes_pose_stamped_in_map_frame(transport: FakeTransport) -> None:
    async with _bridge(transport) as bridge:
        link = RobotLink(bridge, clock=lambda: 1_700_000_000.75)
        await bridge.connect()

        assert await link.send_goal(2.0, -1.0, math.pi)
        frame = json.loads(transport.latest.sent[-1])

    assert frame["op"] == "publish"
    assert frame["topic"] == "/move_base_simple/goal"
    assert frame["type"] == "geometry_msgs/PoseStamped"
    assert frame["msg"]["header"] == {"stamp": {"sec": 1_700_000_000, "nanosec": 0}, "frame_id": "map"}
    assert frame["msg"]["pose"]["position"] == {"x": 2.0, "y": -1.0, "z": 0.0}
    orientation = frame["msg"]["pose"]["orientation"]
    assert (orientation["x"], orientation["y"]) == (0.0, 0.0)
    assert orientation["z"] == pytest.approx(1.0)
    assert orientation["w"] == pytest.approx(0.0, abs=1e-12)


@pytest.mark.asyncio
async def test_send_goal_point_and_velocity(transport: FakeTransport) -> None:
    async with _bridge(transport) as bridge:
        link = RobotLink(bridge)
        await bridge.connect()

        goal = GoalPoint(id="dock", name="Dock", x=0.5, y=0.25, label="kept")
        assert await link.send_goal_point(goal)
        assert await link.send_velocity(0.2, 0.0)
        assert await link.stop()

        goal_frame, drive, stop = (json.loads(frame) for frame in transport.latest.sent[-3:])

    assert goal_frame["msg"]["pose"]["position"] == {"x": 0.5, "y": 0.25, "z": 0.0}
    assert drive["topic"] == "/cmd_vel"
    assert drive["msg"]["linear"]["x"] == 0.2
    assert stop["msg"] == {"linear": {"x": 0.0, "y": 0.0, "z": 0.0}, "angular": {"x": 0.0, "y": 0.0, "z": 0.0}}


@pytest.mark.asyncio
async def test_commands_while_disconnected_return_false(transport: FakeTransport) -> None:
    async with _bridge(transport) as bridge:
        link = RobotLink(bridge)

        assert not await link.send_velocity(1.0, 0.0)
        assert not await link.send_goal(1.0, 1.0)
        assert transport.urls == []


def test_goal_from_pixel_uses_map_transform(transport: FakeTransport) -> None:
    link = RobotLink(_bridge(transport))
    occupancy_map = OccupancyMap(
        raster=OccupancyRaster.placeholder(),
        metadata=MapMetadata(resolution=0.05, origin=Pose2D(-1.0, -1.0, 0.0)),
    )

    goal = link.goal_from_pixel(occupancy_map, 20, 80, 0.3, index=3, timestamp=123)

    assert goal.id == "point-click-123"
    assert goal.name == "Click Point 3"
    assert goal.source is GoalSource.MANUAL
    assert goal.theta == 0.3
    assert (goal.x, goal.y) == pytest.approx((0.0, 0.0))


@pytest.mark.asyncio
async def test_goal_from_robot_needs_a_pose(transport: FakeTransport) -> None:
    async with _bridge(transport) as bridge:
        link = RobotLink(bridge)
        await bridge.connect()
        assert link.goal_from_robot(index=1) is None

        transport.latest.feed(_amcl_frame(1.0, 2.0, 0.5))
        await wait_until(lambda: link.robot_pose is not None)

    goal = link.goal_from_robot(index=2, timestamp=456)
    assert goal is not None
    assert goal.id == "point-robot-456"
    assert goal.name == "Robot Point 2"
    assert goal.source is GoalSource.ROBOT
    assert (goal.x, goal.y) == (1.0, 2.0)
    assert goal.theta == pytest.approx(0.5)
