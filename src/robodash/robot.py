"""Robot telemetry and command facade over a :class:`BridgeClient`.

Owns:
- the standard pose subscriptions, re-established on every connection
- advertising the command topics
- translating velocity/goal requests into ROS messages
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from robodash._constants import (
    AMCL_POSE_TOPIC,
    AMCL_POSE_TYPE,
    CMD_VEL_TOPIC,
    GOAL_TOPIC,
    MAP_FRAME,
    ODOM_TOPIC,
    ODOM_TYPE,
    POSE_STAMPED_TYPE,
    TWIST_TYPE,
)
from robodash.bridge import BridgeClient
from robodash.models.goal import GoalPoint
from robodash.models.map import OccupancyMap
from robodash.models.messages import (
    Header,
    Odometry,
    Point,
    Pose,
    PoseStamped,
    PoseWithCovarianceStamped,
    Quaternion,
    RobotPose,
    Time,
    Twist,
)

_logger = logging.getLogger(__name__)

PoseListener = Callable[[RobotPose], None]


@dataclass(frozen=True, slots=True)
class RobotTopics:
    """Topic names used by :class:`RobotLink`."""

    amcl_pose: str = AMCL_POSE_TOPIC
    odom: str = ODOM_TOPIC
    cmd_vel: str = CMD_VEL_TOPIC
    goal: str = GOAL_TOPIC
    goal_frame: str = MAP_FRAME


class RobotLink:
    """Pose tracking plus teleop and navigation commands for one robot.

    The link holds a reference to a bridge owned elsewhere; it never
    connects or disconnects it.
    """

    def __init__(
        self,
        bridge: BridgeClient,
        *,
        topics: RobotTopics | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._bridge = bridge
        self._topics = topics or RobotTopics()
        self._clock = clock
        self._robot_pose: RobotPose | None = None
        self._pose_listeners: list[PoseListener] = []
        bridge.on_connection(self._on_connected)

    @property
    def robot_pose(self) -> RobotPose | None:
        """Latest pose from AMCL or odometry, whichever arrived last."""
        return self._robot_pose

    def on_pose(self, listener: PoseListener) -> None:
        self._pose_listeners.append(listener)

    async def _on_connected(self) -> None:
        topics = self._topics
        await self._bridge.subscribe(topics.amcl_pose, AMCL_POSE_TYPE, self._on_amcl_pose)
        await self._bridge.subscribe(topics.odom, ODOM_TYPE, self._on_odom)
        await self._bridge.advertise(topics.cmd_vel, TWIST_TYPE)
        await self._bridge.advertise(topics.goal, POSE_STAMPED_TYPE)

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    def _on_amcl_pose(self, msg: Any) -> None:
        try:
            message = PoseWithCovarianceStamped.model_validate(msg)
        except ValidationError:
            _logger.debug("Malformed %s message", self._topics.amcl_pose, exc_info=True)
            return
        self._update_pose(message.pose.pose)

    def _on_odom(self, msg: Any) -> None:
        try:
            message = Odometry.model_validate(msg)
        except ValidationError:
            _logger.debug("Malformed %s message", self._topics.odom, exc_info=True)
            return
        self._update_pose(message.pose.pose)

    def _update_pose(self, pose: Pose) -> None:
        robot_pose = RobotPose.from_pose(pose)
        self._robot_pose = robot_pose
        for listener in list(self._pose_listeners):
            try:
                listener(robot_pose)
            except Exception:
                _logger.warning("Pose listener failed", exc_info=True)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def send_velocity(self, linear: float, angular: float) -> bool:
        """Publish a planar twist on the velocity topic."""
        if not self._bridge.is_connected():
            _logger.warning("Bridge not connected, cannot send velocity command")
            return False
        return await self._bridge.publish(self._topics.cmd_vel, TWIST_TYPE, Twist.planar(linear, angular))

    async def stop(self) -> bool:
        return await self.send_velocity(0.0, 0.0)

    def build_goal(self, x: float, y: float, theta: float = 0.0) -> PoseStamped:
        return PoseStamped(
            header=Header(stamp=Time(sec=math.floor(self._clock()), nanosec=0), frame_id=self._topics.goal_frame),
            pose=Pose(position=Point(x=x, y=y, z=0.0), orientation=Quaternion.from_yaw(theta)),
        )

    async def send_goal(self, x: float, y: float, theta: float = 0.0) -> bool:
        """Publish a navigation goal in the map frame."""
        if not self._bridge.is_connected():
            _logger.warning("Bridge not connected, cannot send goal")
            return False
        _logger.info("Sending goal x=%.3f y=%.3f theta=%.3f", x, y, theta)
        return await self._bridge.publish(self._topics.goal, POSE_STAMPED_TYPE, self.build_goal(x, y, theta))

    async def send_goal_point(self, goal: GoalPoint) -> bool:
        return await self.send_goal(goal.x, goal.y, goal.theta)

    def goal_from_pixel(
        self,
        occupancy_map: OccupancyMap,
        px: float,
        py: float,
        theta: float = 0.0,
        *,
        index: int,
        timestamp: int | None = None,
    ) -> GoalPoint:
        """Click-to-goal: a goal at the world position of a map pixel."""
        wx, wy = occupancy_map.pixel_to_world(px, py)
        return GoalPoint.from_click(wx, wy, index=index, theta=theta, timestamp=timestamp)

    def goal_from_robot(self, *, index: int, timestamp: int | None = None) -> GoalPoint | None:
        """A goal at the robot's current pose, or ``None`` before any pose arrived."""
        if self._robot_pose is None:
            return None
        return GoalPoint.from_robot_pose(self._robot_pose, index=index, timestamp=timestamp)
