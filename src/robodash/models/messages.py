"""rosbridge envelopes and the ROS message shapes the dashboard uses."""

from __future__ import annotations

import enum
import json
from typing import Any

from pydantic import Field

from robodash.mapping.transform import quaternion_from_yaw, yaw_from_quaternion
from robodash.models._base import BridgeModel


class BridgeOp(enum.StrEnum):
    SUBSCRIBE = "subscribe"
    PUBLISH = "publish"
    ADVERTISE = "advertise"


class OutboundEnvelope(BridgeModel):
    """Control frame sent to the bridge."""

    op: BridgeOp
    topic: str
    type: str
    msg: Any = None

    def to_frame(self) -> str:
        """JSON text frame; ``msg`` is omitted when unset.

        Raises ``TypeError``/``ValueError`` when ``msg`` is not JSON serializable.
        """
        frame: dict[str, Any] = {"op": self.op.value, "topic": self.topic, "type": self.type}
        if self.msg is not None:
            frame["msg"] = self.msg.to_wire() if isinstance(self.msg, BridgeModel) else self.msg
        return json.dumps(frame, separators=(",", ":"), allow_nan=False)


class InboundEnvelope(BridgeModel):
    """Frame received from the bridge; only ``topic`` and ``msg`` are used."""

    topic: str
    msg: Any = None
    op: str | None = None


# ---------------------------------------------------------------------------
# geometry_msgs / std_msgs / nav_msgs
# ---------------------------------------------------------------------------


class Vector3(BridgeModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Point(BridgeModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Quaternion(BridgeModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    @classmethod
    def from_yaw(cls, theta: float) -> Quaternion:
        x, y, z, w = quaternion_from_yaw(theta)
        return cls(x=x, y=y, z=z, w=w)


class Pose(BridgeModel):
    position: Point = Field(default_factory=Point)
    orientation: Quaternion = Field(default_factory=Quaternion)


class Time(BridgeModel):
    sec: int = 0
    nanosec: int = 0


class Header(BridgeModel):
    stamp: Time = Field(default_factory=Time)
    frame_id: str = ""


class PoseStamped(BridgeModel):
    header: Header = Field(default_factory=Header)
    pose: Pose = Field(default_factory=Pose)


class PoseWithCovariance(BridgeModel):
    pose: Pose = Field(default_factory=Pose)
    covariance: list[float] = Field(default_factory=list)


class PoseWithCovarianceStamped(BridgeModel):
    header: Header = Field(default_factory=Header)
    pose: PoseWithCovariance = Field(default_factory=PoseWithCovariance)


class Odometry(BridgeModel):
    header: Header = Field(default_factory=Header)
    child_frame_id: str = ""
    pose: PoseWithCovariance = Field(default_factory=PoseWithCovariance)


class Twist(BridgeModel):
    linear: Vector3 = Field(default_factory=Vector3)
    angular: Vector3 = Field(default_factory=Vector3)

    @classmethod
    def planar(cls, linear: float, angular: float) -> Twist:
        """Forward speed along x and yaw rate about z."""
        return cls(linear=Vector3(x=linear), angular=Vector3(z=angular))


class RobotPose(BridgeModel):
    """Robot position in the map frame with heading in radians."""

    x: float
    y: float
    theta: float = 0.0

    @classmethod
    def from_pose(cls, pose: Pose) -> RobotPose:
        q = pose.orientation
        return cls(x=pose.position.x, y=pose.position.y, theta=yaw_from_quaternion(q.x, q.y, q.z, q.w))
