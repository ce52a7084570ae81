"""Goal points (waypoints) referenced by the dashboard."""

from __future__ import annotations

import enum
import time

from pydantic import BaseModel, ConfigDict, Field

from robodash.models.messages import RobotPose


class GoalSource(enum.StrEnum):
    ROBOT = "robot"
    MANUAL = "manual"


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class GoalPoint(BaseModel):
    """A named navigation target in the map frame.

    Owned by the external waypoint store; the core reads ``x``, ``y`` and
    ``theta`` and passes the rest through untouched.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    name: str
    x: float
    y: float
    theta: float = 0.0
    timestamp: int = Field(default_factory=_now_ms)
    source: GoalSource = GoalSource.MANUAL

    @classmethod
    def from_robot_pose(cls, pose: RobotPose, *, index: int, timestamp: int | None = None) -> GoalPoint:
        """Goal at the robot's current pose, numbered ``index`` in its list."""
        ts = timestamp if timestamp is not None else _now_ms()
        return cls(
            id=f"point-robot-{ts}",
            name=f"Robot Point {index}",
            x=pose.x,
            y=pose.y,
            theta=pose.theta,
            timestamp=ts,
            source=GoalSource.ROBOT,
        )

    @classmethod
    def from_click(
        cls,
        wx: float,
        wy: float,
        *,
        index: int,
        theta: float = 0.0,
        timestamp: int | None = None,
    ) -> GoalPoint:
        """Goal at a clicked world position."""
        ts = timestamp if timestamp is not None else _now_ms()
        return cls(
            id=f"point-click-{ts}",
            name=f"Click Point {index}",
            x=wx,
            y=wy,
            theta=theta,
            timestamp=ts,
            source=GoalSource.MANUAL,
        )
