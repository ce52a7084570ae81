"""Data models for maps, goals and bridge messages."""

from robodash.models.map import (
    CellState,
    DecodeMode,
    DegradationReason,
    GridGeometry,
    MapMetadata,
    MetadataFields,
    OccupancyMap,
    OccupancyRaster,
    Pose2D,
)
from robodash.models.messages import (
    BridgeOp,
    InboundEnvelope,
    Odometry,
    OutboundEnvelope,
    PoseStamped,
    PoseWithCovarianceStamped,
    Quaternion,
    RobotPose,
    Twist,
)
from robodash.models.goal import GoalPoint, GoalSource

__all__ = [
    "BridgeOp",
    "CellState",
    "DecodeMode",
    "DegradationReason",
    "GoalPoint",
    "GoalSource",
    "GridGeometry",
    "InboundEnvelope",
    "MapMetadata",
    "MetadataFields",
    "OccupancyMap",
    "OccupancyRaster",
    "Odometry",
    "OutboundEnvelope",
    "Pose2D",
    "PoseStamped",
    "PoseWithCovarianceStamped",
    "Quaternion",
    "RobotPose",
    "Twist",
]
