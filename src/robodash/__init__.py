"""robodash - Async Python core for a ROS robot dashboard."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("robodash")
except PackageNotFoundError:
    __version__ = "0+local"
from robodash.bridge import BridgeClient, ConnectionState, TopicSubscription
from robodash.config import BridgeConfig, MapConfig
from robodash.exceptions import (
    BridgeConnectionError,
    BridgeError,
    BridgeTransportError,
    DecodeError,
    MapFileError,
    MetadataDecodeError,
    RobodashConfigError,
    RobodashError,
)
from robodash.files import MapFileClient, MapFileSource, pair_map_files
from robodash.mapping.assembler import MapAssembler
from robodash.mapping.metadata import MetadataDecoder, decode_metadata
from robodash.mapping.raster import RasterDecodeResult, RasterDecoder
from robodash.mapping.transform import pixel_to_world, world_to_pixel
from robodash.models import (
    CellState,
    DecodeMode,
    DegradationReason,
    GoalPoint,
    GoalSource,
    MapMetadata,
    OccupancyMap,
    OccupancyRaster,
    Pose2D,
    RobotPose,
)
from robodash.robot import RobotLink, RobotTopics
from robodash.waypoints import WaypointStore

__all__ = [
    "__version__",
    "BridgeClient",
    "BridgeConfig",
    "BridgeConnectionError",
    "BridgeError",
    "BridgeTransportError",
    "CellState",
    "ConnectionState",
    "DecodeError",
    "DecodeMode",
    "DegradationReason",
    "GoalPoint",
    "GoalSource",
    "MapAssembler",
    "MapConfig",
    "MapFileClient",
    "MapFileError",
    "MapFileSource",
    "MapMetadata",
    "MetadataDecodeError",
    "MetadataDecoder",
    "OccupancyMap",
    "OccupancyRaster",
    "Pose2D",
    "RasterDecodeResult",
    "RasterDecoder",
    "RobodashConfigError",
    "RobodashError",
    "RobotLink",
    "RobotPose",
    "RobotTopics",
    "TopicSubscription",
    "WaypointStore",
    "decode_metadata",
    "pair_map_files",
    "pixel_to_world",
    "world_to_pixel",
]
