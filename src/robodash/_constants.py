"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Raster (binary PGM) decoding
# ------------------------------------------------------------------

PGM_MARKER = "P5"
MIN_RASTER_BYTES = 20
HEADER_SCAN_LIMIT = 1000
MAX_RASTER_CELLS = 50_000_000

PLACEHOLDER_WIDTH = 100
PLACEHOLDER_HEIGHT = 100

UNKNOWN_CELL = -1
FREE_CELL = 0
OCCUPIED_CELL = 100

# Raw mode pads truncated payloads with white (free).
RAW_PADDING = 255
TRISTATE_PADDING = UNKNOWN_CELL

FREE_PIXEL_THRESHOLD = 250
OCCUPIED_PIXEL_THRESHOLD = 50

# ------------------------------------------------------------------
# Map metadata defaults
# ------------------------------------------------------------------

DEFAULT_RESOLUTION = 0.05
DEFAULT_ORIGIN: tuple[float, float, float] = (0.0, 0.0, 0.0)

# ------------------------------------------------------------------
# Bridge
# ------------------------------------------------------------------

DEFAULT_BRIDGE_URL = "ws://localhost:9090"
DEFAULT_FILE_SERVER_URL = "http://localhost:3001"
DEFAULT_RECONNECT_INTERVAL = 3.0
DEFAULT_MAX_RECONNECT_ATTEMPTS = 5
DEFAULT_CONNECT_TIMEOUT = 10.0

AMCL_POSE_TOPIC = "/amcl_pose"
AMCL_POSE_TYPE = "geometry_msgs/PoseWithCovarianceStamped"
ODOM_TOPIC = "/odom"
ODOM_TYPE = "nav_msgs/Odometry"
CMD_VEL_TOPIC = "/cmd_vel"
TWIST_TYPE = "geometry_msgs/Twist"
GOAL_TOPIC = "/move_base_simple/goal"
POSE_STAMPED_TYPE = "geometry_msgs/PoseStamped"
MAP_FRAME = "map"
