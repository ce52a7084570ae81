"""Occupancy grid value objects.

Rasters, metadata and assembled maps are immutable. A new map load builds
a new :class:`OccupancyMap` rather than mutating the previous one.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import NamedTuple

from robodash._constants import (
    FREE_CELL,
    OCCUPIED_CELL,
    PLACEHOLDER_HEIGHT,
    PLACEHOLDER_WIDTH,
    UNKNOWN_CELL,
)


class DecodeMode(enum.StrEnum):
    """How raster pixel bytes are turned into cell values."""

    RAW = "raw"
    TRISTATE = "tristate"


class CellState(enum.IntEnum):
    """Tri-state occupancy values."""

    UNKNOWN = UNKNOWN_CELL
    FREE = FREE_CELL
    OCCUPIED = OCCUPIED_CELL


class DegradationReason(enum.StrEnum):
    """Why a raster decode was recovered or replaced by the placeholder."""

    EMPTY_INPUT = "empty_input"
    TOO_SHORT = "too_short"
    INCOMPLETE_HEADER = "incomplete_header"
    UNSUPPORTED_FORMAT = "unsupported_format"
    INVALID_DIMENSIONS = "invalid_dimensions"
    INVALID_HEADER_VALUES = "invalid_header_values"
    PARSE_ERROR = "parse_error"
    PAYLOAD_TRUNCATED = "payload_truncated"
    PAYLOAD_OVERSIZED = "payload_oversized"

    @property
    def is_fatal(self) -> bool:
        """``True`` when this reason forces the placeholder grid."""
        return self not in (DegradationReason.PAYLOAD_TRUNCATED, DegradationReason.PAYLOAD_OVERSIZED)


class Pose2D(NamedTuple):
    """Planar pose ``(x, y, theta)``; used for map origins."""

    x: float
    y: float
    theta: float = 0.0


@dataclass(frozen=True, slots=True)
class OccupancyRaster:
    """A ``width`` x ``height`` grid of cell values in row-major storage order.

    Row 0 is the top row of the image.
    """

    width: int
    height: int
    cells: tuple[int, ...]
    mode: DecodeMode = DecodeMode.RAW

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"raster dimensions must be positive, got {self.width}x{self.height}")
        if len(self.cells) != self.width * self.height:
            raise ValueError(
                f"raster has {len(self.cells)} cells, expected {self.width * self.height}"
            )

    @classmethod
    def placeholder(cls, mode: DecodeMode = DecodeMode.RAW) -> OccupancyRaster:
        """The fixed-size grid returned when decoding is irrecoverable."""
        return cls(
            width=PLACEHOLDER_WIDTH,
            height=PLACEHOLDER_HEIGHT,
            cells=(UNKNOWN_CELL,) * (PLACEHOLDER_WIDTH * PLACEHOLDER_HEIGHT),
            mode=mode,
        )

    def in_bounds(self, px: int, py: int) -> bool:
        return 0 <= px < self.width and 0 <= py < self.height

    def index(self, px: int, py: int) -> int:
        if not self.in_bounds(px, py):
            raise IndexError(f"pixel ({px}, {py}) outside {self.width}x{self.height} raster")
        return py * self.width + px

    def cell(self, px: int, py: int) -> int:
        return self.cells[self.index(px, py)]


@dataclass(frozen=True, slots=True)
class MapMetadata:
    """World placement of a raster: meters per pixel and bottom-left pose."""

    resolution: float
    origin: Pose2D

    def __post_init__(self) -> None:
        if not (math.isfinite(self.resolution) and self.resolution > 0):
            raise ValueError(f"resolution must be a positive finite number, got {self.resolution}")
        if not isinstance(self.origin, Pose2D):
            object.__setattr__(self, "origin", Pose2D(*self.origin))


@dataclass(frozen=True, slots=True)
class MetadataFields:
    """Fields recovered from a metadata file; ``None`` means absent or invalid."""

    resolution: float | None = None
    origin: Pose2D | None = None

    def resolve(self, defaults: MapMetadata) -> MapMetadata:
        """Fill unset fields from *defaults*."""
        return MapMetadata(
            resolution=self.resolution if self.resolution is not None else defaults.resolution,
            origin=self.origin if self.origin is not None else defaults.origin,
        )

    @property
    def is_complete(self) -> bool:
        return self.resolution is not None and self.origin is not None


@dataclass(frozen=True, slots=True)
class GridGeometry:
    """Everything the pixel/world transform needs from a map."""

    width: int
    height: int
    resolution: float
    origin: Pose2D


@dataclass(frozen=True, slots=True)
class OccupancyMap:
    """A decoded raster placed in the world by its metadata.

    ``degradation`` is the side-channel reason reported by the raster
    decoder (``None`` for a clean decode). ``metadata_defaulted`` is set
    when the metadata file was missing or unreadable.
    """

    raster: OccupancyRaster
    metadata: MapMetadata
    degradation: DegradationReason | None = None
    metadata_defaulted: bool = False

    @property
    def width(self) -> int:
        return self.raster.width

    @property
    def height(self) -> int:
        return self.raster.height

    @property
    def resolution(self) -> float:
        return self.metadata.resolution

    @property
    def origin(self) -> Pose2D:
        return self.metadata.origin

    @property
    def is_placeholder(self) -> bool:
        return self.degradation is not None and self.degradation.is_fatal

    @property
    def geometry(self) -> GridGeometry:
        return GridGeometry(
            width=self.raster.width,
            height=self.raster.height,
            resolution=self.metadata.resolution,
            origin=self.metadata.origin,
        )

    def pixel_to_world(self, px: float, py: float) -> tuple[float, float]:
        from robodash.mapping.transform import pixel_to_world

        return pixel_to_world(self.geometry, px, py)

    def world_to_pixel(self, wx: float, wy: float) -> tuple[int, int]:
        from robodash.mapping.transform import world_to_pixel

        return world_to_pixel(self.geometry, wx, wy)
