"""Combine raster and metadata decoding into one :class:`OccupancyMap`."""

from __future__ import annotations

import logging

from robodash.config import MapConfig
from robodash.exceptions import MapFileError, MetadataDecodeError
from robodash.files import METADATA_SUFFIX, RASTER_SUFFIX, MapFileSource
from robodash.mapping.metadata import MetadataDecoder
from robodash.mapping.raster import RasterDecoder
from robodash.models.map import MapMetadata, MetadataFields, OccupancyMap, Pose2D

_logger = logging.getLogger(__name__)


class MapAssembler:
    """The only place raster and metadata decode results are combined.

    Holds the most recently assembled map in :attr:`current`; every load
    replaces it wholesale.
    """

    def __init__(
        self,
        config: MapConfig | None = None,
        *,
        raster_decoder: RasterDecoder | None = None,
        metadata_decoder: MetadataDecoder | None = None,
    ) -> None:
        self._config = config or MapConfig()
        self._raster_decoder = raster_decoder or RasterDecoder(
            mode=self._config.decode_mode,
            free_threshold=self._config.free_threshold,
            occupied_threshold=self._config.occupied_threshold,
        )
        self._metadata_decoder = metadata_decoder or MetadataDecoder()
        self._defaults = MapMetadata(
            resolution=self._config.default_resolution,
            origin=Pose2D(*self._config.default_origin),
        )
        self._current: OccupancyMap | None = None

    @property
    def defaults(self) -> MapMetadata:
        return self._defaults

    @property
    def current(self) -> OccupancyMap | None:
        """The last assembled map, or ``None`` before the first load."""
        return self._current

    def assemble(self, raster_bytes: bytes, metadata_bytes: bytes | None = None) -> OccupancyMap:
        """Decode both inputs and build a new map; never raises for bad content."""
        result = self._raster_decoder.decode_with_report(raster_bytes)

        fields = MetadataFields()
        metadata_defaulted = True
        if metadata_bytes is not None:
            try:
                fields = self._metadata_decoder.decode(metadata_bytes)
                metadata_defaulted = False
            except MetadataDecodeError as exc:
                _logger.warning("Map metadata unreadable, using defaults: %s", exc)

        occupancy_map = OccupancyMap(
            raster=result.raster,
            metadata=fields.resolve(self._defaults),
            degradation=result.reason,
            metadata_defaulted=metadata_defaulted,
        )
        self._current = occupancy_map
        _logger.info(
            "Map assembled %dx%d resolution=%s origin=%s strategy=%s degradation=%s",
            occupancy_map.width,
            occupancy_map.height,
            occupancy_map.resolution,
            tuple(occupancy_map.origin),
            result.strategy,
            result.reason,
        )
        return occupancy_map

    async def load(self, source: MapFileSource, name: str) -> OccupancyMap:
        """Fetch ``<name>.pgm`` and ``<name>.yaml`` from *source* and assemble them.

        A missing or unreachable metadata file falls back to defaults; a
        raster fetch failure propagates as :class:`MapFileError`.
        """
        raster_bytes = await source.fetch(f"{name}{RASTER_SUFFIX}")
        metadata_bytes: bytes | None
        try:
            metadata_bytes = await source.fetch(f"{name}{METADATA_SUFFIX}")
        except MapFileError as exc:
            _logger.warning("Metadata for map %s unavailable: %s", name, exc)
            metadata_bytes = None
        return self.assemble(raster_bytes, metadata_bytes)
