"""Map ingestion layer.

This package turns untrusted map files (binary PGM raster plus YAML
metadata) into an immutable :class:`~robodash.models.map.OccupancyMap`
and converts between pixel and world coordinates.
"""

__all__: list[str] = []
