from __future__ import annotations

import pytest

from robodash.config import MapConfig
from robodash.exceptions import MapFileError
from robodash.mapping.assembler import MapAssembler
from robodash.models.map import DecodeMode, DegradationReason, Pose2D

_PGM = b"P5\n4 6\n255\n" + bytes([0, 254, 205, 255] * 6)
_YAML = b"image: lab.pgm\nresolution: 0.1\norigin: [-1.0, -2.0, 0.5]\n"


class _DictSource:
    def __init__(self, files: dict[str, bytes]) -> None:
        self.files = files
        self.requested: list[str] = []

    async def list_files(self) -> list[str]:
        return sorted(self.files)

    async def fetch(self, name: str) -> bytes:
        self.requested.append(name)
        try:
            return self.files[name]
        except KeyError:
            raise MapFileError(f"HTTP 404 for {name}", status_code=404, name=name) from None


def test_assemble_combines_raster_and_metadata() -> None:
    occupancy_map = MapAssembler().assemble(_PGM, _YAML)

    assert (occupancy_map.width, occupancy_map.height) == (4, 6)
    assert occupancy_map.resolution == pytest.approx(0.1)
    assert occupancy_map.origin == Pose2D(-1.0, -2.0, 0.5)
    assert occupancy_map.degradation is None
    assert not occupancy_map.metadata_defaulted
    assert not occupancy_map.is_placeholder


def test_missing_metadata_uses_configured_defaults() -> None:
    assembler = MapAssembler(MapConfig(default_resolution=0.2, default_origin=(1.0, 2.0, 0.0)))
    occupancy_map = assembler.assemble(_PGM)

    assert occupancy_map.metadata_defaulted
    assert occupancy_map.resolution == pytest.approx(0.2)
    assert occupancy_map.origin == Pose2D(1.0, 2.0, 0.0)


def test_unreadable_metadata_uses_defaults() -> None:
    occupancy_map = MapAssembler().assemble(_PGM, b"\xff\xff\xff")

    assert occupancy_map.metadata_defaulted
    assert occupancy_map.resolution == pytest.approx(0.05)
    assert occupancy_map.origin == Pose2D(0.0, 0.0, 0.0)


def test_partial_metadata_fills_missing_field_from_defaults() -> None:
    occupancy_map = MapAssembler().assemble(_PGM, b"resolution: 0.025\n")

    assert not occupancy_map.metadata_defaulted
    assert occupancy_map.resolution == pytest.approx(0.025)
    assert occupancy_map.origin == Pose2D(0.0, 0.0, 0.0)


def test_broken_raster_is_reported_on_the_map() -> None:
    occupancy_map = MapAssembler().assemble(b"XX\n4 6\n255\n" + bytes(24), _YAML)

    assert occupancy_map.is_placeholder
    assert occupancy_map.degradation is DegradationReason.UNSUPPORTED_FORMAT
    assert (occupancy_map.width, occupancy_map.height) == (100, 100)
    assert occupancy_map.resolution == pytest.approx(0.1)


def test_tristate_mode_comes_from_config() -> None:
    occupancy_map = MapAssembler(MapConfig(decode_mode=DecodeMode.TRISTATE)).assemble(_PGM, _YAML)

    assert occupancy_map.raster.cells[:4] == (100, 0, -1, 0)


def test_each_assemble_replaces_current_map() -> None:
    assembler = MapAssembler()
    assert assembler.current is None

    first = assembler.assemble(_PGM, _YAML)
    second = assembler.assemble(_PGM)

    assert assembler.current is second
    assert first.resolution == pytest.approx(0.1)


def test_map_pixel_to_world_uses_metadata() -> None:
    occupancy_map = MapAssembler().assemble(_PGM, _YAML)

    assert occupancy_map.pixel_to_world(0, 6) == (-1.0, -2.0)
    assert occupancy_map.world_to_pixel(-0.95, -1.95) == (0, 5)


@pytest.mark.asyncio
async def test_load_fetches_both_files() -> None:
    source = _DictSource({"lab.pgm": _PGM, "lab.yaml": _YAML})
    occupancy_map = await MapAssembler().load(source, "lab")

    assert source.requested == ["lab.pgm", "lab.yaml"]
    assert occupancy_map.resolution == pytest.approx(0.1)


@pytest.mark.asyncio
async def test_load_without_metadata_file_falls_back_to_defaults() -> None:
    occupancy_map = await MapAssembler().load(_DictSource({"lab.pgm": _PGM}), "lab")

    assert occupancy_map.metadata_defaulted
    assert (occupancy_map.width, occupancy_map.height) == (4, 6)


@pytest.mark.asyncio
async def test_load_without_raster_file_raises() -> None:
    assembler = MapAssembler()

    with pytest.raises(MapFileError) as excinfo:
        await assembler.load(_DictSource({"lab.yaml": _YAML}), "lab")

    assert excinfo.value.status_code == 404
    assert assembler.current is None


def test_commented_resolution_places_map_in_world() -> None:
    occupancy_map = MapAssembler().assemble(_PGM, b"resolution: 0.025  # m/px\norigin: [0.0, 0.0, 0.0]\n")

    assert occupancy_map.resolution == pytest.approx(0.025)
    assert occupancy_map.pixel_to_world(4, 0) == pytest.approx((0.1, 0.15))
