#!/usr/bin/env python3
"""Decode a map pair and report what the dashboard would see.

Reads ``<name>.pgm`` and ``<name>.yaml`` either from a local directory or
from the map file server, runs them through :class:`MapAssembler` and
prints dimensions, placement, degradation and a cell histogram.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections import Counter
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from robodash import (  # noqa: E402
    DecodeMode,
    MapAssembler,
    MapConfig,
    MapFileClient,
    MapFileError,
    OccupancyMap,
    pair_map_files,
)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decode a PGM/YAML map pair and print a report.")
    parser.add_argument("name", nargs="?", help="Map base name, without extension.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--dir",
        type=Path,
        default=None,
        help="Read map files from this local directory.",
    )
    source.add_argument(
        "--server",
        default=None,
        help="Map file server URL (default: ROBODASH_FILE_SERVER_URL or http://localhost:3001).",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in DecodeMode],
        default=None,
        help="Cell decode mode (default: ROBODASH_MAP_DECODE_MODE or raw).",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List map names available on the server and exit.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_report(name: str, occupancy_map: OccupancyMap) -> None:
    print(f"[map] {name}")
    print(f"[map]   size        : {occupancy_map.width}x{occupancy_map.height}")
    print(f"[map]   mode        : {occupancy_map.raster.mode}")
    print(f"[map]   resolution  : {occupancy_map.resolution} m/px")
    print(f"[map]   origin      : {tuple(occupancy_map.origin)}")
    print(f"[map]   defaulted   : {occupancy_map.metadata_defaulted}")
    print(f"[map]   degradation : {occupancy_map.degradation or 'none'}")
    if occupancy_map.is_placeholder:
        print("[map]   WARNING: placeholder grid, map file is unusable")

    wx, wy = occupancy_map.pixel_to_world(occupancy_map.width, 0)
    print(f"[map]   extent      : {tuple(occupancy_map.origin)[:2]} -> ({wx:.3f}, {wy:.3f})")

    histogram = Counter(occupancy_map.raster.cells)
    print("[map]   top values  :")
    for value, count in histogram.most_common(8):
        share = 100.0 * count / len(occupancy_map.raster.cells)
        print(f"[map]     {value:>4} : {count:>9} ({share:5.1f}%)")


def _load_local(assembler: MapAssembler, directory: Path, name: str) -> OccupancyMap:
    raster = (directory / f"{name}.pgm").read_bytes()
    metadata_path = directory / f"{name}.yaml"
    metadata = metadata_path.read_bytes() if metadata_path.exists() else None
    return assembler.assemble(raster, metadata)


async def _load_remote(assembler: MapAssembler, server: str, name: str | None, list_only: bool) -> int:
    async with MapFileClient(server) as files:
        if list_only or name is None:
            for base in pair_map_files(await files.list_files()):
                print(base)
            return 0
        _print_report(name, await assembler.load(files, name))
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {}
    if args.mode:
        overrides["decode_mode"] = DecodeMode(args.mode)
    if args.server:
        overrides["file_server_url"] = args.server
    config = MapConfig.from_env(**overrides)
    assembler = MapAssembler(config)

    if args.dir is not None:
        if args.name is None:
            print("[map] A map name is required with --dir", file=sys.stderr)
            return 2
        try:
            occupancy_map = _load_local(assembler, args.dir, args.name)
        except OSError as exc:
            print(f"[map] Cannot read map files: {exc}", file=sys.stderr)
            return 2
        _print_report(args.name, occupancy_map)
        return 0

    try:
        return asyncio.run(_load_remote(assembler, config.file_server_url, args.name, args.list))
    except MapFileError as exc:
        print(f"[map] File server error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(_main())
