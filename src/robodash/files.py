"""Map file server consumer.

The dashboard's file server exposes ``GET /api/scan-maps`` (JSON list of
``.pgm``/``.yaml`` names) and ``GET /api/maps/{name}`` (raw bytes). The
core only ever sees byte buffers from it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from robodash.exceptions import MapFileError

_logger = logging.getLogger(__name__)

RASTER_SUFFIX = ".pgm"
METADATA_SUFFIX = ".yaml"


class MapFileSource(Protocol):
    """Structural interface for anything that can list and fetch map files."""

    async def list_files(self) -> list[str]:
        ...

    async def fetch(self, name: str) -> bytes:
        ...


def pair_map_files(names: Iterable[str]) -> list[str]:
    """Return sorted base names that have both a raster and a metadata file."""
    rasters: set[str] = set()
    metadata: set[str] = set()
    for name in names:
        if name.endswith(RASTER_SUFFIX):
            rasters.add(name[: -len(RASTER_SUFFIX)])
        elif name.endswith(METADATA_SUFFIX):
            metadata.add(name[: -len(METADATA_SUFFIX)])
    return sorted(rasters & metadata)


class MapFileClient:
    """aiohttp client for the map file server.

    Usage::

        async with MapFileClient("http://localhost:3001") as files:
            names = pair_map_files(await files.list_files())
            pgm = await files.fetch(f"{names[0]}.pgm")
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._external_session = session is not None
        self._http = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def __aenter__(self) -> MapFileClient:
        if self._http is None:
            self._http = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if not self._external_session and self._http is not None:
            await self._http.close()
        self._http = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http is None:
            raise MapFileError("Client not initialized. Use 'async with MapFileClient(...) as files:'")
        return self._http

    async def _get(self, path: str, *, name: str = "") -> bytes:
        url = f"{self._base_url}{path}"
        _logger.debug("GET %s", url)
        try:
            async with self._require_session().get(url) as resp:
                body = await resp.read()
                if resp.status != 200:
                    raise MapFileError(
                        f"HTTP {resp.status} from {path}: {body[:200]!r}",
                        status_code=resp.status,
                        name=name,
                    )
        except MapFileError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise MapFileError(f"Request to {path} failed: {exc}", name=name) from exc
        return body

    async def list_files(self) -> list[str]:
        """Names of all ``.pgm`` and ``.yaml`` files on the server."""
        body = await self._get("/api/scan-maps")
        try:
            names = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MapFileError(f"Invalid JSON from /api/scan-maps: {body[:200]!r}") from exc
        if not isinstance(names, list) or not all(isinstance(item, str) for item in names):
            raise MapFileError("Map listing is not a list of file names")
        return names

    async def fetch(self, name: str) -> bytes:
        """Raw bytes of one map file."""
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise MapFileError(f"Invalid map file name {name!r}", name=name)
        data = await self._get(f"/api/maps/{quote(name)}", name=name)
        _logger.debug("Fetched %s (%d bytes)", name, len(data))
        return data
