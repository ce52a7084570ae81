"""Client configuration for robodash."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from robodash._constants import (
    DEFAULT_BRIDGE_URL,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_FILE_SERVER_URL,
    DEFAULT_MAX_RECONNECT_ATTEMPTS,
    DEFAULT_ORIGIN,
    DEFAULT_RECONNECT_INTERVAL,
    DEFAULT_RESOLUTION,
    FREE_PIXEL_THRESHOLD,
    OCCUPIED_PIXEL_THRESHOLD,
)
from robodash.exceptions import RobodashConfigError
from robodash.models.map import DecodeMode


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(value)
    except ValueError as exc:
        raise RobodashConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class BridgeConfig:
    """Bridge connection configuration.

    Parameters
    ----------
    url : str
        WebSocket URL of the rosbridge server.
    reconnect_interval : float
        Seconds between an unexpected close and the next connection attempt.
    max_reconnect_attempts : int
        Consecutive failed reconnects after which the client gives up and
        stays disconnected. ``0`` disables automatic reconnection.
    connect_timeout : float
        Upper bound in seconds for a single connection attempt.
    heartbeat : float or None
        WebSocket ping interval in seconds, ``None`` to disable.
    trace_frames : bool
        Emit DEBUG logs for every outbound and inbound envelope.
    """

    url: str = DEFAULT_BRIDGE_URL
    reconnect_interval: float = DEFAULT_RECONNECT_INTERVAL
    max_reconnect_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    heartbeat: float | None = None
    trace_frames: bool = False

    def __post_init__(self) -> None:
        if self.reconnect_interval < 0:
            raise RobodashConfigError("reconnect_interval must be >= 0")
        if self.max_reconnect_attempts < 0:
            raise RobodashConfigError("max_reconnect_attempts must be >= 0")
        if self.connect_timeout <= 0:
            raise RobodashConfigError("connect_timeout must be > 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeConfig:
        """Create configuration from ``ROBODASH_BRIDGE_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        url = env.get("ROBODASH_BRIDGE_URL")
        if url is not None:
            config_kwargs["url"] = url

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "ROBODASH_RECONNECT_INTERVAL": ("reconnect_interval", float),
            "ROBODASH_MAX_RECONNECT_ATTEMPTS": ("max_reconnect_attempts", int),
            "ROBODASH_CONNECT_TIMEOUT": ("connect_timeout", float),
            "ROBODASH_HEARTBEAT": ("heartbeat", float),
        }
        for env_key, (field_name, kind) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, kind)

        if "trace_frames" not in overrides:
            config_kwargs["trace_frames"] = _env_bool(env.get("ROBODASH_TRACE_FRAMES"), False)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)


@dataclasses.dataclass(frozen=True)
class MapConfig:
    """Map ingestion configuration.

    Parameters
    ----------
    decode_mode : DecodeMode
        ``raw`` keeps PGM intensities, ``tristate`` classifies cells.
    default_resolution : float
        Resolution used when the metadata file omits or breaks it.
    default_origin : tuple of float
        Origin ``(x, y, theta)`` used when the metadata file omits or breaks it.
    free_threshold : int
        Pixels at or above this value are free in tristate mode.
    occupied_threshold : int
        Pixels at or below this value are occupied in tristate mode.
    file_server_url : str
        Base URL of the map file server.
    """

    decode_mode: DecodeMode = DecodeMode.RAW
    default_resolution: float = DEFAULT_RESOLUTION
    default_origin: tuple[float, float, float] = DEFAULT_ORIGIN
    free_threshold: int = FREE_PIXEL_THRESHOLD
    occupied_threshold: int = OCCUPIED_PIXEL_THRESHOLD
    file_server_url: str = DEFAULT_FILE_SERVER_URL

    def __post_init__(self) -> None:
        if not self.default_resolution > 0:
            raise RobodashConfigError("default_resolution must be > 0")
        if self.occupied_threshold >= self.free_threshold:
            raise RobodashConfigError("occupied_threshold must be below free_threshold")

    @classmethod
    def from_env(cls, **overrides: Any) -> MapConfig:
        """Create configuration from ``ROBODASH_MAP_*`` environment variables."""
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        mode = env.get("ROBODASH_MAP_DECODE_MODE")
        if mode is not None and "decode_mode" not in overrides:
            try:
                config_kwargs["decode_mode"] = DecodeMode(mode.strip().lower())
            except ValueError as exc:
                raise RobodashConfigError(f"Unknown ROBODASH_MAP_DECODE_MODE {mode!r}") from exc

        resolution = env.get("ROBODASH_MAP_DEFAULT_RESOLUTION")
        if resolution is not None and "default_resolution" not in overrides:
            config_kwargs["default_resolution"] = _env_number("ROBODASH_MAP_DEFAULT_RESOLUTION", resolution, float)

        server = env.get("ROBODASH_FILE_SERVER_URL")
        if server is not None:
            config_kwargs["file_server_url"] = server

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
