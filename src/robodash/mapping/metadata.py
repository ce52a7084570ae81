"""Map metadata (YAML subset) decoding.

Only two keys matter to the dashboard: ``resolution`` and ``origin``.
The file is read line by line as ``key: value`` pairs rather than with a
YAML parser, so malformed neighbouring keys never hide the two we need.
"""

from __future__ import annotations

import logging
import re

from robodash.exceptions import MetadataDecodeError
from robodash.mapping.normalize import parse_number_list, safe_float
from robodash.models.map import MetadataFields, Pose2D

_logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"\r?\n")
# YAML inline comment: "#" at the start or after whitespace.
_INLINE_COMMENT = re.compile(r"(?:^|\s)#.*$")


def _parse_resolution(value: str) -> float | None:
    resolution = safe_float(value)
    if resolution is None or resolution <= 0:
        _logger.warning("Invalid resolution value %r; keeping default", value)
        return None
    return resolution


def _parse_origin(value: str) -> Pose2D | None:
    coords = parse_number_list(value)
    if coords is None or len(coords) < 2:
        _logger.warning("Invalid origin value %r; keeping default", value)
        return None
    theta = coords[2] if len(coords) > 2 else 0.0
    return Pose2D(coords[0], coords[1], theta)


def decode_text(data: bytes) -> str:
    """Decode metadata bytes as UTF-8 (BOM tolerated).

    Raises
    ------
    MetadataDecodeError
        If the bytes are not UTF-8 or contain only whitespace.
    """
    try:
        content = bytes(data).decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MetadataDecodeError(f"Metadata is not UTF-8 text: {exc}") from exc
    if not content.strip():
        raise MetadataDecodeError("Metadata file is empty")
    return content


def decode_metadata(data: bytes) -> MetadataFields:
    """Extract ``resolution`` and ``origin`` from metadata bytes.

    Fields that are missing or unparseable stay ``None`` so the caller's
    defaults apply. Unknown keys are ignored.
    """
    content = decode_text(data)

    resolution: float | None = None
    origin: Pose2D | None = None
    for line in _LINE_SPLIT.split(content):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        key, sep, value = trimmed.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = _INLINE_COMMENT.sub("", value).strip()

        if key == "resolution":
            resolution = _parse_resolution(value) or resolution
        elif key == "origin":
            origin = _parse_origin(value) or origin

    fields = MetadataFields(resolution=resolution, origin=origin)
    _logger.debug("Decoded map metadata resolution=%s origin=%s", fields.resolution, fields.origin)
    return fields


class MetadataDecoder:
    """Object form of :func:`decode_metadata` for injection into the assembler."""

    def decode(self, data: bytes) -> MetadataFields:
        return decode_metadata(data)
