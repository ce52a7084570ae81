"""Binary PGM (``P5``) raster decoding.

:class:`RasterDecoder` never raises. Each input is offered to an ordered
tuple of pure strategies; a strategy either returns a decoded raster or a
:class:`~robodash.models.map.DegradationReason`. The last strategy always
produces the fixed placeholder grid, so callers always get a dimensioned
raster and read the reason from :class:`RasterDecodeResult`.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from robodash._constants import (
    FREE_CELL,
    FREE_PIXEL_THRESHOLD,
    HEADER_SCAN_LIMIT,
    MAX_RASTER_CELLS,
    MIN_RASTER_BYTES,
    OCCUPIED_CELL,
    OCCUPIED_PIXEL_THRESHOLD,
    PGM_MARKER,
    RAW_PADDING,
    TRISTATE_PADDING,
    UNKNOWN_CELL,
)
from robodash.mapping.normalize import positive_int
from robodash.models.map import DecodeMode, DegradationReason, OccupancyRaster

_logger = logging.getLogger(__name__)

_WHITESPACE = frozenset(b" \t\r\n\v\f")
_LF = 0x0A
_CR = 0x0D
_TAB = 0x09
_COMMENT = ord("#")


@dataclass(frozen=True, slots=True)
class RasterOptions:
    """Settings shared by every decode strategy."""

    mode: DecodeMode = DecodeMode.RAW
    free_threshold: int = FREE_PIXEL_THRESHOLD
    occupied_threshold: int = OCCUPIED_PIXEL_THRESHOLD
    max_cells: int = MAX_RASTER_CELLS

    @property
    def padding(self) -> int:
        return RAW_PADDING if self.mode is DecodeMode.RAW else TRISTATE_PADDING


@dataclass(frozen=True, slots=True)
class RasterDecodeResult:
    """A decoded raster plus the side-channel degradation report."""

    raster: OccupancyRaster
    strategy: str
    reason: DegradationReason | None = None
    placeholder: bool = False


RasterStrategy = Callable[[bytes, RasterOptions], RasterDecodeResult | DegradationReason]


# ---------------------------------------------------------------------------
# Payload handling
# ---------------------------------------------------------------------------


def _tristate_table(options: RasterOptions) -> tuple[int, ...]:
    table: list[int] = []
    for pixel in range(256):
        if pixel >= options.free_threshold:
            table.append(FREE_CELL)
        elif pixel <= options.occupied_threshold:
            table.append(OCCUPIED_CELL)
        else:
            table.append(UNKNOWN_CELL)
    return tuple(table)


def _build_raster(
    width: int,
    height: int,
    payload: bytes,
    options: RasterOptions,
    strategy: str,
) -> RasterDecodeResult:
    expected = width * height
    available = min(len(payload), expected)
    head = payload[:available]

    if options.mode is DecodeMode.TRISTATE:
        cells = tuple(map(_tristate_table(options).__getitem__, head))
    else:
        cells = tuple(head)
    if available < expected:
        cells += (options.padding,) * (expected - available)

    reason: DegradationReason | None = None
    if len(payload) < expected:
        _logger.warning(
            "Raster payload has %d of %d bytes; padding %d cells with %d",
            len(payload),
            expected,
            expected - available,
            options.padding,
        )
        reason = DegradationReason.PAYLOAD_TRUNCATED
    elif len(payload) > expected:
        _logger.debug("Raster payload has %d trailing bytes; ignored", len(payload) - expected)
        reason = DegradationReason.PAYLOAD_OVERSIZED

    raster = OccupancyRaster(width=width, height=height, cells=cells, mode=options.mode)
    return RasterDecodeResult(raster=raster, strategy=strategy, reason=reason)


def _check_values(
    width: int | None,
    height: int | None,
    maxval: int | None,
    options: RasterOptions,
) -> DegradationReason | None:
    if width is None or height is None or maxval is None:
        return DegradationReason.INVALID_HEADER_VALUES
    if width * height > options.max_cells:
        return DegradationReason.INVALID_DIMENSIONS
    return None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def _is_binary(byte: int) -> bool:
    if byte >= 0x7F:
        return True
    return byte < 0x20 and byte not in (_LF, _CR, _TAB)


def _first_binary_offset(data: bytes) -> int:
    limit = min(len(data), HEADER_SCAN_LIMIT)
    for offset in range(limit):
        if _is_binary(data[offset]):
            return offset
    return limit


def line_header_strategy(data: bytes, options: RasterOptions) -> RasterDecodeResult | DegradationReason:
    """One header field per line: marker, ``W H``, maxval; ``#`` lines skipped.

    The payload starts right after the maxval line terminator, or at the
    first binary byte when the maxval line has no terminator.
    """
    binary_at = _first_binary_offset(data)
    text = data[:binary_at].decode("ascii")

    # (stripped line, offset just past its "\n" or None)
    lines: list[tuple[str, int | None]] = []
    pos = 0
    while pos < len(text):
        newline = text.find("\n", pos)
        if newline < 0:
            line, end = text[pos:], None
            pos = len(text)
        else:
            line, end = text[pos:newline], newline + 1
            pos = newline + 1
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            lines.append((stripped, end))

    if len(lines) < 3:
        return DegradationReason.INCOMPLETE_HEADER
    if lines[0][0] != PGM_MARKER:
        _logger.debug("Unsupported raster marker %r", lines[0][0][:16])
        return DegradationReason.UNSUPPORTED_FORMAT

    dimension_parts = lines[1][0].split()
    if len(dimension_parts) != 2:
        return DegradationReason.INVALID_DIMENSIONS

    width = positive_int(dimension_parts[0])
    height = positive_int(dimension_parts[1])
    maxval = positive_int(lines[2][0])
    problem = _check_values(width, height, maxval, options)
    if problem is not None:
        return problem
    assert width is not None and height is not None  # noqa: S101

    maxval_end = lines[2][1]
    header_end = maxval_end if maxval_end is not None else binary_at
    return _build_raster(width, height, data[header_end:], options, "line_header")


def token_header_strategy(data: bytes, options: RasterOptions) -> RasterDecodeResult | DegradationReason:
    """Netpbm token form: four whitespace-separated fields on any lines.

    Exactly one whitespace byte separates maxval from the payload.
    """
    limit = min(len(data), HEADER_SCAN_LIMIT)
    tokens: list[bytes] = []
    pos = 0
    while len(tokens) < 4:
        while pos < limit and data[pos] in _WHITESPACE:
            pos += 1
        if pos >= limit:
            return DegradationReason.INCOMPLETE_HEADER
        if data[pos] == _COMMENT:
            newline = data.find(b"\n", pos, limit)
            if newline < 0:
                return DegradationReason.INCOMPLETE_HEADER
            pos = newline + 1
            continue
        start = pos
        while pos < limit and data[pos] not in _WHITESPACE:
            pos += 1
        tokens.append(data[start:pos])

    if pos >= len(data) or data[pos] not in _WHITESPACE:
        return DegradationReason.INCOMPLETE_HEADER

    marker = tokens[0].decode("ascii", errors="replace")
    if marker != PGM_MARKER:
        return DegradationReason.UNSUPPORTED_FORMAT

    width, height, maxval = (positive_int(token.decode("ascii", errors="replace")) for token in tokens[1:])
    problem = _check_values(width, height, maxval, options)
    if problem is not None:
        return problem
    assert width is not None and height is not None  # noqa: S101

    return _build_raster(width, height, data[pos + 1 :], options, "token_header")


def placeholder_strategy(_data: bytes, options: RasterOptions) -> RasterDecodeResult:
    """Terminal strategy: the fixed unknown-filled grid."""
    return RasterDecodeResult(
        raster=OccupancyRaster.placeholder(options.mode),
        strategy="placeholder",
        placeholder=True,
    )


DEFAULT_STRATEGIES: tuple[tuple[str, RasterStrategy], ...] = (
    ("line_header", line_header_strategy),
    ("token_header", token_header_strategy),
    ("placeholder", placeholder_strategy),
)


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------


class RasterDecoder:
    """Decode binary PGM bytes into an :class:`OccupancyRaster`.

    Usage::

        decoder = RasterDecoder(mode=DecodeMode.TRISTATE)
        result = decoder.decode_with_report(pgm_bytes)
        if result.placeholder:
            log.warning("map unusable: %s", result.reason)
    """

    def __init__(
        self,
        *,
        mode: DecodeMode = DecodeMode.RAW,
        free_threshold: int = FREE_PIXEL_THRESHOLD,
        occupied_threshold: int = OCCUPIED_PIXEL_THRESHOLD,
        max_cells: int = MAX_RASTER_CELLS,
        strategies: Sequence[tuple[str, RasterStrategy]] = DEFAULT_STRATEGIES,
    ) -> None:
        self._options = RasterOptions(
            mode=mode,
            free_threshold=free_threshold,
            occupied_threshold=occupied_threshold,
            max_cells=max_cells,
        )
        self._strategies = tuple(strategies)

    @property
    def mode(self) -> DecodeMode:
        return self._options.mode

    def decode(self, data: bytes) -> OccupancyRaster:
        """Return a raster for *data*; never raises."""
        return self.decode_with_report(data).raster

    def decode_with_report(self, data: bytes) -> RasterDecodeResult:
        """Return the raster together with the strategy used and any degradation reason."""
        payload = bytes(data)
        if not payload:
            return self._fallback(DegradationReason.EMPTY_INPUT)
        if len(payload) < MIN_RASTER_BYTES:
            return self._fallback(DegradationReason.TOO_SHORT)

        first_reason: DegradationReason | None = None
        for name, strategy in self._strategies:
            try:
                outcome = strategy(payload, self._options)
            except Exception:
                _logger.warning("Raster strategy %s failed", name, exc_info=True)
                outcome = DegradationReason.PARSE_ERROR

            if isinstance(outcome, DegradationReason):
                _logger.debug("Raster strategy %s rejected input: %s", name, outcome)
                if first_reason is None:
                    first_reason = outcome
                continue

            if outcome.placeholder:
                return self._fallback(first_reason or DegradationReason.PARSE_ERROR, outcome)
            if first_reason is not None:
                _logger.info("Raster recovered by %s strategy after %s", name, first_reason)
            _logger.debug(
                "Raster decoded by %s: %dx%d mode=%s",
                name,
                outcome.raster.width,
                outcome.raster.height,
                self._options.mode,
            )
            return outcome

        return self._fallback(first_reason or DegradationReason.PARSE_ERROR)

    def _fallback(
        self,
        reason: DegradationReason,
        outcome: RasterDecodeResult | None = None,
    ) -> RasterDecodeResult:
        _logger.warning("Using placeholder raster: %s", reason)
        if outcome is None:
            outcome = placeholder_strategy(b"", self._options)
        return dataclasses.replace(outcome, reason=reason)
