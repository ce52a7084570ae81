"""Custom exception hierarchy for robodash."""

from __future__ import annotations


class RobodashError(Exception):
    """Base exception for all robodash errors."""


class RobodashConfigError(RobodashError):
    """Invalid or missing configuration."""


class DecodeError(RobodashError):
    """Input bytes could not be decoded at all."""


class MetadataDecodeError(DecodeError):
    """Map metadata bytes are not readable text.

    Raised only when the whole stream is unusable (not UTF-8, or blank).
    Unparseable individual fields are logged and left unset instead.
    """


class BridgeError(RobodashError):
    """Failure talking to the message bridge."""


class BridgeConnectionError(BridgeError):
    """Opening the bridge connection failed or was cancelled."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class BridgeTransportError(BridgeError):
    """The open bridge connection reported an error."""


class MapFileError(RobodashError):
    """Map file server request failed (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        name: str = "",
    ) -> None:
        self.status_code = status_code
        self.name = name
        super().__init__(message)
