from __future__ import annotations

from typing import Any

TRANSCRIPT_GUIDANCE = "Transcript not accessible. Try toggling captions and reload."


class InvalidInput(ValueError):
    """Missing or wrong-typed request fields. Raised before any network call."""


class TranscriptUnavailable(Exception):
    """Every transcript strategy came back empty."""

    def __init__(self, message: str = TRANSCRIPT_GUIDANCE) -> None:
        super().__init__(message)
        self.message = message


class UpstreamInvalidResponse(Exception):
    """
    The model answered, but not with something we can use
    (no recoverable JSON, missing required keys, empty text).
    """

    def __init__(self, message: str, raw: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.raw = raw


class ModelBackendError(Exception):
    """Transport failure, non-2xx status or malformed envelope from a model backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
