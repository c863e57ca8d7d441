"""Exception types raised across the scene pipeline."""

from __future__ import annotations


class SceneSyncError(Exception):
    """Base class for pipeline errors that carry a user-facing message."""

    user_message: str = "Something went wrong"

    def __init__(self, message: str | None = None, *, layer: int | None = None):
        super().__init__(message or self.user_message)
        self.layer = layer
        if message is not None:
            self.user_message = message


class BuildError(SceneSyncError):
    """Raised when a layer model cannot be turned into a scene."""

    user_message = "Failed to build scene"


class FetchError(SceneSyncError):
    """Raised when an export asset cannot be fetched."""

    user_message = "Failed to fetch export asset"

    def __init__(self, message: str | None = None, *, path: str | None = None):
        super().__init__(message)
        self.path = path


class EncodeError(SceneSyncError):
    """Raised when an image or archive cannot be encoded."""

    user_message = "Failed to encode export"


class TranscodeError(SceneSyncError):
    """Raised when a wire model cannot be decoded."""

    user_message = "Failed to parse or send, incorrect format?"


class BatchBusyError(SceneSyncError):
    """Raised when a batch run is started while another one is active."""

    user_message = "A batch export is already running"


__all__ = [
    "BatchBusyError",
    "BuildError",
    "EncodeError",
    "FetchError",
    "SceneSyncError",
    "TranscodeError",
]
