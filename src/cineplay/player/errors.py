"""Exception hierarchy of the playback core."""
from __future__ import annotations

from typing import Optional


class PlaybackError(Exception):
    """Base class for every error the playback core defines."""


class DecodeError(PlaybackError):
    """The decoding collaborator could not load or play the current locator.

    Recorded on the session and published; never raised out of the controller.
    """

    def __init__(self, uri: str, message: str) -> None:
        super().__init__(f"{message} ({uri})")
        self.uri = uri
        self.message = message


class InvalidStateError(PlaybackError):
    """Operation requires a loaded session."""

    def __init__(self, operation: str, reason: Optional[str] = None) -> None:
        detail = reason or "no loaded session"
        super().__init__(f"{operation}: {detail}")
        self.operation = operation


class NoSuchEpisodeError(PlaybackError):
    """Episode step has no neighbor in that direction."""

    def __init__(self, index: int, step: int) -> None:
        super().__init__(f"no episode at offset {step:+d} from index {index}")
        self.index = index
        self.step = step


class OrientationRejectedError(PlaybackError):
    """The platform refused an orientation lock or unlock request."""
