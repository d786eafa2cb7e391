"""
Data models for the playback core.

These dataclasses hold the session, control overlay and orientation state the
controller mutates, plus the status report shape the media backend emits.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import DecodeError


class Orientation(enum.Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class PlayerPhase(enum.Enum):
    """Combined playback/visibility state reported to host UIs."""

    IDLE = "idle"
    LOADING = "loading"
    PLAYING_VISIBLE = "playing_visible"
    PLAYING_HIDDEN = "playing_hidden"
    PAUSED = "paused"
    LOCKED = "locked"
    FAILED = "failed"


@dataclass(frozen=True)
class StatusReport:
    """Status update pushed by the media backend.

    Attributes:
        loaded: True once the media is loaded and the other fields are meaningful.
        is_playing: True while the decoder is actually advancing.
        position_millis: Current decoder position.
        duration_millis: Media duration, 0 if unknown.
        error: Error message from the decoder, None if healthy.
        did_just_finish: True on the report that signals end-of-media.
    """

    loaded: bool
    is_playing: bool = False
    position_millis: int = 0
    duration_millis: int = 0
    error: Optional[str] = None
    did_just_finish: bool = False

    @classmethod
    def failed(cls, message: str) -> "StatusReport":
        return cls(loaded=False, error=message)


@dataclass
class PlaybackSession:
    """One load of one locator; replaced wholesale on episode change."""

    media_uri: str
    generation: int
    handle: Any = None
    duration_millis: int = 0
    is_playing: bool = True
    is_loading: bool = True
    is_seek_in_progress: bool = False
    error: Optional[DecodeError] = None
    _position_millis: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        if not self.media_uri:
            raise ValueError("media_uri must be a non-empty locator")

    @property
    def position_millis(self) -> int:
        return self._position_millis

    @position_millis.setter
    def position_millis(self, value: int) -> None:
        self._position_millis = self.clamp(value)

    @property
    def is_loaded(self) -> bool:
        return not self.is_loading and self.error is None

    def clamp(self, millis: int) -> int:
        """Clamp a position to [0, duration_millis]."""
        return max(0, min(int(millis), self.duration_millis))


@dataclass
class ControlsVisibilityState:
    visible: bool = True
    is_locked: bool = False
    auto_hide_deadline: Optional[float] = None


@dataclass
class OrientationState:
    is_fullscreen: bool = False
    requested: Orientation = Orientation.PORTRAIT


def format_time(millis: int) -> str:
    """Format milliseconds as M:SS, or H:MM:SS past the hour."""
    total_seconds = max(0, int(millis)) // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"
