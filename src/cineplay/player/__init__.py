"""Playback core: controller, session models and collaborator protocols.

Qt adapters live in ``qt_backends`` and the host overlay in ``widget``; they
are not imported here so the controller can be used without a display.

Example usage:
    >>> controller = PlaybackController(media, orientation, scheduler,
    ...                                 navigator=EpisodeNavigator.from_locators(uris))
    >>> controller.start()
    >>> controller.toggle_fullscreen()
    >>> controller.go_to_next_episode()
    >>> controller.close()
"""

from .backends import MediaBackend, OrientationBackend
from .controller import PlaybackController
from .episodes import Episode, EpisodeNavigator, EpisodeServer, display_title, parse_servers, resolve_locator
from .errors import (
    DecodeError,
    InvalidStateError,
    NoSuchEpisodeError,
    OrientationRejectedError,
    PlaybackError,
)
from .models import (
    ControlsVisibilityState,
    Orientation,
    OrientationState,
    PlaybackSession,
    PlayerPhase,
    StatusReport,
    format_time,
)
from .scheduling import DelayedAction, Scheduler

__all__ = [
    "PlaybackController",
    "MediaBackend",
    "OrientationBackend",
    "Scheduler",
    "DelayedAction",
    "Episode",
    "EpisodeServer",
    "EpisodeNavigator",
    "display_title",
    "parse_servers",
    "resolve_locator",
    "PlaybackError",
    "DecodeError",
    "InvalidStateError",
    "NoSuchEpisodeError",
    "OrientationRejectedError",
    "PlaybackSession",
    "ControlsVisibilityState",
    "OrientationState",
    "Orientation",
    "PlayerPhase",
    "StatusReport",
    "format_time",
]
