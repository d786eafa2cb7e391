"""
Collaborator protocols consumed by the playback controller.

The controller talks to the decoder and to the platform orientation lock only
through these protocols, so the Qt implementations can be swapped for
in-memory fakes in unit tests.
"""
from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

from .models import Orientation, StatusReport


StatusListener = Callable[[StatusReport], None]
CompletionCallback = Callable[[bool], None]


class MediaBackend(Protocol):
    """Protocol for media decoding/rendering backends.

    Requests return immediately; outcomes arrive later through the status
    listener given to ``load`` and through the optional ``on_done`` callbacks,
    which receive True when the request was carried out.
    """

    def load(self, uri: str, listener: StatusListener) -> Any:
        """Start loading ``uri`` and return an opaque handle for it.

        Args:
            uri: Locator of the media resource.
            listener: Receives every StatusReport for this handle.
        """
        ...

    def play(self, handle: Any, on_done: Optional[CompletionCallback] = None) -> None:
        ...

    def pause(self, handle: Any, on_done: Optional[CompletionCallback] = None) -> None:
        ...

    def seek_to(self, handle: Any, millis: int, on_done: Optional[CompletionCallback] = None) -> None:
        ...

    def release(self, handle: Any) -> None:
        """Stop playback and free the decode resource behind ``handle``."""
        ...


class OrientationBackend(Protocol):
    """Protocol for the process-wide screen orientation lock.

    Either method may raise OrientationRejectedError.
    """

    def lock(self, orientation: Orientation) -> None:
        ...

    def unlock(self) -> None:
        ...
