"""Shared fakes and fixtures for playback tests."""
from __future__ import annotations

from typing import Any, Callable, List, Optional, Tuple

import pytest

from cineplay.core.config import PlayerSettings
from cineplay.core.events import EventBus
from cineplay.player.controller import PlaybackController
from cineplay.player.episodes import Episode, EpisodeNavigator
from cineplay.player.errors import OrientationRejectedError
from cineplay.player.models import Orientation, StatusReport


class FakeMediaBackend:
    """In-memory MediaBackend.

    Every request is recorded in ``calls``; completions are queued until the
    test calls ``complete`` so asynchronous delivery can be simulated.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[Any, ...]] = []
        self.listeners: dict = {}
        self.released: List[str] = []
        self.pending: List[Tuple[str, Callable[[bool], None]]] = []
        self._counter = 0

    def load(self, uri: str, listener) -> str:
        self._counter += 1
        handle = f"handle-{self._counter}"
        self.listeners[handle] = listener
        self.calls.append(("load", uri))
        return handle

    def play(self, handle: str, on_done=None) -> None:
        self.calls.append(("play", handle))
        self._queue("play", on_done)

    def pause(self, handle: str, on_done=None) -> None:
        self.calls.append(("pause", handle))
        self._queue("pause", on_done)

    def seek_to(self, handle: str, millis: int, on_done=None) -> None:
        self.calls.append(("seek_to", handle, millis))
        self._queue("seek_to", on_done)

    def release(self, handle: str) -> None:
        self.calls.append(("release", handle))
        self.released.append(handle)

    def _queue(self, op: str, on_done) -> None:
        if on_done is not None:
            self.pending.append((op, on_done))

    # helpers ----------------------------------------------------------------

    @property
    def latest_handle(self) -> str:
        return f"handle-{self._counter}"

    def report(self, handle: Optional[str] = None, **fields: Any) -> None:
        """Push a StatusReport through the listener registered for ``handle``."""
        self.listeners[handle or self.latest_handle](StatusReport(**fields))

    def complete(self, op: Optional[str] = None, ok: bool = True) -> int:
        """Run queued completions (optionally only for ``op``); returns how many ran."""
        ran = [entry for entry in self.pending if op is None or entry[0] == op]
        self.pending = [entry for entry in self.pending if entry not in ran]
        for _, callback in ran:
            callback(ok)
        return len(ran)

    def ops(self, name: str) -> List[Tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]

    def seek_targets(self) -> List[int]:
        return [call[2] for call in self.ops("seek_to")]


class FakeOrientationBackend:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, Optional[Orientation]]] = []
        self.reject = False

    def lock(self, orientation: Orientation) -> None:
        self.calls.append(("lock", orientation))
        if self.reject:
            raise OrientationRejectedError(f"platform ignored {orientation.value}")

    def unlock(self) -> None:
        self.calls.append(("unlock", None))


class _ManualTimer:
    def __init__(self, deadline: int, callback: Callable[[], None]) -> None:
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler with a virtual clock advanced explicitly by tests."""

    def __init__(self) -> None:
        self._now_ms = 0
        self._timers: List[_ManualTimer] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self._now_ms + int(delay_ms), callback)
        self._timers.append(timer)
        return timer

    def now(self) -> float:
        return self._now_ms / 1000.0

    @property
    def active(self) -> int:
        return sum(1 for timer in self._timers if not timer.cancelled)

    def advance(self, millis: int) -> None:
        target = self._now_ms + int(millis)
        while True:
            due = [t for t in self._timers if not t.cancelled and t.deadline <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.deadline)
            self._timers.remove(timer)
            self._now_ms = timer.deadline
            timer.callback()
        self._timers = [t for t in self._timers if not t.cancelled]
        self._now_ms = target


DURATION = 600_000


@pytest.fixture
def media() -> FakeMediaBackend:
    return FakeMediaBackend()


@pytest.fixture
def orientation() -> FakeOrientationBackend:
    return FakeOrientationBackend()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def episodes() -> List[Episode]:
    return [
        Episode(name="Episode A", locator="https://cdn.example/a.m3u8"),
        Episode(name="Episode B", locator="https://cdn.example/b.m3u8"),
        Episode(name="Episode C", locator="https://cdn.example/c.m3u8"),
    ]


@pytest.fixture
def make_controller(media, orientation, scheduler, bus):
    def _make(
        episodes: Optional[List[Episode]] = None,
        index: int = 0,
        settings: Optional[PlayerSettings] = None,
        title: str = "",
    ) -> PlaybackController:
        navigator = EpisodeNavigator(episodes or [], index)
        return PlaybackController(
            media,
            orientation,
            scheduler,
            navigator=navigator,
            settings=settings,
            event_bus=bus,
            movie_title=title,
        )

    return _make


@pytest.fixture
def controller(make_controller) -> PlaybackController:
    return make_controller()


@pytest.fixture
def playing(controller, media) -> PlaybackController:
    """Controller with a loaded, playing 10 minute session at position 0."""
    controller.initialize("uri1")
    media.report(loaded=True, is_playing=True, position_millis=0, duration_millis=DURATION)
    return controller
