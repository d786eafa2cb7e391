"""Qt implementations of the playback collaborators.

``QtMediaBackend`` wraps one ``QMediaPlayer`` per loaded locator,
``QtOrientationBackend`` maps orientation locks onto the host window, and
``QtScheduler`` provides single-shot ``QTimer`` based delayed calls.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, Qt, QTimer, QUrl
from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer
from PySide6.QtWidgets import QWidget

from .backends import CompletionCallback, StatusListener
from .errors import OrientationRejectedError
from .models import Orientation, StatusReport


_LOADED_STATES = (
    QMediaPlayer.MediaStatus.LoadedMedia,
    QMediaPlayer.MediaStatus.StalledMedia,
    QMediaPlayer.MediaStatus.BufferingMedia,
    QMediaPlayer.MediaStatus.BufferedMedia,
    QMediaPlayer.MediaStatus.EndOfMedia,
)


def _defer(callback: Optional[CompletionCallback], ok: bool) -> None:
    """Deliver a request completion on the next event loop turn."""
    if callback is None:
        return
    QTimer.singleShot(0, lambda: callback(ok))


class QtMediaHandle:
    """One QMediaPlayer plus the listener its status reports go to."""

    def __init__(self, uri: str, player: QMediaPlayer, audio: QAudioOutput, listener: StatusListener) -> None:
        self.uri = uri
        self.player = player
        self.audio = audio
        self._listener = listener
        self.released = False

    def report(self, *_args: Any) -> None:
        if self.released:
            return
        status = self.player.mediaStatus()
        if status == QMediaPlayer.MediaStatus.InvalidMedia:
            self._listener(StatusReport.failed(self.player.errorString() or "Invalid media"))
            return
        self._listener(
            StatusReport(
                loaded=status in _LOADED_STATES,
                is_playing=self.player.playbackState() == QMediaPlayer.PlaybackState.PlayingState,
                position_millis=max(0, self.player.position()),
                duration_millis=max(0, self.player.duration()),
                did_just_finish=status == QMediaPlayer.MediaStatus.EndOfMedia,
            )
        )

    def report_error(self, _error: Any, message: str = "") -> None:
        if self.released:
            return
        self._listener(StatusReport.failed(message or self.player.errorString() or "Playback error"))


class QtMediaBackend:
    """MediaBackend on top of QtMultimedia."""

    def __init__(
        self,
        video_output: Optional[QObject] = None,
        parent: Optional[QObject] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._video_output = video_output
        self._owner = parent if parent is not None else QObject()
        self._log = logger or logging.getLogger("CinePlay.QtMediaBackend")

    def set_video_output(self, video_output: Optional[QObject]) -> None:
        self._video_output = video_output

    def load(self, uri: str, listener: StatusListener) -> QtMediaHandle:
        player = QMediaPlayer(self._owner)
        audio = QAudioOutput(player)
        player.setAudioOutput(audio)
        if self._video_output is not None:
            player.setVideoOutput(self._video_output)

        handle = QtMediaHandle(uri, player, audio, listener)
        player.mediaStatusChanged.connect(handle.report)
        player.playbackStateChanged.connect(handle.report)
        player.durationChanged.connect(handle.report)
        player.positionChanged.connect(handle.report)
        player.errorOccurred.connect(handle.report_error)

        self._log.debug("Loading %s", uri)
        player.setSource(QUrl.fromUserInput(uri))
        return handle

    def play(self, handle: QtMediaHandle, on_done: Optional[CompletionCallback] = None) -> None:
        if handle.released:
            _defer(on_done, False)
            return
        handle.player.play()
        _defer(on_done, True)

    def pause(self, handle: QtMediaHandle, on_done: Optional[CompletionCallback] = None) -> None:
        if handle.released:
            _defer(on_done, False)
            return
        handle.player.pause()
        _defer(on_done, True)

    def seek_to(self, handle: QtMediaHandle, millis: int, on_done: Optional[CompletionCallback] = None) -> None:
        if handle.released or not handle.player.isSeekable():
            _defer(on_done, False)
            return
        handle.player.setPosition(int(millis))
        _defer(on_done, True)

    def release(self, handle: QtMediaHandle) -> None:
        if handle.released:
            return
        handle.released = True
        player = handle.player
        player.stop()
        player.setVideoOutput(None)
        player.setSource(QUrl())
        player.deleteLater()
        self._log.debug("Released %s", handle.uri)


class QtOrientationBackend:
    """Orientation lock for desktop windows.

    Landscape means full screen, portrait means the normal window; the
    content orientation is reported to the platform window as well.
    """

    def __init__(self, window: Optional[QWidget] = None) -> None:
        self._window = window

    def attach(self, window: Optional[QWidget]) -> None:
        self._window = window

    def _native(self):
        if self._window is None:
            raise OrientationRejectedError("no window attached")
        return self._window.windowHandle()

    def lock(self, orientation: Orientation) -> None:
        native = self._native()
        if orientation is Orientation.LANDSCAPE:
            self._window.showFullScreen()
            content = Qt.ScreenOrientation.LandscapeOrientation
        else:
            self._window.showNormal()
            content = Qt.ScreenOrientation.PortraitOrientation
        if native is not None:
            native.reportContentOrientationChange(content)

    def unlock(self) -> None:
        native = self._native()
        if native is not None:
            native.reportContentOrientationChange(Qt.ScreenOrientation.PrimaryOrientation)


class _QtTimerHandle:
    def __init__(self, timer: QTimer, callback: Callable[[], None]) -> None:
        self._timer = timer
        self._callback = callback
        self._active = True
        timer.timeout.connect(self._fire)

    def _fire(self) -> None:
        if not self._active:
            return
        self._active = False
        self._timer.deleteLater()
        self._callback()

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._timer.stop()
        self._timer.deleteLater()


class QtScheduler:
    """Scheduler backed by single-shot QTimers on the GUI event loop.

    Timers are parented to an owner object so that only ``deleteLater``
    ever destroys them.
    """

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._owner = parent if parent is not None else QObject()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _QtTimerHandle:
        timer = QTimer(self._owner)
        timer.setSingleShot(True)
        handle = _QtTimerHandle(timer, callback)
        timer.start(int(delay_ms))
        return handle

    def now(self) -> float:
        return time.monotonic()
