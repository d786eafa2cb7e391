"""
Playback controller.

Mediates user intents (play/pause, seek, lock, fullscreen, episode stepping)
against the current PlaybackSession and the media backend, and owns the
timed visibility of the on-screen controls.

Everything runs on the UI thread. Backend requests return immediately and
report back through callbacks; each callback is bound to the generation of
the session that issued it and is dropped once that session is gone.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Dict, Optional, Tuple

from ..core.config import PlayerSettings
from ..core.events import (
    CONTROLS_CHANGED,
    EPISODE_CHANGED,
    ORIENTATION_CHANGED,
    ORIENTATION_REJECTED,
    PLAYBACK_ERROR,
    PLAYBACK_STATE,
    SESSION_CLOSED,
    SESSION_STARTED,
    EventBus,
)
from .backends import MediaBackend, OrientationBackend
from .episodes import EpisodeNavigator, display_title
from .errors import DecodeError, InvalidStateError, NoSuchEpisodeError, OrientationRejectedError
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


class PlaybackController:
    """Drives one media backend for one player view.

    The backends and the scheduler are injected so the controller can run
    against Qt in the application and against fakes in tests.
    """

    def __init__(
        self,
        media_backend: MediaBackend,
        orientation_backend: OrientationBackend,
        scheduler: Scheduler,
        navigator: Optional[EpisodeNavigator] = None,
        settings: Optional[PlayerSettings] = None,
        event_bus: Optional[EventBus] = None,
        logger: Optional[logging.Logger] = None,
        movie_title: str = "",
    ) -> None:
        self._media = media_backend
        self._orientation_backend = orientation_backend
        self._settings = settings or PlayerSettings()
        self._events = event_bus or EventBus()
        self._log = logger or logging.getLogger("CinePlay.Controller")
        self._navigator = navigator or EpisodeNavigator(())
        self._movie_title = movie_title

        self._session: Optional[PlaybackSession] = None
        self._generation = 0
        self._seek_token = 0
        self._closed = False
        self._controls = ControlsVisibilityState()
        self._orientation = OrientationState()
        self._visibility_key: Optional[Tuple[bool, bool, bool, bool]] = None
        self._auto_hide = DelayedAction(
            scheduler,
            self._settings.auto_hide_delay_ms,
            action=self._on_auto_hide,
            armed=self._auto_hide_armed,
        )

    # ------------------------------------------------------------------ state

    @property
    def session(self) -> Optional[PlaybackSession]:
        return self._session

    @property
    def controls(self) -> ControlsVisibilityState:
        self._controls.auto_hide_deadline = self._auto_hide.deadline
        return self._controls

    @property
    def orientation(self) -> OrientationState:
        return self._orientation

    @property
    def navigator(self) -> EpisodeNavigator:
        return self._navigator

    @property
    def settings(self) -> PlayerSettings:
        return self._settings

    @property
    def event_bus(self) -> EventBus:
        return self._events

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def has_next_episode(self) -> bool:
        return self._navigator.has_next

    @property
    def has_previous_episode(self) -> bool:
        return self._navigator.has_previous

    @property
    def title(self) -> str:
        return display_title(self._movie_title, self._navigator.current)

    @property
    def position_text(self) -> str:
        return format_time(self._session.position_millis if self._session else 0)

    @property
    def duration_text(self) -> str:
        return format_time(self._session.duration_millis if self._session else 0)

    @property
    def phase(self) -> PlayerPhase:
        session = self._session
        if session is None:
            return PlayerPhase.IDLE
        if self._controls.is_locked:
            return PlayerPhase.LOCKED
        if session.error is not None:
            return PlayerPhase.FAILED
        if session.is_loading:
            return PlayerPhase.LOADING
        if not session.is_playing:
            return PlayerPhase.PAUSED
        return PlayerPhase.PLAYING_VISIBLE if self._controls.visible else PlayerPhase.PLAYING_HIDDEN

    def snapshot(self) -> Dict[str, Any]:
        session = self._session
        data: Dict[str, Any] = {
            "phase": self.phase.value,
            "visible": self._controls.visible,
            "locked": self._controls.is_locked,
            "fullscreen": self._orientation.is_fullscreen,
            "episode": self._navigator.as_dict(),
        }
        if session is not None:
            data.update(
                uri=session.media_uri,
                generation=session.generation,
                position_millis=session.position_millis,
                duration_millis=session.duration_millis,
                is_playing=session.is_playing,
                is_loading=session.is_loading,
                is_seek_in_progress=session.is_seek_in_progress,
                error=session.error.message if session.error else None,
            )
        return data

    # --------------------------------------------------------------- lifecycle

    def initialize(self, media_uri: str) -> PlaybackSession:
        """Open ``media_uri`` in a fresh session and start playing it.

        Any previous session is released first, so at most one decode
        resource exists per controller.
        """
        if not media_uri:
            raise ValueError("media_uri must be a non-empty locator")
        self._closed = False
        self._teardown_session()

        self._generation += 1
        session = PlaybackSession(media_uri=media_uri, generation=self._generation)
        self._session = session
        self._controls.visible = True
        self._log.info("Opening %s (generation %d)", media_uri, session.generation)

        listener = functools.partial(self.on_decoder_status_report, generation=session.generation)
        session.handle = self._media.load(media_uri, listener)
        if self._is_current(session.generation) and session.error is None:
            self._media.play(session.handle, on_done=self._request_callback(session.generation, "play"))

        self._events.emit(SESSION_STARTED, {"uri": media_uri, "generation": session.generation})
        self._sync_auto_hide(force=True)
        return session

    def start(self) -> PlaybackSession:
        """Open the navigator's current episode."""
        episode = self._navigator.current
        if episode is None:
            raise InvalidStateError("start", "no episodes to play")
        return self.initialize(episode.locator)

    def retry(self) -> PlaybackSession:
        """Reopen the current locator, typically after a decode error."""
        if self._session is None:
            raise InvalidStateError("retry", "nothing was opened")
        return self.initialize(self._session.media_uri)

    def close(self) -> None:
        """Release the decode resource and restore the orientation lock."""
        if self._closed:
            return
        self._closed = True
        self._teardown_session()
        self._generation += 1
        try:
            self._orientation_backend.unlock()
        except OrientationRejectedError as exc:
            self._log.warning("Could not restore orientation on close: %s", exc)
        self._orientation = OrientationState()
        self._visibility_key = None
        self._events.emit(SESSION_CLOSED, {})

    def __enter__(self) -> "PlaybackController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _teardown_session(self) -> None:
        session, self._session = self._session, None
        self._auto_hide.cancel()
        if session is None:
            return
        if session.handle is not None:
            self._media.release(session.handle)
        self._log.info("Released %s (generation %d)", session.media_uri, session.generation)

    def _is_current(self, generation: int) -> bool:
        return self._session is not None and self._session.generation == generation

    # ------------------------------------------------------- decoder feedback

    def on_decoder_status_report(self, report: StatusReport, generation: Optional[int] = None) -> None:
        """Apply a status report from the media backend.

        ``generation`` is bound by ``initialize``; reports from a torn down
        session are discarded.
        """
        session = self._session
        if session is None or (generation is not None and generation != session.generation):
            self._log.debug("Discarding stale status report (generation %s)", generation)
            return

        if report.loaded:
            session.is_loading = False
            session.is_playing = report.is_playing
            session.duration_millis = max(0, int(report.duration_millis))
            if session.is_seek_in_progress:
                # Keep showing the scrub target; only re-clamp to the new duration.
                session.position_millis = session.position_millis
            else:
                session.position_millis = report.position_millis
        elif report.error:
            self._record_decode_error(session, report.error)
        else:
            return

        self._events.emit(PLAYBACK_STATE, self.snapshot())
        self._sync_auto_hide()

        if report.did_just_finish and self._is_current(session.generation):
            self._on_end_of_media()

    def _record_decode_error(self, session: PlaybackSession, message: str) -> None:
        session.is_loading = False
        session.is_playing = False
        session.is_seek_in_progress = False
        session.error = DecodeError(session.media_uri, message)
        self._log.warning("Playback failed for %s: %s", session.media_uri, message)
        self._controls.visible = True
        self._events.emit(
            PLAYBACK_ERROR,
            {"uri": session.media_uri, "message": message, "generation": session.generation},
        )

    def _on_end_of_media(self) -> None:
        if self._settings.auto_advance and self._navigator.has_next:
            self._log.info("End of media, advancing to next episode")
            self.go_to_next_episode()
            return
        self.show_controls()

    def _request_callback(self, generation: int, operation: str):
        def _done(ok: bool) -> None:
            if not self._is_current(generation):
                self._log.debug("Ignoring late %s completion (generation %d)", operation, generation)
                return
            if not ok:
                self._log.warning("%s request was rejected by the media backend", operation)
        return _done

    # --------------------------------------------------------------- transport

    def _require_loaded(self, operation: str) -> PlaybackSession:
        session = self._session
        if session is None or session.is_loading:
            raise InvalidStateError(operation)
        if session.error is not None:
            raise InvalidStateError(operation, "session failed to load")
        return session

    def toggle_play_pause(self) -> None:
        """Ask the backend to pause or resume.

        ``is_playing`` only changes once a status report confirms it.
        """
        session = self._require_loaded("toggle_play_pause")
        on_done = self._request_callback(session.generation, "pause" if session.is_playing else "play")
        if session.is_playing:
            self._media.pause(session.handle, on_done=on_done)
        else:
            self._media.play(session.handle, on_done=on_done)
        self.show_controls()

    def seek_relative(self, delta_millis: int) -> int:
        session = self._require_loaded("seek_relative")
        return self.seek_absolute(session.clamp(session.position_millis + delta_millis))

    def skip_forward(self) -> int:
        return self.seek_relative(self._settings.skip_interval_ms)

    def skip_backward(self) -> int:
        return self.seek_relative(-self._settings.skip_interval_ms)

    def begin_scrub(self) -> None:
        """Freeze decoder position updates while the user drags the slider."""
        session = self._require_loaded("begin_scrub")
        session.is_seek_in_progress = True
        self.show_controls()

    def cancel_scrub(self) -> None:
        session = self._session
        if session is not None and session.is_seek_in_progress:
            session.is_seek_in_progress = False
            self._events.emit(PLAYBACK_STATE, self.snapshot())

    def seek_absolute(self, target_millis: int) -> int:
        """Seek to ``target_millis`` clamped to the media duration.

        Returns the clamped target. The displayed position jumps to the
        target immediately and ignores decoder reports until the seek
        completes.
        """
        session = self._require_loaded("seek_absolute")
        target = session.clamp(target_millis)
        session.is_seek_in_progress = True
        session.position_millis = target
        self._seek_token += 1
        token = self._seek_token
        self._media.seek_to(
            session.handle,
            target,
            on_done=functools.partial(self._on_seek_done, session.generation, token),
        )
        self.show_controls()
        self._events.emit(PLAYBACK_STATE, self.snapshot())
        return target

    def _on_seek_done(self, generation: int, token: int, ok: bool) -> None:
        if not self._is_current(generation):
            self._log.debug("Ignoring late seek completion (generation %d)", generation)
            return
        if not ok:
            self._log.warning("Seek request was rejected by the media backend")
        if token != self._seek_token:
            # A newer seek is still pending.
            return
        self._session.is_seek_in_progress = False
        self._events.emit(PLAYBACK_STATE, self.snapshot())

    # ---------------------------------------------------------------- controls

    def toggle_lock(self) -> bool:
        """Flip the lock; unlocking reveals the controls again."""
        self._controls.is_locked = not self._controls.is_locked
        if self._controls.is_locked:
            self._sync_auto_hide()
            self._events.emit(CONTROLS_CHANGED, self.snapshot())
        else:
            self.show_controls()
        return self._controls.is_locked

    def show_controls(self) -> None:
        """Reveal the controls and restart the auto-hide countdown."""
        self._controls.visible = True
        self._sync_auto_hide(force=True)
        self._events.emit(CONTROLS_CHANGED, self.snapshot())

    def hide_controls(self) -> None:
        if self._controls.is_locked:
            return
        self._controls.visible = False
        self._sync_auto_hide()
        self._events.emit(CONTROLS_CHANGED, self.snapshot())

    def toggle_controls_visibility(self) -> bool:
        """Tap on the video surface. While locked this only ever reveals."""
        if self._controls.is_locked or not self._controls.visible:
            self.show_controls()
        else:
            self.hide_controls()
        return self._controls.visible

    def _auto_hide_armed(self) -> bool:
        session = self._session
        return (
            session is not None
            and session.is_playing
            and not session.is_loading
            and not self._controls.is_locked
        )

    def _on_auto_hide(self) -> None:
        self._log.debug("Auto-hiding controls")
        self.hide_controls()

    def _sync_auto_hide(self, force: bool = False) -> None:
        session = self._session
        key = (
            self._controls.visible,
            session.is_loading if session is not None else True,
            session.is_playing if session is not None else False,
            self._controls.is_locked,
        )
        if key == self._visibility_key and not force:
            return
        self._visibility_key = key
        if self._controls.visible and self._auto_hide_armed():
            self._auto_hide.schedule()
        else:
            self._auto_hide.cancel()

    # -------------------------------------------------------------- fullscreen

    def toggle_fullscreen(self) -> bool:
        """Flip fullscreen and request the matching orientation lock.

        The flag is flipped optimistically; a rejected orientation request is
        logged and published but not rolled back.
        """
        entering = not self._orientation.is_fullscreen
        target = Orientation.LANDSCAPE if entering else Orientation.PORTRAIT
        self._orientation.is_fullscreen = entering
        self._orientation.requested = target
        self._events.emit(ORIENTATION_CHANGED, {"fullscreen": entering, "orientation": target.value})
        try:
            self._orientation_backend.unlock()
            self._orientation_backend.lock(target)
        except OrientationRejectedError as exc:
            self._log.warning("Orientation %s rejected: %s", target.value, exc)
            self._events.emit(ORIENTATION_REJECTED, {"orientation": target.value, "message": str(exc)})
        return entering

    # ---------------------------------------------------------------- episodes

    def go_to_next_episode(self) -> bool:
        return self._step_episode(1)

    def go_to_previous_episode(self) -> bool:
        return self._step_episode(-1)

    def _step_episode(self, step: int) -> bool:
        try:
            episode = self._navigator.step(step)
        except NoSuchEpisodeError as exc:
            self._log.debug("Ignoring episode step: %s", exc)
            return False
        self._log.info("Switching to episode %d: %s", self._navigator.current_index + 1, episode.name)
        self._events.emit(
            EPISODE_CHANGED,
            {"index": self._navigator.current_index, "name": episode.name, "locator": episode.locator},
        )
        self.initialize(episode.locator)
        return True
