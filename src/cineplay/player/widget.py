"""Player overlay widget.

Hosts the video surface and the control overlay and forwards every user
intent to the PlaybackController:
- Tap on the video surface: show/hide controls (only shows while locked)
- Lock button: always reachable while the controls are shown
- Transport row: skip -10s / play-pause / skip +10s, previous/next episode
- Progress slider: press starts a scrub, release seeks
- Retry button: shown only after a decode error
Keyboard: Space play/pause, Left/Right skip, F fullscreen, L lock,
N/P next/previous episode, Esc close.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from PySide6.QtCore import QEvent, QObject, Qt, Signal
from PySide6.QtGui import QKeyEvent, QMouseEvent
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSlider,
    QVBoxLayout,
    QWidget,
)

from ..core.events import (
    CONTROLS_CHANGED,
    EPISODE_CHANGED,
    ORIENTATION_CHANGED,
    PLAYBACK_ERROR,
    PLAYBACK_STATE,
    SESSION_CLOSED,
    SESSION_STARTED,
)
from .controller import PlaybackController
from .errors import InvalidStateError
from .models import PlayerPhase


_log = logging.getLogger("CinePlay.Overlay")

_REFRESH_EVENTS = (
    PLAYBACK_STATE,
    PLAYBACK_ERROR,
    CONTROLS_CHANGED,
    EPISODE_CHANGED,
    ORIENTATION_CHANGED,
    SESSION_STARTED,
    SESSION_CLOSED,
)


class PlayerOverlayWidget(QWidget):
    """Video surface plus control overlay bound to one controller."""

    close_requested = Signal()

    def __init__(
        self,
        controller: PlaybackController,
        video_widget: Optional[QWidget] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._controller = controller
        self._video_widget = video_widget or QWidget(self)
        self._setup_ui()

        for name in _REFRESH_EVENTS:
            controller.event_bus.subscribe(name, self._on_controller_event)

        self._video_widget.installEventFilter(self)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.refresh()

    @property
    def controller(self) -> PlaybackController:
        return self._controller

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self._title_label = QLabel("")
        self._title_label.setStyleSheet("background-color: #000000; color: #ffffff; padding: 6px 12px;")
        layout.addWidget(self._title_label)

        self._content_frame = QFrame(self)
        self._content_frame.setStyleSheet("background-color: #000000;")
        content_layout = QVBoxLayout(self._content_frame)
        content_layout.setContentsMargins(0, 0, 0, 0)
        content_layout.addWidget(self._video_widget, stretch=1)

        self._status_label = QLabel("")
        self._status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._status_label.setStyleSheet("color: #ffffff;")
        content_layout.addWidget(self._status_label)

        self._retry_button = QPushButton("⟳ Retry")
        self._retry_button.clicked.connect(lambda: self._invoke(self._controller.retry))
        content_layout.addWidget(self._retry_button, alignment=Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._content_frame, stretch=1)

        self._controls_frame = QFrame(self)
        self._controls_frame.setStyleSheet("""
            QFrame {
                background-color: rgba(0, 0, 0, 180);
            }
            QPushButton {
                background-color: transparent;
                color: #ffffff;
                border: none;
                padding: 8px 12px;
                font-size: 14px;
            }
            QPushButton:hover {
                background-color: rgba(255, 255, 255, 30);
            }
            QPushButton:disabled {
                color: #666666;
            }
            QLabel {
                color: #ffffff;
                font-size: 12px;
            }
        """)
        controls_layout = QVBoxLayout(self._controls_frame)
        controls_layout.setContentsMargins(16, 8, 16, 8)

        progress_row = QHBoxLayout()
        self._time_label = QLabel("0:00/0:00")
        progress_row.addWidget(self._time_label)
        self._progress_slider = QSlider(Qt.Orientation.Horizontal)
        self._progress_slider.setRange(0, 0)
        self._progress_slider.sliderPressed.connect(self._on_slider_pressed)
        self._progress_slider.sliderReleased.connect(self._on_slider_released)
        progress_row.addWidget(self._progress_slider, stretch=1)
        self._fullscreen_button = QPushButton("⛶")
        self._fullscreen_button.clicked.connect(lambda: self._invoke(self._controller.toggle_fullscreen))
        progress_row.addWidget(self._fullscreen_button)
        controls_layout.addLayout(progress_row)

        buttons_row = QHBoxLayout()
        self._lock_button = QPushButton("🔓")
        self._lock_button.clicked.connect(lambda: self._invoke(self._controller.toggle_lock))
        buttons_row.addWidget(self._lock_button)
        buttons_row.addStretch(1)

        self._prev_button = QPushButton("⏮")
        self._prev_button.clicked.connect(lambda: self._invoke(self._controller.go_to_previous_episode))
        self._back_button = QPushButton("⟲ 10")
        self._back_button.clicked.connect(lambda: self._invoke(self._controller.skip_backward))
        self._play_pause_button = QPushButton("▶")
        self._play_pause_button.clicked.connect(lambda: self._invoke(self._controller.toggle_play_pause))
        self._forward_button = QPushButton("10 ⟳")
        self._forward_button.clicked.connect(lambda: self._invoke(self._controller.skip_forward))
        self._next_button = QPushButton("⏭")
        self._next_button.clicked.connect(lambda: self._invoke(self._controller.go_to_next_episode))
        for button in (
            self._prev_button,
            self._back_button,
            self._play_pause_button,
            self._forward_button,
            self._next_button,
        ):
            buttons_row.addWidget(button)
        buttons_row.addStretch(1)
        controls_layout.addLayout(buttons_row)

        self._progress_widgets = (self._time_label, self._progress_slider, self._fullscreen_button)
        self._transport_widgets = (
            self._prev_button,
            self._back_button,
            self._play_pause_button,
            self._forward_button,
            self._next_button,
        )
        layout.addWidget(self._controls_frame)

    # ----------------------------------------------------------------- intents

    def _invoke(self, action: Callable[[], Any]) -> None:
        """Run a controller action; actions on an unloaded session are ignored."""
        try:
            action()
        except InvalidStateError as exc:
            _log.debug("Ignored: %s", exc)
        self.refresh()

    def _on_slider_pressed(self) -> None:
        self._invoke(self._controller.begin_scrub)

    def _on_slider_released(self) -> None:
        target = self._progress_slider.value()
        session = self._controller.session
        if session is None or not session.is_seek_in_progress:
            return
        self._invoke(lambda: self._controller.seek_absolute(target))

    def _on_controller_event(self, _name: str, _data: Dict[str, Any]) -> None:
        self.refresh()

    # ------------------------------------------------------------------ render

    def refresh(self) -> None:
        controller = self._controller
        controls = controller.controls
        session = controller.session
        phase = controller.phase
        locked = controls.is_locked

        self._title_label.setText(controller.title)
        self._controls_frame.setVisible(controls.visible)
        self._lock_button.setText("🔒" if locked else "🔓")
        for widget in self._transport_widgets + self._progress_widgets:
            widget.setVisible(not locked)

        has_episodes = len(controller.navigator) > 1
        self._prev_button.setVisible(has_episodes and not locked)
        self._next_button.setVisible(has_episodes and not locked)
        self._prev_button.setEnabled(controller.has_previous_episode)
        self._next_button.setEnabled(controller.has_next_episode)

        playing = session is not None and session.is_playing
        self._play_pause_button.setText("⏸" if playing else "▶")
        self._fullscreen_button.setText("🗗" if controller.orientation.is_fullscreen else "⛶")

        duration = session.duration_millis if session is not None else 0
        self._progress_slider.setRange(0, duration)
        if not self._progress_slider.isSliderDown():
            self._progress_slider.setValue(session.position_millis if session is not None else 0)
        self._time_label.setText(f"{controller.position_text}/{controller.duration_text}")

        if phase is PlayerPhase.LOADING:
            self._status_label.setText("Loading…")
        elif session is not None and session.error is not None:
            self._status_label.setText(f"Playback failed: {session.error.message}")
        else:
            self._status_label.setText("")
        self._status_label.setVisible(bool(self._status_label.text()))
        self._retry_button.setVisible(session is not None and session.error is not None)

    # ------------------------------------------------------------------ events

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        if watched is self._video_widget and event.type() == QEvent.Type.MouseButtonPress:
            self._invoke(self._controller.toggle_controls_visibility)
            return True
        if watched is self._video_widget and event.type() == QEvent.Type.MouseMove:
            self._invoke(self._controller.show_controls)
        return super().eventFilter(watched, event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        self._invoke(self._controller.show_controls)
        super().mouseMoveEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        key = event.key()
        bindings = (
            (Qt.Key.Key_Space, self._controller.toggle_play_pause),
            (Qt.Key.Key_Left, self._controller.skip_backward),
            (Qt.Key.Key_Right, self._controller.skip_forward),
            (Qt.Key.Key_F, self._controller.toggle_fullscreen),
            (Qt.Key.Key_F11, self._controller.toggle_fullscreen),
            (Qt.Key.Key_L, self._controller.toggle_lock),
            (Qt.Key.Key_N, self._controller.go_to_next_episode),
            (Qt.Key.Key_P, self._controller.go_to_previous_episode),
        )
        if key == Qt.Key.Key_Escape:
            self.close_requested.emit()
            return
        for candidate, action in bindings:
            if key == candidate:
                self._invoke(action)
                return
        super().keyPressEvent(event)

    def detach(self) -> None:
        """Stop listening to the controller."""
        for name in _REFRESH_EVENTS:
            self._controller.event_bus.unsubscribe(name, self._on_controller_event)
