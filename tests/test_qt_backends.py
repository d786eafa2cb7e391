"""Tests for the Qt adapters of the playback core."""
from __future__ import annotations

import os
from typing import cast
from unittest.mock import MagicMock

import pytest
from PySide6.QtMultimedia import QMediaPlayer
from PySide6.QtTest import QTest
from PySide6.QtWidgets import QApplication, QWidget

from cineplay.player.errors import OrientationRejectedError
from cineplay.player.models import Orientation
from cineplay.player.qt_backends import QtMediaHandle, QtOrientationBackend, QtScheduler

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="module")
def qt_app() -> QApplication:
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return cast(QApplication, app)


def _fake_player(status, playing=False, position=0, duration=0, error=""):
    player = MagicMock()
    player.mediaStatus.return_value = status
    player.playbackState.return_value = (
        QMediaPlayer.PlaybackState.PlayingState if playing else QMediaPlayer.PlaybackState.StoppedState
    )
    player.position.return_value = position
    player.duration.return_value = duration
    player.errorString.return_value = error
    return player


class TestQtMediaHandle:
    def test_loaded_status_is_reported(self):
        reports = []
        player = _fake_player(QMediaPlayer.MediaStatus.BufferedMedia, playing=True, position=1500, duration=90_000)
        handle = QtMediaHandle("uri", player, MagicMock(), reports.append)

        handle.report()

        assert len(reports) == 1
        report = reports[0]
        assert report.loaded is True
        assert report.is_playing is True
        assert report.position_millis == 1500
        assert report.duration_millis == 90_000
        assert report.did_just_finish is False

    def test_loading_status_is_not_loaded(self):
        reports = []
        handle = QtMediaHandle("uri", _fake_player(QMediaPlayer.MediaStatus.LoadingMedia), MagicMock(), reports.append)
        handle.report()
        assert reports[0].loaded is False
        assert reports[0].error is None

    def test_end_of_media_sets_finish_flag(self):
        reports = []
        player = _fake_player(QMediaPlayer.MediaStatus.EndOfMedia, position=90_000, duration=90_000)
        handle = QtMediaHandle("uri", player, MagicMock(), reports.append)
        handle.report()
        assert reports[0].did_just_finish is True

    def test_invalid_media_is_a_failure(self):
        reports = []
        player = _fake_player(QMediaPlayer.MediaStatus.InvalidMedia, error="Unsupported format")
        handle = QtMediaHandle("uri", player, MagicMock(), reports.append)
        handle.report()
        assert reports[0].loaded is False
        assert reports[0].error == "Unsupported format"

    def test_error_signal_and_release(self):
        reports = []
        handle = QtMediaHandle("uri", _fake_player(QMediaPlayer.MediaStatus.LoadingMedia), MagicMock(), reports.append)
        handle.report_error(QMediaPlayer.Error.ResourceError, "404 Not Found")
        assert reports[-1].error == "404 Not Found"

        handle.released = True
        handle.report()
        handle.report_error(QMediaPlayer.Error.ResourceError, "ignored")
        assert len(reports) == 1


class TestQtOrientationBackend:
    def test_without_window_requests_are_rejected(self, qt_app):
        backend = QtOrientationBackend()
        with pytest.raises(OrientationRejectedError):
            backend.lock(Orientation.LANDSCAPE)
        with pytest.raises(OrientationRejectedError):
            backend.unlock()

    def test_landscape_means_fullscreen(self, qt_app):
        window = QWidget()
        backend = QtOrientationBackend(window)
        backend.unlock()
        backend.lock(Orientation.LANDSCAPE)
        assert window.isFullScreen()

        backend.lock(Orientation.PORTRAIT)
        assert not window.isFullScreen()
        window.close()


class TestQtScheduler:
    def test_callback_fires_on_event_loop(self, qt_app):
        scheduler = QtScheduler()
        fired = []
        scheduler.call_later(10, lambda: fired.append(True))
        QTest.qWait(100)
        assert fired == [True]

    def test_cancelled_callback_never_fires(self, qt_app):
        scheduler = QtScheduler()
        fired = []
        handle = scheduler.call_later(10, lambda: fired.append(True))
        handle.cancel()
        handle.cancel()
        QTest.qWait(100)
        assert fired == []

    def test_now_is_monotonic(self, qt_app):
        scheduler = QtScheduler()
        first = scheduler.now()
        assert scheduler.now() >= first
