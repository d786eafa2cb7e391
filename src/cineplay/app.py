from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PySide6.QtMultimediaWidgets import QVideoWidget
from PySide6.QtWidgets import QApplication, QMainWindow

from .core.config import PlayerSettings
from .core.services import CoreServices
from .player.controller import PlaybackController
from .player.episodes import EpisodeNavigator, movie_title, parse_servers
from .player.qt_backends import QtMediaBackend, QtOrientationBackend, QtScheduler
from .player.widget import PlayerOverlayWidget


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cineplay",
        description="Play a movie or an episode list with the CinePlay overlay.",
    )
    parser.add_argument("locators", nargs="*", help="Media locators; several form an episode list")
    parser.add_argument("--episodes", type=Path, help="Catalog detail JSON with an 'episodes' block")
    parser.add_argument("--server", type=int, default=0, help="Server index inside --episodes (default: 0)")
    parser.add_argument("--index", type=int, default=0, help="Episode to start with (0-based)")
    parser.add_argument("--title", default="", help="Movie title shown above the video")
    parser.add_argument("--config", type=Path, help="Path of the JSON configuration file")
    return parser


def load_navigator(args: argparse.Namespace, settings: PlayerSettings) -> Tuple[EpisodeNavigator, str]:
    """Build the episode list from CLI arguments.

    Raises:
        ValueError: if no playable locator was given or an index is out of range.
    """
    title = args.title
    if args.episodes is not None:
        with args.episodes.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        servers = parse_servers(payload, settings.prefer_stream_manifest)
        if not 0 <= args.server < len(servers):
            raise ValueError(f"server {args.server} not found ({len(servers)} available)")
        episodes = servers[args.server].episodes
        title = title or movie_title(payload)
        navigator = EpisodeNavigator(episodes, args.index)
    else:
        navigator = EpisodeNavigator.from_locators(args.locators, args.index)
    if len(navigator) == 0:
        raise ValueError("nothing to play")
    return navigator, title


class PlayerWindow(QMainWindow):
    def __init__(self, services: CoreServices, navigator: EpisodeNavigator, title: str = "") -> None:
        super().__init__()
        self._services = services
        self.setWindowTitle("CinePlay")
        self.resize(1024, 640)

        video = QVideoWidget()
        self._orientation = QtOrientationBackend(self)
        self.controller = PlaybackController(
            media_backend=QtMediaBackend(video_output=video, parent=self),
            orientation_backend=self._orientation,
            scheduler=QtScheduler(self),
            navigator=navigator,
            settings=services.player_settings(),
            event_bus=services.event_bus,
            logger=services.get_logger("Controller"),
            movie_title=title,
        )
        self.overlay = PlayerOverlayWidget(self.controller, video_widget=video)
        self.overlay.close_requested.connect(self.close)
        self.setCentralWidget(self.overlay)

    def start(self) -> None:
        self.show()
        self.overlay.setFocus()
        self.controller.start()
        self.setWindowTitle(self.controller.title or "CinePlay")

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.overlay.detach()
        self.controller.close()
        super().closeEvent(event)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    services = CoreServices(config_path=args.config)
    try:
        navigator, title = load_navigator(args, services.player_settings())
    except (OSError, ValueError) as exc:
        parser.error(str(exc))

    qt_args: List[str] = [sys.argv[0]] if sys.argv else ["cineplay"]
    app = QApplication.instance() or QApplication(qt_args)
    window = PlayerWindow(services, navigator, title)
    window.start()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
