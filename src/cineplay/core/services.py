from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .config import ConfigStore, PlayerSettings, SectionConfig
from .events import EventBus


class CoreServices:
    """Shared services handed to the controller and its host window."""

    def __init__(
        self,
        app_name: str = "CinePlay",
        data_dir: Optional[Path] = None,
        config_path: Optional[Path] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.app_name = app_name
        self.data_dir = data_dir or self._resolve_data_dir(app_name)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._logger = logger or self._configure_logger(app_name)
        self._config_store = ConfigStore(config_path or self.data_dir / "config.json")
        self.event_bus = EventBus()

    @staticmethod
    def _resolve_data_dir(app_name: str) -> Path:
        if os.name == "nt":
            base = Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming"))
        else:
            base = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
        return base / app_name.lower()

    @staticmethod
    def _configure_logger(app_name: str) -> logging.Logger:
        logger = logging.getLogger(app_name)
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        return logger

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def get_logger(self, name: str) -> logging.Logger:
        return self._logger.getChild(name)

    @property
    def config_store(self) -> ConfigStore:
        return self._config_store

    def get_section(self, name: str) -> SectionConfig:
        return self._config_store.section(name)

    def player_settings(self) -> PlayerSettings:
        return self._config_store.player_settings()
