from __future__ import annotations

import json
import os
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional


PLAYER_SECTION = "player"
AUTO_HIDE_ENV = "CINEPLAY_AUTO_HIDE_MS"


class ConfigStore:
    """Thread-safe JSON-backed configuration store, one bucket per section."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.RLock()
        self._data: Dict[str, Dict[str, Any]] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            self._data = {}
            return
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, json.JSONDecodeError):
            self._data = {}
            return
        if isinstance(raw, dict):
            self._data = {key.lower(): value for key, value in raw.items() if isinstance(value, dict)}
        else:
            self._data = {}

    def save(self) -> None:
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("w", encoding="utf-8") as handle:
                json.dump(self._data, handle, indent=2, sort_keys=True)

    def section(self, name: str) -> "SectionConfig":
        name = name.lower()
        with self._lock:
            snapshot = dict(self._data.get(name, {}))
        return SectionConfig(self, name, snapshot)

    def update_section(self, name: str, values: Dict[str, Any]) -> None:
        name = name.lower()
        with self._lock:
            self._data.setdefault(name, {}).update(values)
            self.save()

    def write_section(self, name: str, values: Dict[str, Any]) -> None:
        name = name.lower()
        with self._lock:
            self._data[name] = dict(values)
            self.save()

    def get_snapshot(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return json.loads(json.dumps(self._data))

    def player_settings(self) -> "PlayerSettings":
        return PlayerSettings.from_mapping(self.section(PLAYER_SECTION))


class SectionConfig(MutableMapping[str, Any]):
    """Write-through mapping view over one section of the store."""

    def __init__(self, store: ConfigStore, name: str, cache: Optional[Dict[str, Any]] = None) -> None:
        self._store = store
        self._name = name
        self._cache = cache or {}

    def __getitem__(self, key: str) -> Any:
        return self._cache[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._cache[key] = value
        self._store.update_section(self._name, {key: value})

    def __delitem__(self, key: str) -> None:
        if key not in self._cache:
            raise KeyError(key)
        del self._cache[key]
        self._store.write_section(self._name, self._cache)

    def __iter__(self) -> Iterator[str]:
        return iter(self._cache)

    def __len__(self) -> int:
        return len(self._cache)

    def update(self, other: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:  # type: ignore[override]
        payload: Dict[str, Any] = {}
        if other:
            payload.update(other)
        if kwargs:
            payload.update(kwargs)
        if not payload:
            return
        self._cache.update(payload)
        self._store.update_section(self._name, payload)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._cache)


@dataclass(frozen=True)
class PlayerSettings:
    """Tunables of the playback controller."""

    auto_hide_delay_ms: int = 4000
    skip_interval_ms: int = 10000
    auto_advance: bool = False
    prefer_stream_manifest: bool = True

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None) -> "PlayerSettings":
        """Build settings from a config section, skipping malformed entries."""
        defaults = cls()
        environ = os.environ if environ is None else environ

        def _int(key: str, fallback: int) -> int:
            value = values.get(key, fallback)
            if isinstance(value, bool):
                return fallback
            try:
                number = int(value)
            except (TypeError, ValueError):
                return fallback
            return number if number > 0 else fallback

        def _bool(key: str, fallback: bool) -> bool:
            value = values.get(key, fallback)
            return value if isinstance(value, bool) else fallback

        auto_hide = _int("auto_hide_delay_ms", defaults.auto_hide_delay_ms)
        override = environ.get(AUTO_HIDE_ENV, "").strip()
        if override.isdigit() and int(override) > 0:
            auto_hide = int(override)

        return cls(
            auto_hide_delay_ms=auto_hide,
            skip_interval_ms=_int("skip_interval_ms", defaults.skip_interval_ms),
            auto_advance=_bool("auto_advance", defaults.auto_advance),
            prefer_stream_manifest=_bool("prefer_stream_manifest", defaults.prefer_stream_manifest),
        )

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
