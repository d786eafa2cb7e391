"""Episode lists and navigation.

The catalog delivers episodes grouped by streaming server; each entry carries
a manifest link and an embed link. Playback only needs one locator per
episode, resolved here so the controller stays agnostic of the catalog shape.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import NoSuchEpisodeError


@dataclass(frozen=True)
class Episode:
    name: str
    locator: str
    slug: str = ""


@dataclass(frozen=True)
class EpisodeServer:
    name: str
    episodes: Tuple[Episode, ...] = field(default_factory=tuple)


def resolve_locator(entry: Mapping[str, Any], prefer_stream_manifest: bool = True) -> str:
    """Pick the playable locator of a catalog episode entry.

    The HLS manifest is preferred; the embed link is the fallback (or the
    other way around when ``prefer_stream_manifest`` is False).
    """
    manifest = str(entry.get("link_m3u8") or "").strip()
    embed = str(entry.get("link_embed") or "").strip()
    if prefer_stream_manifest:
        return manifest or embed
    return embed or manifest


def parse_servers(payload: Mapping[str, Any], prefer_stream_manifest: bool = True) -> List[EpisodeServer]:
    """Parse the ``episodes`` block of a catalog detail payload.

    Entries without any locator are skipped; server order and episode order
    are kept as delivered.
    """
    servers: List[EpisodeServer] = []
    for index, raw_server in enumerate(payload.get("episodes") or []):
        if not isinstance(raw_server, Mapping):
            continue
        episodes: List[Episode] = []
        for raw in raw_server.get("server_data") or []:
            if not isinstance(raw, Mapping):
                continue
            locator = resolve_locator(raw, prefer_stream_manifest)
            if not locator:
                continue
            name = str(raw.get("name") or "").strip()
            episodes.append(Episode(name=name, locator=locator, slug=str(raw.get("slug") or "")))
        server_name = str(raw_server.get("server_name") or f"Server {index + 1}")
        servers.append(EpisodeServer(name=server_name, episodes=tuple(episodes)))
    return servers


def movie_title(payload: Mapping[str, Any]) -> str:
    movie = payload.get("movie") or payload.get("item") or {}
    if not isinstance(movie, Mapping):
        return ""
    return str(movie.get("name") or movie.get("title") or "")


def display_title(movie: str, episode: Optional[Episode]) -> str:
    """``"<movie> - <episode>"`` when the episode has a name, else the movie title."""
    if episode is not None and episode.name:
        return f"{movie} - {episode.name}" if movie else episode.name
    return movie


class EpisodeNavigator:
    """Ordered episode list with a cursor."""

    def __init__(self, episodes: Iterable[Episode], current_index: int = 0) -> None:
        self._episodes: Tuple[Episode, ...] = tuple(episodes)
        if self._episodes and not 0 <= current_index < len(self._episodes):
            raise ValueError(
                f"current_index {current_index} out of range for {len(self._episodes)} episodes"
            )
        self._index = current_index if self._episodes else 0

    @classmethod
    def from_locators(cls, locators: Sequence[str], current_index: int = 0) -> "EpisodeNavigator":
        episodes = [Episode(name=f"Episode {pos + 1}", locator=uri) for pos, uri in enumerate(locators)]
        return cls(episodes, current_index)

    @property
    def episodes(self) -> Tuple[Episode, ...]:
        return self._episodes

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> Optional[Episode]:
        if not self._episodes:
            return None
        return self._episodes[self._index]

    @property
    def has_next(self) -> bool:
        return bool(self._episodes) and self._index < len(self._episodes) - 1

    @property
    def has_previous(self) -> bool:
        return bool(self._episodes) and self._index > 0

    def peek(self, step: int) -> Episode:
        """Return the neighbor ``step`` positions away without moving."""
        target = self._index + step
        if not self._episodes or not 0 <= target < len(self._episodes):
            raise NoSuchEpisodeError(self._index, step)
        return self._episodes[target]

    def step(self, step: int) -> Episode:
        """Move the cursor by ``step`` and return the new current episode."""
        episode = self.peek(step)
        self._index += step
        return episode

    def __len__(self) -> int:
        return len(self._episodes)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "index": self._index,
            "count": len(self._episodes),
            "has_next": self.has_next,
            "has_previous": self.has_previous,
        }
