from __future__ import annotations

import json
from pathlib import Path

import pytest

from cineplay.app import build_parser, load_navigator
from cineplay.core.config import PlayerSettings


PAYLOAD = {
    "movie": {"name": "Night Harbor"},
    "episodes": [
        {
            "server_name": "Server A",
            "server_data": [
                {"name": "Tap 1", "link_m3u8": "https://cdn.example/a1.m3u8", "link_embed": "https://embed.example/a1"},
                {"name": "Tap 2", "link_m3u8": "https://cdn.example/a2.m3u8", "link_embed": "https://embed.example/a2"},
            ],
        },
        {
            "server_name": "Server B",
            "server_data": [
                {"name": "Tap 1", "link_m3u8": "", "link_embed": "https://embed.example/b1"},
            ],
        },
    ],
}


def _write_payload(tmp_path: Path) -> Path:
    path = tmp_path / "detail.json"
    path.write_text(json.dumps(PAYLOAD), encoding="utf-8")
    return path


def test_parser_defaults():
    args = build_parser().parse_args(["movie.mp4"])
    assert args.locators == ["movie.mp4"]
    assert args.episodes is None
    assert args.server == 0
    assert args.index == 0
    assert args.title == ""
    assert args.config is None


def test_locators_form_an_episode_list():
    args = build_parser().parse_args(["a.mp4", "b.mp4", "--index", "1", "--title", "Clips"])
    navigator, title = load_navigator(args, PlayerSettings())
    assert len(navigator) == 2
    assert navigator.current.locator == "b.mp4"
    assert title == "Clips"


def test_catalog_payload_selects_server(tmp_path: Path):
    path = _write_payload(tmp_path)
    args = build_parser().parse_args(["--episodes", str(path), "--index", "1"])

    navigator, title = load_navigator(args, PlayerSettings())

    assert title == "Night Harbor"
    assert navigator.current.name == "Tap 2"
    assert navigator.current.locator == "https://cdn.example/a2.m3u8"
    assert navigator.has_previous is True


def test_catalog_payload_respects_locator_preference(tmp_path: Path):
    path = _write_payload(tmp_path)
    args = build_parser().parse_args(["--episodes", str(path), "--title", "Custom"])

    navigator, title = load_navigator(args, PlayerSettings(prefer_stream_manifest=False))

    assert title == "Custom"
    assert navigator.current.locator == "https://embed.example/a1"


def test_unknown_server_is_rejected(tmp_path: Path):
    path = _write_payload(tmp_path)
    args = build_parser().parse_args(["--episodes", str(path), "--server", "5"])
    with pytest.raises(ValueError, match="server 5"):
        load_navigator(args, PlayerSettings())


def test_nothing_to_play():
    args = build_parser().parse_args([])
    with pytest.raises(ValueError, match="nothing to play"):
        load_navigator(args, PlayerSettings())


def test_bad_index_is_rejected():
    args = build_parser().parse_args(["a.mp4", "--index", "4"])
    with pytest.raises(ValueError):
        load_navigator(args, PlayerSettings())


def test_missing_catalog_file(tmp_path: Path):
    args = build_parser().parse_args(["--episodes", str(tmp_path / "missing.json")])
    with pytest.raises(OSError):
        load_navigator(args, PlayerSettings())
