"""Tests for the on-disk JSON cache."""

from __future__ import annotations

import os
import time
from pathlib import Path

from data_fetcher.cache import LocalCache


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    cache = LocalCache(tmp_path / "cache")

    cache.save("sleeper_players_nfl", {"4046": {"full_name": "Patrick Mahomes"}})

    assert cache.load("sleeper_players_nfl") == {"4046": {"full_name": "Patrick Mahomes"}}
    assert list((tmp_path / "cache").iterdir()) == [tmp_path / "cache" / "sleeper_players_nfl.json"]


def test_expired_entries_are_ignored(tmp_path: Path) -> None:
    cache = LocalCache(tmp_path, max_age_seconds=60)
    cache.save("weekly_stats_2025_7", {"1": {"rec": 2}})
    old = time.time() - 120
    os.utime(cache.path_for("weekly_stats_2025_7"), (old, old))

    assert cache.load("weekly_stats_2025_7") is None


def test_unreadable_entry_returns_none(tmp_path: Path) -> None:
    cache = LocalCache(tmp_path)
    cache.path_for("broken").write_text("{not json", encoding="utf-8")

    assert cache.load("broken") is None


def test_keys_are_sanitized(tmp_path: Path) -> None:
    cache = LocalCache(tmp_path)

    assert cache.path_for("stats/2025:7").name == "stats_2025_7.json"


def test_discard_reports_whether_entry_existed(tmp_path: Path) -> None:
    cache = LocalCache(tmp_path)
    cache.save("key", [1, 2])

    assert cache.discard("key") is True
    assert cache.discard("key") is False
    assert cache.load("key") is None
