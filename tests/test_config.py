"""Tests for environment-driven engine configuration."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from data_processor.config import EngineConfig
from data_processor.scoring import DEFAULT_DENYLIST_VERSION


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("WIN_PROBABILITY_SD", "SCORING_DENYLIST_VERSION", "SCORING_DENYLIST_PATH", "FANTASY_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)

    config = EngineConfig.from_env()

    assert config.win_probability_sd == 40.0
    assert config.denylist_version == DEFAULT_DENYLIST_VERSION
    assert config.denylist_path is None
    assert config.max_workers == 4
    assert "qb_hit" in config.load_denylist().keys


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "denylist.json"
    path.write_text(json.dumps({"version": "local", "keys": ["rec_tgt"]}), encoding="utf-8")
    monkeypatch.setenv("WIN_PROBABILITY_SD", "25.5")
    monkeypatch.setenv("FANTASY_MAX_WORKERS", "8")
    monkeypatch.setenv("SCORING_DENYLIST_PATH", str(path))

    config = EngineConfig.from_env()

    assert config.win_probability_sd == 25.5
    assert config.max_workers == 8
    denylist = config.load_denylist()
    assert denylist.version == "local"
    assert denylist.keys == frozenset({"rec_tgt"})


@pytest.mark.parametrize(
    "name, value",
    [("WIN_PROBABILITY_SD", "wide"), ("WIN_PROBABILITY_SD", "0"), ("FANTASY_MAX_WORKERS", "0")],
)
def test_invalid_values_raise(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError):
        EngineConfig.from_env()
