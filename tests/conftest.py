"""Shared pytest setup: import path and a small canonical player directory."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"


def pytest_configure() -> None:
    if str(SRC_DIR) not in sys.path:
        sys.path.insert(0, str(SRC_DIR))


@pytest.fixture
def player_directory():
    """Directory with one player known to both platforms."""
    from data_processor.models import PlayerDirectory, PlayerRecord

    return PlayerDirectory(
        [PlayerRecord(player_id="4046", full_name="Patrick Mahomes", position="QB", nfl_team="KC", espn_id="3139477")]
    )
