"""Engine settings loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .scoring import DEFAULT_DENYLIST_VERSION, Denylist
from .win_probability import DEFAULT_STD_DEV

DEFAULT_MAX_WORKERS = 4


@dataclass()
class EngineConfig:
    """Tunables for scoring, win probability and concurrent refresh."""

    win_probability_sd: float = DEFAULT_STD_DEV
    denylist_version: str = DEFAULT_DENYLIST_VERSION
    denylist_path: Optional[Path] = None
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self) -> None:
        if self.win_probability_sd <= 0:
            raise ValueError("WIN_PROBABILITY_SD must be positive.")
        if self.max_workers < 1:
            raise ValueError("FANTASY_MAX_WORKERS must be at least 1.")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        path = os.environ.get("SCORING_DENYLIST_PATH")
        return cls(
            win_probability_sd=_env_number("WIN_PROBABILITY_SD", DEFAULT_STD_DEV, float),
            denylist_version=os.environ.get("SCORING_DENYLIST_VERSION") or DEFAULT_DENYLIST_VERSION,
            denylist_path=Path(path) if path else None,
            max_workers=_env_number("FANTASY_MAX_WORKERS", DEFAULT_MAX_WORKERS, int),
        )

    def load_denylist(self) -> Denylist:
        """File override first, then the built-in table for ``denylist_version``."""
        if self.denylist_path is not None:
            return Denylist.from_file(self.denylist_path)
        return Denylist.builtin(self.denylist_version)


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}.") from exc
