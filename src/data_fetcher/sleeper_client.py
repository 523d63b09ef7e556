"""Sleeper API client (roster and stat centric platform)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .cache import LocalCache
from .errors import DecodingFailure, NotFoundFailure, TransportFailure, translate_http_error

DEFAULT_BASE_URL = "https://api.sleeper.app/v1"
PLAYER_DIRECTORY_CACHE_KEY = "sleeper_players_nfl"

logger = logging.getLogger(__name__)


@dataclass()
class SleeperConfig:
    """Container for Sleeper connection settings."""

    base_url: str = DEFAULT_BASE_URL
    timeout: int = 15

    @classmethod
    def from_env(cls) -> "SleeperConfig":
        return cls(base_url=os.environ.get("SLEEPER_BASE_URL", DEFAULT_BASE_URL))


class SleeperClient:
    """Handle Sleeper API reads. Every method returns decoded JSON or raises."""

    def __init__(
        self,
        config: Optional[SleeperConfig] = None,
        session: Optional[requests.Session] = None,
        cache: Optional[LocalCache] = None,
    ) -> None:
        self.config = config or SleeperConfig()
        self.session = session or requests.Session()
        self.cache = cache

    @classmethod
    def from_env(cls, cache: Optional[LocalCache] = None) -> "SleeperClient":
        """Instantiate a client using environment variables."""
        if cache is None:
            cache_dir = Path(os.environ.get("FANTASY_CACHE_DIR", "config/cache"))
            max_age_env = os.environ.get("FANTASY_CACHE_MAX_AGE")
            max_age = int(max_age_env) if max_age_env else None
            cache = LocalCache(cache_dir, max_age_seconds=max_age)
        return cls(config=SleeperConfig.from_env(), cache=cache)

    # ------------------------------------------------------------------
    # League data
    # ------------------------------------------------------------------

    def fetch_league(self, league_id: str) -> Dict[str, Any]:
        """Fetch league metadata, settings and scoring settings."""
        return self._get_dict(f"league/{league_id}")

    def fetch_rosters(self, league_id: str) -> List[Dict[str, Any]]:
        return self._get_list(f"league/{league_id}/rosters")

    def fetch_users(self, league_id: str) -> List[Dict[str, Any]]:
        return self._get_list(f"league/{league_id}/users")

    def fetch_matchups(self, league_id: str, week: int) -> List[Dict[str, Any]]:
        """Fetch the weekly matchup entries (one per roster)."""
        return self._get_list(f"league/{league_id}/matchups/{week}")

    def fetch_draft_picks(self, draft_id: str) -> List[Dict[str, Any]]:
        return self._get_list(f"draft/{draft_id}/picks")

    # ------------------------------------------------------------------
    # Stats and players
    # ------------------------------------------------------------------

    def fetch_weekly_stats(self, week: int, season: str) -> Dict[str, Any]:
        """Fetch the raw stat table for every NFL player in a week."""
        return self._get_dict(
            f"stats/nfl/regular/{season}/{week}",
            params={"season_type": "regular"},
        )

    def fetch_players(self, *, use_cache: bool = True) -> Dict[str, Any]:
        """Fetch the full player directory, cached on disk when a cache is configured."""
        if use_cache and self.cache:
            cached = self.cache.load(PLAYER_DIRECTORY_CACHE_KEY)
            if isinstance(cached, dict):
                return cached

        payload = self._get_dict("players/nfl")
        if self.cache and use_cache:
            self.cache.save(PLAYER_DIRECTORY_CACHE_KEY, payload)
        return payload

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def fetch_user(self, username: str) -> Dict[str, Any]:
        """Look up a user by username or id."""
        payload = self._get_json(f"user/{username}")
        # Sleeper answers unknown users with a literal ``null`` body.
        if payload is None:
            raise NotFoundFailure(f"Sleeper user not found: {username}")
        if not isinstance(payload, dict):
            raise DecodingFailure("Sleeper user payload is not an object.")
        return payload

    def resolve_user_identity(self, credential: str) -> str:
        """Return the Sleeper user id for a username or numeric id."""
        credential = credential.strip()
        if credential.isdigit():
            return credential
        user = self.fetch_user(credential)
        user_id = user.get("user_id")
        if not user_id:
            raise DecodingFailure(f"Sleeper user {credential} has no user_id.")
        return str(user_id)

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------

    def _get_dict(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = self._get_json(path, params=params)
        if payload is None:
            raise NotFoundFailure(f"Sleeper returned no data for {path}")
        if not isinstance(payload, dict):
            raise DecodingFailure(f"Expected an object from {path}, got {type(payload).__name__}.")
        return payload

    def _get_list(self, path: str) -> List[Dict[str, Any]]:
        payload = self._get_json(path)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise DecodingFailure(f"Expected a list from {path}, got {type(payload).__name__}.")
        return payload

    def _get_json(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"
        logger.debug("GET %s", url)
        try:
            response = self.session.get(url, params=params, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise translate_http_error(exc, url) from exc
        except requests.RequestException as exc:
            raise TransportFailure(f"GET {url} failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise DecodingFailure(f"GET {url} returned invalid JSON.") from exc
