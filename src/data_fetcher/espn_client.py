"""ESPN fantasy football client (league and settings centric platform)."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .errors import DecodingFailure, TransportFailure, UnsupportedOperationFailure, translate_http_error

DEFAULT_BASE_URL = "https://lm-api-reads.fantasy.espn.com/apis/v3/games/ffl"
LEAGUE_VIEWS = ("mTeam", "mRoster", "mMatchupScore", "mSettings")
DRAFT_VIEWS = ("mDraftDetail", "mTeam", "mRoster", "mSettings")

# ESPN member ids (SWID) look like {8-4-4-4-12 hex}.
_SWID_PATTERN = re.compile(r"^\{?[0-9A-Fa-f]{8}-(?:[0-9A-Fa-f]{4}-){3}[0-9A-Fa-f]{12}\}?$")

logger = logging.getLogger(__name__)


@dataclass()
class EspnConfig:
    """Container for ESPN connection settings and optional cookie credentials."""

    base_url: str = DEFAULT_BASE_URL
    espn_s2: Optional[str] = None
    swid: Optional[str] = None
    timeout: int = 15

    @classmethod
    def from_env(cls) -> "EspnConfig":
        return cls(
            base_url=os.environ.get("ESPN_BASE_URL", DEFAULT_BASE_URL),
            espn_s2=os.environ.get("ESPN_S2") or None,
            swid=os.environ.get("ESPN_SWID") or None,
        )

    @property
    def cookies(self) -> Dict[str, str]:
        """Cookie jar contents for private leagues (empty for public ones)."""
        if not self.espn_s2 or not self.swid:
            return {}
        return {"espn_s2": self.espn_s2, "SWID": self.swid}


class EspnClient:
    """Handle ESPN league reads. Every method returns decoded JSON or raises."""

    def __init__(
        self,
        config: Optional[EspnConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config or EspnConfig()
        self.session = session or requests.Session()

    @classmethod
    def from_env(cls) -> "EspnClient":
        return cls(config=EspnConfig.from_env())

    def fetch_league(self, league_id: str, season: str, week: Optional[int] = None) -> Dict[str, Any]:
        """Fetch teams, rosters, schedule and settings in a single document."""
        params: Dict[str, Any] = {"view": list(LEAGUE_VIEWS)}
        if week is not None:
            params["scoringPeriodId"] = week
        return self._get_league_document(league_id, season, params)

    def fetch_draft(self, league_id: str, season: str) -> Dict[str, Any]:
        """Fetch draft detail plus final rosters for draft reconstruction."""
        return self._get_league_document(league_id, season, {"view": list(DRAFT_VIEWS)})

    def resolve_user_identity(self, credential: str) -> str:
        """Return a normalized member id.

        ESPN has no public username lookup, so only SWID-style member ids are
        accepted.
        """
        value = credential.strip()
        if not _SWID_PATTERN.match(value):
            raise UnsupportedOperationFailure(
                "ESPN does not support username lookup; supply the SWID member id."
            )
        inner = value.strip("{}").upper()
        return "{" + inner + "}"

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------

    def _get_league_document(self, league_id: str, season: str, params: Dict[str, Any]) -> Dict[str, Any]:
        path = f"seasons/{season}/segments/0/leagues/{league_id}"
        payload = self._get_json(path, params=params)
        if not isinstance(payload, dict):
            raise DecodingFailure(f"Expected an object from {path}, got {type(payload).__name__}.")
        return payload

    def _get_json(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"
        logger.debug("GET %s", url)
        try:
            response = self.session.get(
                url,
                params=params,
                cookies=self.config.cookies,
                headers={"Accept": "application/json"},
                timeout=self.config.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise translate_http_error(exc, url) from exc
        except requests.RequestException as exc:
            raise TransportFailure(f"GET {url} failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise DecodingFailure(f"GET {url} returned invalid JSON.") from exc

