"""Canonical, platform-independent model produced by the normalization engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple


class Platform(str, Enum):
    """Upstream platform a league lives on."""

    SLEEPER = "sleeper"
    ESPN = "espn"


@dataclass(frozen=True)
class League:
    """One fantasy league for a season and scoring week."""

    league_id: str
    platform: Platform
    season: str
    week: int
    team_count: int
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "league_id": self.league_id,
            "platform": self.platform.value,
            "season": self.season,
            "week": self.week,
            "team_count": self.team_count,
            "name": self.name,
        }


@dataclass(frozen=True)
class PlayerRecord:
    """Player directory entry keyed by the canonical (Sleeper) player id."""

    player_id: str
    full_name: str
    position: Optional[str] = None
    nfl_team: Optional[str] = None
    espn_id: Optional[str] = None


class PlayerDirectory:
    """Lookup of canonical player records, with ESPN id canonicalisation."""

    def __init__(self, records: Iterable[PlayerRecord] = ()) -> None:
        self._records: Dict[str, PlayerRecord] = {}
        self._by_espn_id: Dict[str, str] = {}
        for record in records:
            self._records[record.player_id] = record
            if record.espn_id:
                self._by_espn_id[record.espn_id] = record.player_id

    @classmethod
    def from_sleeper(cls, payload: Dict[str, Any]) -> "PlayerDirectory":
        """Build from the Sleeper ``/players/nfl`` document."""
        records: List[PlayerRecord] = []
        for player_id, raw in payload.items():
            if not isinstance(raw, dict):
                continue
            full_name = raw.get("full_name")
            if not full_name:
                first = raw.get("first_name") or ""
                last = raw.get("last_name") or ""
                full_name = f"{first} {last}".strip() or str(player_id)
            espn_id = raw.get("espn_id")
            records.append(
                PlayerRecord(
                    player_id=str(player_id),
                    full_name=str(full_name),
                    position=raw.get("position"),
                    nfl_team=raw.get("team"),
                    espn_id=str(espn_id) if espn_id not in (None, "") else None,
                )
            )
        return cls(records)

    def with_records(self, extra: Iterable[PlayerRecord]) -> "PlayerDirectory":
        """Return a new directory that also knows ``extra`` (existing ids win)."""
        merged = dict(self._records)
        for record in extra:
            merged.setdefault(record.player_id, record)
        return PlayerDirectory(merged.values())

    def lookup(self, player_id: str) -> Optional[PlayerRecord]:
        return self._records.get(str(player_id))

    def canonical_id_for_espn(self, espn_id: Any) -> Optional[str]:
        """Return the canonical id for an ESPN player id, if the directory knows it."""
        return self._by_espn_id.get(str(espn_id))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, player_id: object) -> bool:
        return str(player_id) in self._records


@dataclass(frozen=True)
class PlayerScore:
    """Recomputed fantasy score for one player in one league-week."""

    player_id: str
    league_id: str
    week: int
    value: float


@dataclass
class Player:
    """Rostered player with a league-specific recomputed score."""

    player_id: str
    name: str
    position: Optional[str]
    nfl_team: Optional[str]
    score: float
    is_starter: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "position": self.position,
            "nfl_team": self.nfl_team,
            "score": self.score,
            "is_starter": self.is_starter,
        }


@dataclass
class Team:
    """A league participant's roster, record and weekly score."""

    team_id: str
    owner_id: Optional[str]
    owner_name: str
    players: List[Player] = field(default_factory=list)
    score: float = 0.0
    wins: int = 0
    losses: int = 0
    ties: int = 0
    is_mine: bool = False

    @property
    def starters(self) -> List[Player]:
        return [player for player in self.players if player.is_starter]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team_id,
            "owner_id": self.owner_id,
            "owner_name": self.owner_name,
            "score": self.score,
            "record": {"wins": self.wins, "losses": self.losses, "ties": self.ties},
            "is_mine": self.is_mine,
            "players": [player.to_dict() for player in self.players],
        }


@dataclass
class Matchup:
    """Two teams scheduled against each other in a week."""

    matchup_id: str
    week: int
    home: Team
    away: Team
    home_win_probability: float

    @property
    def away_win_probability(self) -> float:
        return 1.0 - self.home_win_probability

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matchup_id": self.matchup_id,
            "week": self.week,
            "home": self.home.to_dict(),
            "away": self.away.to_dict(),
            "home_win_probability": self.home_win_probability,
        }


@dataclass(frozen=True)
class DraftPick:
    """One canonical draft selection."""

    pick_number: int
    round: int
    draft_slot: int
    roster_id: str
    player_id: str
    is_reconstructed: bool
    player_name: Optional[str] = None
    position: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pick_number": self.pick_number,
            "round": self.round,
            "draft_slot": self.draft_slot,
            "roster_id": self.roster_id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "position": self.position,
            "is_reconstructed": self.is_reconstructed,
        }


def id_sort_key(value: str) -> Tuple[int, int, str]:
    """Order numeric ids numerically, ahead of any non-numeric ids."""
    return (0, int(value), "") if value.isdigit() else (1, 0, value)
