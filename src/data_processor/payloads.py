"""Explicit record types for the raw documents each platform returns.

Every upstream shape is decoded into its own record here, at the boundary.
Platform-specific optional fields stop at these records; the assembler and
draft reconstructor convert them into the canonical model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from data_fetcher.errors import DecodingFailure

ESPN_BENCH_SLOTS = {20, 21}
ESPN_POSITIONS = {1: "QB", 2: "RB", 3: "WR", 4: "TE", 5: "K", 16: "DEF"}


# ----------------------------------------------------------------------
# Sleeper (platform A)
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class SleeperLeague:
    league_id: str
    name: str
    season: str
    total_rosters: int
    scoring_settings: Optional[Dict[str, float]]
    draft_id: Optional[str]
    settings: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_guillotine(self) -> bool:
        """True when league settings declare the elimination (chopped) format."""
        return self.settings.get("type") == 3 or bool(self.settings.get("is_chopped"))

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "SleeperLeague":
        settings = payload.get("settings") or {}
        scoring = payload.get("scoring_settings")
        return cls(
            league_id=str(_require(payload, "league_id", "Sleeper league")),
            name=str(payload.get("name") or ""),
            season=str(payload.get("season") or ""),
            total_rosters=_safe_int(payload.get("total_rosters")) or _safe_int(settings.get("num_teams")) or 0,
            scoring_settings=_float_map(scoring) if isinstance(scoring, dict) and scoring else None,
            draft_id=str(payload["draft_id"]) if payload.get("draft_id") else None,
            settings=dict(settings) if isinstance(settings, dict) else {},
        )


@dataclass(frozen=True)
class SleeperRoster:
    roster_id: str
    owner_id: Optional[str]
    players: List[str]
    starters: List[str]
    wins: int = 0
    losses: int = 0
    ties: int = 0

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "SleeperRoster":
        settings = payload.get("settings") or {}
        owner_id = payload.get("owner_id")
        return cls(
            roster_id=str(_require(payload, "roster_id", "Sleeper roster")),
            owner_id=str(owner_id) if owner_id else None,
            players=_id_list(payload.get("players")),
            starters=_id_list(payload.get("starters")),
            wins=_safe_int(settings.get("wins")) or 0,
            losses=_safe_int(settings.get("losses")) or 0,
            ties=_safe_int(settings.get("ties")) or 0,
        )


@dataclass(frozen=True)
class SleeperUser:
    user_id: str
    display_name: str
    team_name: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "SleeperUser":
        user_id = str(_require(payload, "user_id", "Sleeper user"))
        metadata = payload.get("metadata") or {}
        return cls(
            user_id=user_id,
            display_name=str(payload.get("display_name") or payload.get("username") or user_id),
            team_name=metadata.get("team_name") if isinstance(metadata, dict) else None,
        )


@dataclass(frozen=True)
class SleeperMatchupEntry:
    roster_id: str
    matchup_id: Optional[int]
    starters: List[str]
    players: List[str]

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "SleeperMatchupEntry":
        return cls(
            roster_id=str(_require(payload, "roster_id", "Sleeper matchup entry")),
            matchup_id=_safe_int(payload.get("matchup_id")),
            starters=_id_list(payload.get("starters")),
            players=_id_list(payload.get("players")),
        )


@dataclass(frozen=True)
class SleeperPick:
    pick_no: int
    roster_id: str
    player_id: str

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "SleeperPick":
        pick_no = _safe_int(_require(payload, "pick_no", "Sleeper pick"))
        if pick_no is None or pick_no < 1:
            raise DecodingFailure(f"Sleeper pick has invalid pick_no: {payload.get('pick_no')!r}")
        return cls(
            pick_no=pick_no,
            roster_id=str(_require(payload, "roster_id", "Sleeper pick")),
            player_id=str(_require(payload, "player_id", "Sleeper pick")),
        )


# ----------------------------------------------------------------------
# ESPN (platform B)
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class EspnStatLine:
    stat_source_id: int
    scoring_period_id: int
    stats: Dict[str, float]

    @property
    def is_actual(self) -> bool:
        return self.stat_source_id == 0

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EspnStatLine":
        raw_stats = payload.get("stats") or {}
        if not isinstance(raw_stats, dict):
            raise DecodingFailure("ESPN stat line 'stats' must be an object.")
        return cls(
            stat_source_id=_safe_int(payload.get("statSourceId")) or 0,
            scoring_period_id=_safe_int(payload.get("scoringPeriodId")) or 0,
            stats=_float_map(raw_stats),
        )


@dataclass(frozen=True)
class EspnRosterEntry:
    espn_player_id: str
    full_name: str
    position: Optional[str]
    lineup_slot_id: int
    stat_lines: List[EspnStatLine] = field(default_factory=list)

    @property
    def is_starter(self) -> bool:
        return self.lineup_slot_id not in ESPN_BENCH_SLOTS

    def actual_stats(self, week: int) -> Dict[str, float]:
        """Raw actual stats (keyed by ESPN stat id) for one scoring period."""
        for line in self.stat_lines:
            if line.is_actual and line.scoring_period_id == week:
                return line.stats
        return {}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EspnRosterEntry":
        pool_entry = payload.get("playerPoolEntry") or {}
        player = pool_entry.get("player") or {}
        player_id = payload.get("playerId", player.get("id"))
        if player_id is None:
            raise DecodingFailure("ESPN roster entry is missing 'playerId'.")
        return cls(
            espn_player_id=str(player_id),
            full_name=str(player.get("fullName") or player_id),
            position=ESPN_POSITIONS.get(_safe_int(player.get("defaultPositionId")) or -1),
            lineup_slot_id=_safe_int(payload.get("lineupSlotId")) or 0,
            stat_lines=[EspnStatLine.from_dict(line) for line in player.get("stats") or [] if isinstance(line, dict)],
        )


@dataclass(frozen=True)
class EspnTeam:
    team_id: str
    name: str
    owner_ids: List[str]
    roster: List[EspnRosterEntry]
    wins: int = 0
    losses: int = 0
    ties: int = 0

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EspnTeam":
        team_id = str(_require(payload, "id", "ESPN team"))
        name = payload.get("name") or " ".join(
            part for part in (payload.get("location"), payload.get("nickname")) if part
        )
        owners = [str(owner) for owner in payload.get("owners") or []]
        primary = payload.get("primaryOwner")
        if primary and str(primary) not in owners:
            owners.insert(0, str(primary))
        overall = (payload.get("record") or {}).get("overall") or {}
        roster = (payload.get("roster") or {}).get("entries") or []
        return cls(
            team_id=team_id,
            name=str(name or f"Team {team_id}"),
            owner_ids=owners,
            roster=[EspnRosterEntry.from_dict(entry) for entry in roster if isinstance(entry, dict)],
            wins=_safe_int(overall.get("wins")) or 0,
            losses=_safe_int(overall.get("losses")) or 0,
            ties=_safe_int(overall.get("ties")) or 0,
        )


@dataclass(frozen=True)
class EspnScheduleEntry:
    matchup_id: str
    matchup_period_id: int
    home_team_id: str
    away_team_id: Optional[str]

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EspnScheduleEntry":
        home = payload.get("home") or {}
        away = payload.get("away") or {}
        if "teamId" not in home:
            raise DecodingFailure("ESPN schedule entry is missing the home team.")
        return cls(
            matchup_id=str(_require(payload, "id", "ESPN schedule entry")),
            matchup_period_id=_safe_int(payload.get("matchupPeriodId")) or 0,
            home_team_id=str(home["teamId"]),
            away_team_id=str(away["teamId"]) if away.get("teamId") is not None else None,
        )


@dataclass(frozen=True)
class EspnDraftPick:
    overall_pick_number: int
    team_id: str
    espn_player_id: str

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EspnDraftPick":
        number = _safe_int(_require(payload, "overallPickNumber", "ESPN draft pick"))
        if number is None or number < 1:
            raise DecodingFailure(f"ESPN draft pick has invalid number: {payload.get('overallPickNumber')!r}")
        return cls(
            overall_pick_number=number,
            team_id=str(_require(payload, "teamId", "ESPN draft pick")),
            espn_player_id=str(_require(payload, "playerId", "ESPN draft pick")),
        )


@dataclass(frozen=True)
class EspnLeague:
    league_id: str
    season: str
    scoring_period_id: int
    name: str
    team_count: int
    teams: List[EspnTeam]
    schedule: List[EspnScheduleEntry]
    scoring_items: Dict[int, float]
    members: Dict[str, str]
    draft_picks: List[EspnDraftPick]

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EspnLeague":
        settings = payload.get("settings") or {}
        teams = [EspnTeam.from_dict(team) for team in payload.get("teams") or [] if isinstance(team, dict)]
        scoring_items: Dict[int, float] = {}
        for item in (settings.get("scoringSettings") or {}).get("scoringItems") or []:
            stat_id = _safe_int(item.get("statId")) if isinstance(item, dict) else None
            points = _safe_float(item.get("points")) if isinstance(item, dict) else None
            if stat_id is not None and points is not None:
                scoring_items[stat_id] = points
        members: Dict[str, str] = {}
        for member in payload.get("members") or []:
            if not isinstance(member, dict) or not member.get("id"):
                continue
            full_name = " ".join(part for part in (member.get("firstName"), member.get("lastName")) if part)
            members[str(member["id"])] = str(member.get("displayName") or full_name or member["id"])
        draft = payload.get("draftDetail") or {}
        return cls(
            league_id=str(_require(payload, "id", "ESPN league")),
            season=str(payload.get("seasonId") or ""),
            scoring_period_id=_safe_int(payload.get("scoringPeriodId")) or 0,
            name=str(settings.get("name") or ""),
            team_count=_safe_int(settings.get("size")) or len(teams),
            teams=teams,
            schedule=[EspnScheduleEntry.from_dict(entry) for entry in payload.get("schedule") or [] if isinstance(entry, dict)],
            scoring_items=scoring_items,
            members=members,
            draft_picks=[EspnDraftPick.from_dict(pick) for pick in draft.get("picks") or [] if isinstance(pick, dict)],
        )


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------


def _require(container: Dict[str, Any], key: str, context: str) -> Any:
    if not isinstance(container, dict):
        raise DecodingFailure(f"{context} payload must be an object.")
    value = container.get(key)
    if value is None or value == "":
        raise DecodingFailure(f"{context} payload is missing '{key}'.")
    return value


def _safe_float(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value))
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    number = _safe_float(value)
    return int(number) if number is not None else None


def _float_map(raw: Dict[Any, Any]) -> Dict[str, float]:
    result: Dict[str, float] = {}
    for key, value in raw.items():
        number = _safe_float(value)
        if number is not None:
            result[str(key)] = number
    return result


def _id_list(raw: Any) -> List[str]:
    # Sleeper uses "0" as an empty starter slot placeholder.
    if not isinstance(raw, list):
        return []
    return [str(item) for item in raw if item not in (None, "", "0", 0)]
