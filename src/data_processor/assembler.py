"""Per-league refresh orchestration producing canonical matchups.

One :class:`LeagueMatchupAssembler` is built per (league, week, season) and
owns all of its state. Assemblers for different leagues share nothing except
the thread-safe :class:`SharedStatCache`, so many of them can run at once via
:func:`refresh_leagues`.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from data_fetcher.errors import FantasyDataError
from data_fetcher.espn_client import EspnClient
from data_fetcher.sleeper_client import SleeperClient
from data_fetcher.stat_cache import SharedStatCache

from .chopped import ChoppedSummary, summarize_chopped
from .models import League, Matchup, Platform, Player, PlayerDirectory, Team, id_sort_key
from .payloads import (
    EspnLeague,
    EspnTeam,
    SleeperLeague,
    SleeperMatchupEntry,
    SleeperRoster,
    SleeperUser,
)
from .scoring import ScoringRuleResolver, ScoringRuleSet, convert_espn_stats, score
from .win_probability import WinProbabilityEstimator

logger = logging.getLogger(__name__)


class AssemblerState(str, Enum):
    IDLE = "idle"
    FETCHING_ROSTERS = "fetching_rosters"
    FETCHING_STATS = "fetching_stats"
    SCORING = "scoring"
    ASSEMBLED = "assembled"
    FAILED = "failed"


@dataclass
class RefreshResult:
    """Everything one successful refresh publishes."""

    league: League
    rule_set: ScoringRuleSet
    matchups: List[Matchup] = field(default_factory=list)
    bye_teams: List[Team] = field(default_factory=list)
    my_team_id: Optional[str] = None
    chopped: Optional[ChoppedSummary] = None

    @property
    def is_alternative_format(self) -> bool:
        return self.chopped is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "league": self.league.to_dict(),
            "alternative_format": self.is_alternative_format,
            "my_team_id": self.my_team_id,
            "scoring": self.rule_set.to_dict(),
            "matchups": [matchup.to_dict() for matchup in self.matchups],
            "bye_teams": [team.to_dict() for team in self.bye_teams],
            "chopped": self.chopped.to_dict() if self.chopped else None,
        }


class LeagueMatchupAssembler:
    """Fetch, score and pair one league's teams for a week."""

    def __init__(
        self,
        platform: Platform,
        league_id: str,
        week: int,
        season: str,
        *,
        sleeper_client: Optional[SleeperClient] = None,
        espn_client: Optional[EspnClient] = None,
        stat_cache: Optional[SharedStatCache] = None,
        directory: Optional[PlayerDirectory] = None,
        resolver: Optional[ScoringRuleResolver] = None,
        estimator: Optional[WinProbabilityEstimator] = None,
        credential: Optional[str] = None,
    ) -> None:
        if platform is Platform.SLEEPER and (sleeper_client is None or stat_cache is None):
            raise ValueError("Sleeper leagues need a SleeperClient and a SharedStatCache.")
        if platform is Platform.ESPN and espn_client is None:
            raise ValueError("ESPN leagues need an EspnClient.")
        self.platform = platform
        self.league_id = str(league_id)
        self.week = week
        self.season = str(season)
        self.sleeper_client = sleeper_client
        self.espn_client = espn_client
        self.stat_cache = stat_cache
        self.directory = directory or PlayerDirectory()
        self.resolver = resolver or ScoringRuleResolver()
        self.estimator = estimator or WinProbabilityEstimator()
        self.credential = credential

        self._state = AssemblerState.IDLE
        self._result: Optional[RefreshResult] = None
        self._alternative_format = False

    @property
    def state(self) -> AssemblerState:
        return self._state

    @property
    def result(self) -> Optional[RefreshResult]:
        return self._result

    def is_alternative_format(self) -> bool:
        return self._alternative_format

    def refresh(self) -> RefreshResult:
        """Run one full refresh cycle; partial results are never published."""
        self._reset()
        try:
            if self.platform is Platform.SLEEPER:
                result = self._refresh_sleeper()
            else:
                result = self._refresh_espn()
        except Exception:
            self._reset()
            self._transition(AssemblerState.FAILED)
            raise
        self._alternative_format = result.is_alternative_format
        self._result = result
        self._transition(AssemblerState.ASSEMBLED)
        return result

    # ------------------------------------------------------------------
    # Sleeper
    # ------------------------------------------------------------------

    def _refresh_sleeper(self) -> RefreshResult:
        client = self.sleeper_client
        stat_cache = self.stat_cache
        if client is None or stat_cache is None:
            raise ValueError("Sleeper leagues need a SleeperClient and a SharedStatCache.")

        self._transition(AssemblerState.FETCHING_ROSTERS)
        league = SleeperLeague.from_dict(client.fetch_league(self.league_id))
        rosters = [SleeperRoster.from_dict(raw) for raw in client.fetch_rosters(self.league_id)]
        users = {user.user_id: user for user in (SleeperUser.from_dict(raw) for raw in client.fetch_users(self.league_id))}
        entries = [SleeperMatchupEntry.from_dict(raw) for raw in client.fetch_matchups(self.league_id, self.week)]
        my_user_id = self._resolve_identity(client)

        self._transition(AssemblerState.FETCHING_STATS)
        stats = stat_cache.get(self.week, self.season)

        self._transition(AssemblerState.SCORING)
        rule_set = self.resolver.resolve(league.scoring_settings)
        entries_by_roster = {entry.roster_id: entry for entry in entries}
        teams: Dict[str, Team] = {}
        my_team_id: Optional[str] = None
        for roster in rosters:
            team = self._sleeper_team(roster, entries_by_roster.get(roster.roster_id), users, stats, rule_set)
            if my_user_id is not None and roster.owner_id == my_user_id:
                team.is_mine = True
                my_team_id = team.team_id
            teams[team.team_id] = team

        canonical = League(
            league_id=league.league_id,
            platform=Platform.SLEEPER,
            season=league.season or self.season,
            week=self.week,
            team_count=league.total_rosters or len(rosters),
            name=league.name,
        )
        result = RefreshResult(league=canonical, rule_set=rule_set, my_team_id=my_team_id)

        if league.is_guillotine or not any(entry.matchup_id is not None for entry in entries):
            logger.info("League %s has no head-to-head schedule; building chopped summary", self.league_id)
            result.chopped = summarize_chopped(list(teams.values()), self.week)
            return result

        groups: Dict[int, List[str]] = {}
        for entry in entries:
            if entry.matchup_id is not None and entry.roster_id in teams:
                groups.setdefault(entry.matchup_id, []).append(entry.roster_id)
        pairs: List[Tuple[str, str, str]] = []
        for matchup_id, roster_ids in groups.items():
            if len(roster_ids) == 2:
                # Second entry is home, first is away.
                pairs.append((str(matchup_id), roster_ids[1], roster_ids[0]))
            elif len(roster_ids) > 2:
                logger.warning(
                    "League %s matchup %s has %d entries; treating them as byes",
                    self.league_id,
                    matchup_id,
                    len(roster_ids),
                )
        self._pair_teams(result, teams, pairs)
        return result

    def _sleeper_team(
        self,
        roster: SleeperRoster,
        entry: Optional[SleeperMatchupEntry],
        users: Mapping[str, SleeperUser],
        stats: Mapping[str, Mapping[str, float]],
        rule_set: ScoringRuleSet,
    ) -> Team:
        player_ids = entry.players if entry and entry.players else roster.players
        starters = set(entry.starters if entry and entry.starters else roster.starters)
        players = []
        for player_id in player_ids:
            record = self.directory.lookup(player_id)
            players.append(
                Player(
                    player_id=player_id,
                    name=record.full_name if record else player_id,
                    position=record.position if record else None,
                    nfl_team=record.nfl_team if record else None,
                    score=score(stats.get(player_id, {}), rule_set),
                    is_starter=player_id in starters,
                )
            )
        user = users.get(roster.owner_id) if roster.owner_id else None
        if user is not None:
            owner_name = user.team_name or user.display_name
        else:
            owner_name = f"Team {roster.roster_id}"
        return Team(
            team_id=roster.roster_id,
            owner_id=roster.owner_id,
            owner_name=owner_name,
            players=players,
            score=sum(player.score for player in players if player.is_starter),
            wins=roster.wins,
            losses=roster.losses,
            ties=roster.ties,
        )

    # ------------------------------------------------------------------
    # ESPN
    # ------------------------------------------------------------------

    def _refresh_espn(self) -> RefreshResult:
        client = self.espn_client
        if client is None:
            raise ValueError("ESPN leagues need an EspnClient.")

        self._transition(AssemblerState.FETCHING_ROSTERS)
        league = EspnLeague.from_dict(client.fetch_league(self.league_id, self.season, self.week))
        my_member_id = self._resolve_identity(client)

        # ESPN embeds per-player stats in the roster document.
        self._transition(AssemblerState.FETCHING_STATS)

        self._transition(AssemblerState.SCORING)
        rule_set = self.resolver.resolve_espn(league.scoring_items)
        teams: Dict[str, Team] = {}
        my_team_id: Optional[str] = None
        for raw_team in league.teams:
            team = self._espn_team(raw_team, league.members, rule_set)
            if my_member_id is not None and my_member_id in (owner.upper() for owner in raw_team.owner_ids):
                team.is_mine = True
                my_team_id = team.team_id
            teams[team.team_id] = team

        canonical = League(
            league_id=league.league_id,
            platform=Platform.ESPN,
            season=league.season or self.season,
            week=self.week,
            team_count=league.team_count,
            name=league.name,
        )
        result = RefreshResult(league=canonical, rule_set=rule_set, my_team_id=my_team_id)

        if not league.schedule:
            logger.info("League %s has no schedule; building chopped summary", self.league_id)
            result.chopped = summarize_chopped(list(teams.values()), self.week)
            return result

        pairs = [
            (entry.matchup_id, entry.home_team_id, entry.away_team_id)
            for entry in league.schedule
            if entry.matchup_period_id == self.week and entry.away_team_id is not None
        ]
        self._pair_teams(result, teams, pairs)
        return result

    def _espn_team(self, raw: EspnTeam, members: Mapping[str, str], rule_set: ScoringRuleSet) -> Team:
        players = []
        for entry in raw.roster:
            player_id = self.directory.canonical_id_for_espn(entry.espn_player_id) or f"espn_{entry.espn_player_id}"
            record = self.directory.lookup(player_id)
            stats = convert_espn_stats(entry.actual_stats(self.week))
            players.append(
                Player(
                    player_id=player_id,
                    name=record.full_name if record else entry.full_name,
                    position=record.position if record and record.position else entry.position,
                    nfl_team=record.nfl_team if record else None,
                    score=score(stats, rule_set),
                    is_starter=entry.is_starter,
                )
            )
        owner_id = raw.owner_ids[0] if raw.owner_ids else None
        return Team(
            team_id=raw.team_id,
            owner_id=owner_id,
            owner_name=members.get(owner_id, raw.name) if owner_id else raw.name,
            players=players,
            score=sum(player.score for player in players if player.is_starter),
            wins=raw.wins,
            losses=raw.losses,
            ties=raw.ties,
        )

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _pair_teams(self, result: RefreshResult, teams: Dict[str, Team], pairs: Iterable[Tuple[str, str, str]]) -> None:
        paired = set()
        for matchup_id, home_id, away_id in pairs:
            home = teams.get(home_id)
            away = teams.get(away_id)
            if home is None or away is None or home_id in paired or away_id in paired:
                logger.warning("League %s matchup %s references unknown or repeated teams", self.league_id, matchup_id)
                continue
            paired.update((home_id, away_id))
            result.matchups.append(
                Matchup(
                    matchup_id=matchup_id,
                    week=self.week,
                    home=home,
                    away=away,
                    home_win_probability=self.estimator(home.score, away.score),
                )
            )
        result.matchups.sort(key=lambda matchup: (matchup.home.owner_name, id_sort_key(matchup.matchup_id)))
        result.bye_teams = sorted(
            (team for team_id, team in teams.items() if team_id not in paired),
            key=lambda team: (team.owner_name, id_sort_key(team.team_id)),
        )

    def _resolve_identity(self, client: Any) -> Optional[str]:
        if not self.credential:
            return None
        try:
            return client.resolve_user_identity(self.credential)
        except FantasyDataError as exc:
            logger.warning("Could not resolve user identity for league %s: %s", self.league_id, exc)
            return None

    def _reset(self) -> None:
        self._result = None
        self._alternative_format = False
        self._state = AssemblerState.IDLE

    def _transition(self, state: AssemblerState) -> None:
        logger.debug("League %s: %s -> %s", self.league_id, self._state.value, state.value)
        self._state = state


@dataclass
class LeagueRefreshOutcome:
    """Result or error of one league's refresh in a concurrent batch."""

    league_id: str
    platform: Platform
    result: Optional[RefreshResult] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"league_id": self.league_id, "platform": self.platform.value, "ok": self.ok}
        if self.result is not None:
            payload["result"] = self.result.to_dict()
        if self.error is not None:
            payload["error"] = f"{type(self.error).__name__}: {self.error}"
        return payload


def refresh_leagues(
    assemblers: Sequence[LeagueMatchupAssembler], max_workers: int = 4
) -> List[LeagueRefreshOutcome]:
    """Refresh many leagues concurrently; one league failing never aborts the rest.

    Outcomes are returned in the same order as ``assemblers``.
    """
    if not assemblers:
        return []
    outcomes: List[LeagueRefreshOutcome] = []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(assembler.refresh) for assembler in assemblers]
        for assembler, future in zip(assemblers, futures):
            outcome = LeagueRefreshOutcome(league_id=assembler.league_id, platform=assembler.platform)
            try:
                outcome.result = future.result()
            except Exception as exc:
                logger.warning("Refresh failed for league %s: %s", assembler.league_id, exc)
                outcome.error = exc
            outcomes.append(outcome)
    return outcomes
