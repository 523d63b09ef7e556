"""Canonical draft pick lists from authoritative picks or final rosters."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .models import DraftPick, PlayerDirectory, PlayerRecord, id_sort_key
from .payloads import EspnLeague, SleeperPick, SleeperRoster

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthoritativePick:
    """Upstream pick record; only the overall number is trusted for placement."""

    pick_number: int
    roster_id: str
    player_id: str


@dataclass
class DraftInput:
    """Everything the reconstructor needs for one league's draft.

    ``rosters`` maps team id to its final roster in roster order; it is only
    used when ``picks`` is empty.
    """

    league_id: str
    team_count: int
    picks: List[AuthoritativePick] = field(default_factory=list)
    rosters: Dict[str, List[str]] = field(default_factory=dict)
    rounds: Optional[int] = None

    @property
    def is_authoritative(self) -> bool:
        return bool(self.picks)


def snake_position(pick_number: int, team_count: int) -> Tuple[int, int]:
    """Return ``(round, draft_slot)`` for an overall pick number in a snake draft."""
    if team_count <= 0:
        raise ValueError("team_count must be positive.")
    if pick_number <= 0:
        raise ValueError("pick_number must be positive.")
    offset = (pick_number - 1) % team_count
    round_number = (pick_number - 1) // team_count + 1
    if round_number % 2 == 1:
        return round_number, offset + 1
    return round_number, team_count - offset


def snake_pick_number(draft_position: int, round_number: int, team_count: int) -> int:
    """Inverse of :func:`snake_position`."""
    if team_count <= 0:
        raise ValueError("team_count must be positive.")
    base = (round_number - 1) * team_count
    if round_number % 2 == 1:
        return base + draft_position
    return base + (team_count - draft_position + 1)


class DraftReconstructor:
    """Produce an ordered, canonical pick list for a league's draft."""

    def __init__(self, directory: PlayerDirectory) -> None:
        self.directory = directory

    def reconstruct(self, draft: DraftInput) -> List[DraftPick]:
        if draft.is_authoritative:
            logger.info("Building %d authoritative picks for league %s", len(draft.picks), draft.league_id)
            return self._from_picks(draft)
        logger.info("No pick list for league %s; reconstructing from rosters", draft.league_id)
        return self._from_rosters(draft)

    def _from_picks(self, draft: DraftInput) -> List[DraftPick]:
        seen = set()
        picks: List[DraftPick] = []
        for raw in draft.picks:
            if raw.pick_number in seen:
                logger.debug("Ignoring duplicate pick %d in league %s", raw.pick_number, draft.league_id)
                continue
            seen.add(raw.pick_number)
            record = self.directory.lookup(raw.player_id)
            if record is None:
                logger.warning(
                    "Dropping pick %d in league %s: player %s is not in the directory",
                    raw.pick_number,
                    draft.league_id,
                    raw.player_id,
                )
                continue
            round_number, slot = snake_position(raw.pick_number, draft.team_count)
            picks.append(self._build(raw.pick_number, round_number, slot, raw.roster_id, raw.player_id, record, False))
        picks.sort(key=lambda pick: pick.pick_number)
        return picks

    def _from_rosters(self, draft: DraftInput) -> List[DraftPick]:
        team_ids = sorted(draft.rosters, key=id_sort_key)
        team_count = len(team_ids)
        if team_count == 0:
            return []
        if draft.team_count and draft.team_count != team_count:
            logger.debug(
                "League %s declares %d teams but has %d rosters; using rosters",
                draft.league_id,
                draft.team_count,
                team_count,
            )

        picks: List[DraftPick] = []
        for position, team_id in enumerate(team_ids, start=1):
            roster = draft.rosters[team_id]
            if draft.rounds is not None:
                roster = roster[: draft.rounds]
            for index, player_id in enumerate(roster):
                round_number = index + 1
                pick_number = snake_pick_number(position, round_number, team_count)
                record = self.directory.lookup(player_id)
                picks.append(self._build(pick_number, round_number, position, team_id, player_id, record, True))
        picks.sort(key=lambda pick: pick.pick_number)
        return picks

    @staticmethod
    def _build(
        pick_number: int,
        round_number: int,
        slot: int,
        roster_id: str,
        player_id: str,
        record: Optional[PlayerRecord],
        reconstructed: bool,
    ) -> DraftPick:
        return DraftPick(
            pick_number=pick_number,
            round=round_number,
            draft_slot=slot,
            roster_id=roster_id,
            player_id=player_id,
            is_reconstructed=reconstructed,
            player_name=record.full_name if record else None,
            position=record.position if record else None,
        )


def draft_input_from_sleeper(
    league_id: str,
    team_count: int,
    picks: Sequence[SleeperPick],
    rosters: Sequence[SleeperRoster],
    rounds: Optional[int] = None,
) -> DraftInput:
    return DraftInput(
        league_id=league_id,
        team_count=team_count,
        picks=[AuthoritativePick(pick.pick_no, pick.roster_id, pick.player_id) for pick in picks],
        rosters={roster.roster_id: list(roster.players) for roster in rosters},
        rounds=rounds,
    )


def draft_input_from_espn(league: EspnLeague, directory: PlayerDirectory) -> Tuple[DraftInput, PlayerDirectory]:
    """Convert an ESPN draft document, canonicalising player ids.

    Returns the draft input and a directory extended with the ESPN roster
    players that have no Sleeper counterpart.
    """

    def canonical(espn_id: str) -> str:
        return directory.canonical_id_for_espn(espn_id) or f"espn_{espn_id}"

    extra: List[PlayerRecord] = []
    rosters: Dict[str, List[str]] = {}
    for team in league.teams:
        roster_ids: List[str] = []
        for entry in team.roster:
            player_id = canonical(entry.espn_player_id)
            roster_ids.append(player_id)
            if player_id not in directory:
                extra.append(
                    PlayerRecord(
                        player_id=player_id,
                        full_name=entry.full_name,
                        position=entry.position,
                        espn_id=entry.espn_player_id,
                    )
                )
        rosters[team.team_id] = roster_ids

    draft = DraftInput(
        league_id=league.league_id,
        team_count=league.team_count,
        picks=[
            AuthoritativePick(pick.overall_pick_number, pick.team_id, canonical(pick.espn_player_id))
            for pick in league.draft_picks
        ],
        rosters=rosters,
    )
    return draft, directory.with_records(extra)

