"""League-wide summary for elimination ("chopped") leagues without matchups."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from .models import Team, id_sort_key

LARGE_LEAGUE_THRESHOLD = 18


@dataclass
class TeamRanking:
    team: Team
    rank: int
    status: str
    points_from_safety: float
    survival_probability: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "status": self.status,
            "points_from_safety": self.points_from_safety,
            "survival_probability": self.survival_probability,
            "team": self.team.to_dict(),
        }


@dataclass
class ChoppedSummary:
    """Weekly standings for a league where the lowest scorers are eliminated."""

    week: int
    rankings: List[TeamRanking] = field(default_factory=list)
    eliminated: List[TeamRanking] = field(default_factory=list)
    elimination_count: int = 1
    average_score: float = 0.0
    high_score: float = 0.0
    low_score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "elimination_count": self.elimination_count,
            "average_score": self.average_score,
            "high_score": self.high_score,
            "low_score": self.low_score,
            "rankings": [ranking.to_dict() for ranking in self.rankings],
            "eliminated": [ranking.to_dict() for ranking in self.eliminated],
        }


def is_active(team: Team) -> bool:
    """Eliminated teams lose their owner or roster, or field no starters."""
    return bool(team.owner_id) and bool(team.players) and bool(team.starters)


def summarize_chopped(teams: Sequence[Team], week: int) -> ChoppedSummary:
    active = [team for team in teams if is_active(team)]
    eliminated = sorted((team for team in teams if not is_active(team)), key=lambda team: id_sort_key(team.team_id))
    active.sort(key=lambda team: (-team.score, id_sort_key(team.team_id)))

    total = len(active)
    elimination_count = 2 if total >= LARGE_LEAGUE_THRESHOLD else 1
    summary = ChoppedSummary(week=week, elimination_count=elimination_count)
    # Eliminated teams rank below every surviving team.
    summary.eliminated = [
        TeamRanking(team=team, rank=total + offset, status="eliminated", points_from_safety=0.0, survival_probability=0.0)
        for offset, team in enumerate(eliminated, start=1)
    ]
    if total == 0:
        return summary

    scores = [team.score for team in active]
    summary.average_score = sum(scores) / total
    summary.high_score = max(scores)
    summary.low_score = min(scores)

    cutoff_index = max(total - elimination_count, 0)
    cutoff_score = active[cutoff_index].score
    for index, team in enumerate(active):
        rank = index + 1
        in_zone = index >= cutoff_index
        if in_zone:
            above = active[index - 1].score if index > 0 else team.score
            points_from_safety = team.score - above
            survival = 0.0
        else:
            points_from_safety = team.score - cutoff_score
            survival = (total - rank) / total
        summary.rankings.append(
            TeamRanking(
                team=team,
                rank=rank,
                status=_status(rank, total, in_zone),
                points_from_safety=points_from_safety,
                survival_probability=survival,
            )
        )
    return summary


def _status(rank: int, total: int, in_zone: bool) -> str:
    if rank == 1:
        return "champion"
    if in_zone:
        return "critical"
    if rank > total * 0.75:
        return "danger"
    if rank > total * 0.5:
        return "warning"
    return "safe"
