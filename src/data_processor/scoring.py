"""Scoring rule resolution and deterministic player score calculation."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Mapping, Optional

from .models import PlayerScore

logger = logging.getLogger(__name__)

# ESPN stat ids mapped onto the canonical (Sleeper) stat keys.
ESPN_STAT_KEYS: Dict[int, str] = {
    0: "pass_att",
    1: "pass_cmp",
    3: "pass_yd",
    4: "pass_td",
    15: "pass_td_40p",
    16: "pass_td_50p",
    19: "pass_2pt",
    20: "pass_int",
    23: "rush_att",
    24: "rush_yd",
    25: "rush_td",
    26: "rush_2pt",
    35: "rush_td_40p",
    36: "rush_td_50p",
    41: "rec",
    42: "rec_yd",
    43: "rec_td",
    44: "rec_2pt",
    45: "rec_td_40p",
    46: "rec_td_50p",
    58: "rec_tgt",
    68: "fum",
    72: "fum_lost",
    74: "fgm_50p",
    77: "fgm_40_49",
    80: "fgm_0_39",
    83: "fgm",
    86: "xpm",
    88: "xpmiss",
    95: "def_int",
    96: "def_fum_rec",
    97: "blk_kick",
    98: "def_safe",
    99: "def_sack",
    101: "kick_ret_td",
    102: "punt_ret_td",
    103: "int_td",
    104: "fum_rec_td",
    106: "def_fum_force",
    107: "def_ast",
    108: "def_solo",
    109: "def_comb",
    113: "def_pass_def",
    114: "kick_ret_yd",
    115: "punt_ret_yd",
    205: "def_2pt_ret",
    211: "pass_fd",
    212: "rush_fd",
    213: "rec_fd",
}

# Ids ESPN uses for a stat already covered above. Scoring items give receptions
# as 53 while per-game stat lines carry 41; the primary id wins when both appear.
ESPN_STAT_ALIASES: Dict[int, str] = {
    53: "rec",
}

# Default PPR table for leagues whose payload carries no scoring settings.
DEFAULT_PPR_SCORING: Dict[str, float] = {
    "pass_yd": 0.04,
    "pass_td": 4.0,
    "pass_int": -1.0,
    "pass_2pt": 2.0,
    "rush_yd": 0.1,
    "rush_td": 6.0,
    "rush_2pt": 2.0,
    "rec": 1.0,
    "rec_yd": 0.1,
    "rec_td": 6.0,
    "rec_2pt": 2.0,
    "fum": -1.0,
    "fum_lost": -2.0,
    "fum_rec_td": 6.0,
    "fgm_0_19": 3.0,
    "fgm_20_29": 3.0,
    "fgm_30_39": 3.0,
    "fgm_40_49": 4.0,
    "fgm_50p": 5.0,
    "fgmiss": -1.0,
    "xpm": 1.0,
    "xpmiss": -1.0,
    "def_td": 6.0,
    "def_int": 2.0,
    "def_fum_rec": 2.0,
    "def_sack": 1.0,
    "def_safe": 2.0,
    "blk_kick": 2.0,
    "pts_allow_0": 10.0,
    "pts_allow_1_6": 7.0,
    "pts_allow_7_13": 4.0,
    "pts_allow_14_20": 1.0,
    "pts_allow_28_34": -1.0,
    "pts_allow_35p": -4.0,
}

STAT_FAMILY_PREFIXES = (
    "pass_",
    "rush_",
    "rec",
    "fum",
    "fg",
    "xp",
    "def_",
    "idp_",
    "pts_allow",
    "yds_allow",
    "sack",
    "int",
    "ff",
    "safe",
    "blk_kick",
    "kick_",
    "punt_",
    "kr_",
    "pr_",
    "st_",
    "tkl",
    "qb_",
    "bonus_",
)

DENYLISTS: Dict[str, FrozenSet[str]] = {
    "2025.1": frozenset(
        {
            "pass_air_yd",
            "pass_yac",
            "qb_hit",
            "pass_drop",
            "punt_yd",
            "kick_ret_yd",
            "punt_ret_yd",
        }
    ),
}
DEFAULT_DENYLIST_VERSION = "2025.1"


@dataclass(frozen=True)
class Denylist:
    """Versioned set of template rule keys that are never treated as active."""

    version: str
    keys: FrozenSet[str]

    @classmethod
    def builtin(cls, version: str = DEFAULT_DENYLIST_VERSION) -> "Denylist":
        try:
            return cls(version=version, keys=DENYLISTS[version])
        except KeyError as exc:
            known = ", ".join(sorted(DENYLISTS))
            raise ValueError(f"Unknown scoring denylist version {version!r} (known: {known}).") from exc

    @classmethod
    def from_file(cls, path: Path) -> "Denylist":
        """Load ``{"version": str, "keys": [str, ...]}`` from a JSON file."""
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict) or not isinstance(payload.get("keys"), list):
            raise ValueError(f"Denylist file {path} must contain a 'keys' list.")
        version = str(payload.get("version") or path.stem)
        return cls(version=version, keys=frozenset(str(key) for key in payload["keys"]))


@dataclass(frozen=True)
class ScoringRuleSet:
    """Active stat -> weight mapping for one league."""

    weights: Mapping[str, float]
    source_rule_count: int
    filtered_rule_count: int
    denylist_version: str
    basis: str = "league"

    def to_dict(self) -> Dict[str, object]:
        return {
            "weights": dict(sorted(self.weights.items())),
            "source_rule_count": self.source_rule_count,
            "filtered_rule_count": self.filtered_rule_count,
            "denylist_version": self.denylist_version,
            "basis": self.basis,
        }


class ScoringRuleResolver:
    """Turn a raw league scoring configuration into its active rules.

    A rule is active when its weight is non-zero, its key belongs to a known
    stat family, and it is not on the denylist. Resolution is pure: the same
    configuration always yields the same rule set.
    """

    def __init__(self, denylist: Optional[Denylist] = None) -> None:
        self.denylist = denylist or Denylist.builtin()

    def resolve(self, raw_config: Optional[Mapping[str, float]]) -> ScoringRuleSet:
        if not raw_config:
            return self._build(DEFAULT_PPR_SCORING, basis="default")
        return self._build(raw_config, basis="league")

    def resolve_espn(self, scoring_items: Mapping[int, float]) -> ScoringRuleSet:
        """Resolve ESPN ``statId -> points`` items through the stat-id map."""
        if not scoring_items:
            return self._build(DEFAULT_PPR_SCORING, basis="default")
        return self._build(convert_espn_stats(scoring_items), basis="league", source_count=len(scoring_items))

    def _build(
        self,
        raw_config: Mapping[str, float],
        *,
        basis: str,
        source_count: Optional[int] = None,
    ) -> ScoringRuleSet:
        weights: Dict[str, float] = {}
        for key, weight in raw_config.items():
            if weight == 0:
                continue
            if key in self.denylist.keys:
                logger.debug("Dropping denylisted scoring rule %s=%s", key, weight)
                continue
            if not key.startswith(STAT_FAMILY_PREFIXES):
                logger.debug("Dropping unrecognized scoring rule %s=%s", key, weight)
                continue
            weights[key] = float(weight)
        source_rule_count = len(raw_config) if source_count is None else source_count
        return ScoringRuleSet(
            weights=weights,
            source_rule_count=source_rule_count,
            filtered_rule_count=source_rule_count - len(weights),
            denylist_version=self.denylist.version,
            basis=basis,
        )


def convert_espn_stats(raw: Mapping[object, float]) -> Dict[str, float]:
    """Re-key an ESPN ``statId -> value`` map onto canonical stat keys.

    Unmapped ids are dropped. An alias id only fills a key its primary id
    did not supply, so a stat is never counted twice.
    """
    converted: Dict[str, float] = {}
    aliased: Dict[str, float] = {}
    for stat_id, value in raw.items():
        try:
            numeric_id = int(stat_id)
        except (TypeError, ValueError):
            continue
        key = ESPN_STAT_KEYS.get(numeric_id)
        if key is not None:
            converted[key] = float(value)
        elif numeric_id in ESPN_STAT_ALIASES:
            aliased[ESPN_STAT_ALIASES[numeric_id]] = float(value)
    for key, value in aliased.items():
        converted.setdefault(key, value)
    return converted


def score(stat_vector: Mapping[str, float], rule_set: ScoringRuleSet) -> float:
    """Sum ``value * weight`` over stat keys present in both maps."""
    total = 0.0
    for key, weight in rule_set.weights.items():
        value = stat_vector.get(key)
        if value:
            total += value * weight
    return total


def score_player(
    player_id: str,
    stat_vector: Optional[Mapping[str, float]],
    rule_set: ScoringRuleSet,
    *,
    league_id: str,
    week: int,
) -> PlayerScore:
    value = score(stat_vector or {}, rule_set)
    return PlayerScore(player_id=player_id, league_id=league_id, week=week, value=value)

