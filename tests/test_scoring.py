"""Tests for scoring rule resolution and player score calculation."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from data_processor.scoring import (
    DEFAULT_DENYLIST_VERSION,
    Denylist,
    ScoringRuleResolver,
    ScoringRuleSet,
    convert_espn_stats,
    score,
    score_player,
)


@pytest.fixture()
def resolver() -> ScoringRuleResolver:
    return ScoringRuleResolver()


def test_score_is_dot_product_over_shared_keys(resolver: ScoringRuleResolver) -> None:
    rule_set = resolver.resolve({"pass_yd": 0.04, "pass_td": 4, "rec": 1.0})

    value = score({"pass_yd": 300, "pass_td": 2, "rec": 0}, rule_set)

    assert value == pytest.approx(20.0)


def test_score_is_linear_in_stats(resolver: ScoringRuleResolver) -> None:
    rule_set = resolver.resolve({"rush_yd": 0.1, "rush_td": 6, "fum_lost": -2})
    stats = {"rush_yd": 87, "rush_td": 1, "fum_lost": 1, "rush_att": 19}

    single = score(stats, rule_set)
    doubled = score({key: value * 2 for key, value in stats.items()}, rule_set)

    assert doubled == pytest.approx(2 * single)


def test_score_is_zero_for_empty_rule_set() -> None:
    empty = ScoringRuleSet(weights={}, source_rule_count=0, filtered_rule_count=0, denylist_version="test")

    assert score({"pass_yd": 300, "pass_td": 3}, empty) == 0.0


def test_same_player_scores_differently_across_leagues(resolver: ScoringRuleResolver) -> None:
    stats = {"rec": 8, "rec_yd": 95, "rec_td": 1}
    ppr = resolver.resolve({"rec": 1.0, "rec_yd": 0.1, "rec_td": 6})
    standard = resolver.resolve({"rec": 0.0, "rec_yd": 0.1, "rec_td": 6})

    ppr_score = score_player("6794", stats, ppr, league_id="L1", week=7)
    standard_score = score_player("6794", stats, standard, league_id="L2", week=7)

    assert ppr_score.value == pytest.approx(23.5)
    assert standard_score.value == pytest.approx(15.5)
    assert ppr_score.value != standard_score.value
    assert ppr_score.league_id == "L1"


def test_score_player_without_stats_is_zero(resolver: ScoringRuleResolver) -> None:
    rule_set = resolver.resolve({"pass_td": 4})

    assert score_player("1", None, rule_set, league_id="L", week=1).value == 0.0


def test_resolver_filters_zero_denylisted_and_unknown_rules(resolver: ScoringRuleResolver) -> None:
    rule_set = resolver.resolve(
        {
            "pass_yd": 0.04,
            "pass_td": 4,
            "pass_air_yd": 0.01,
            "qb_hit": 0.5,
            "kick_ret_yd": 0.02,
            "rush_40p": 0,
            "mystery_bonus": 3,
            "def_sack": 1,
        }
    )

    assert dict(rule_set.weights) == {"pass_yd": 0.04, "pass_td": 4.0, "def_sack": 1.0}
    assert rule_set.source_rule_count == 8
    assert rule_set.filtered_rule_count == 5
    assert rule_set.denylist_version == DEFAULT_DENYLIST_VERSION
    assert rule_set.basis == "league"


def test_resolver_is_deterministic(resolver: ScoringRuleResolver) -> None:
    config = {"rec": 0.5, "rec_yd": 0.1, "pass_yac": 0.1}

    assert resolver.resolve(config) == resolver.resolve(dict(config))


def test_missing_scoring_config_falls_back_to_default_ppr(resolver: ScoringRuleResolver) -> None:
    rule_set = resolver.resolve(None)

    assert rule_set.basis == "default"
    assert rule_set.weights["rec"] == 1.0
    assert rule_set.weights["pass_td"] == 4.0


def test_resolve_espn_maps_stat_ids(resolver: ScoringRuleResolver) -> None:
    rule_set = resolver.resolve_espn({3: 0.04, 4: 4.0, 53: 1.0, 114: 0.04})

    assert dict(rule_set.weights) == {"pass_yd": 0.04, "pass_td": 4.0, "rec": 1.0}
    assert rule_set.source_rule_count == 4
    assert rule_set.filtered_rule_count == 1


def test_convert_espn_stats_drops_unmapped_ids() -> None:
    assert convert_espn_stats({"3": 250, "42": 80, "999": 1, "x": 2}) == {"pass_yd": 250.0, "rec_yd": 80.0}


def test_convert_espn_stats_reads_receptions_from_either_id() -> None:
    assert convert_espn_stats({"53": 7}) == {"rec": 7.0}
    assert convert_espn_stats({"53": 7, "41": 6}) == {"rec": 6.0}
    assert convert_espn_stats({"41": 6, "53": 7}) == {"rec": 6.0}


def test_denylist_file_override(tmp_path: Path) -> None:
    path = tmp_path / "denylist.json"
    path.write_text(json.dumps({"version": "custom-1", "keys": ["pass_td"]}), encoding="utf-8")

    rule_set = ScoringRuleResolver(Denylist.from_file(path)).resolve({"pass_td": 4, "pass_air_yd": 0.1})

    assert dict(rule_set.weights) == {"pass_air_yd": 0.1}
    assert rule_set.denylist_version == "custom-1"


def test_unknown_denylist_version_raises() -> None:
    with pytest.raises(ValueError):
        Denylist.builtin("1999.0")
