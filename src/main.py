"""CLI for the cross-platform fantasy league sync engine."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

from data_fetcher.errors import FantasyDataError
from data_fetcher.espn_client import EspnClient
from data_fetcher.sleeper_client import SleeperClient
from data_fetcher.stat_cache import SharedStatCache
from data_processor.assembler import LeagueMatchupAssembler, refresh_leagues
from data_processor.config import EngineConfig
from data_processor.draft import DraftReconstructor, draft_input_from_espn, draft_input_from_sleeper
from data_processor.models import Platform, PlayerDirectory
from data_processor.payloads import EspnLeague, SleeperLeague, SleeperPick, SleeperRoster
from data_processor.scoring import ScoringRuleResolver
from data_processor.win_probability import WinProbabilityEstimator, win_percentage


def build_parser() -> argparse.ArgumentParser:
    """Create command-line parser."""
    parser = argparse.ArgumentParser(
        description="Normalize Sleeper and ESPN fantasy leagues into one scoring model.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    refresh_parser = subparsers.add_parser(
        "refresh",
        help="Refresh one or more leagues concurrently and print matchups.",
    )
    refresh_parser.add_argument(
        "leagues",
        nargs="+",
        help="League ids, optionally prefixed with a platform (e.g. espn:12345).",
    )
    refresh_parser.add_argument(
        "--platform",
        choices=[platform.value for platform in Platform],
        default=Platform.SLEEPER.value,
        help="Platform for league ids without a prefix (default: sleeper).",
    )
    refresh_parser.add_argument("--week", required=True, type=int, help="Scoring week.")
    refresh_parser.add_argument("--season", required=True, help="Season year (e.g. 2025).")
    refresh_parser.add_argument(
        "--user",
        help="Sleeper username/id or ESPN SWID used to mark your team.",
    )
    _add_common_output_arguments(refresh_parser)

    draft_parser = subparsers.add_parser(
        "draft",
        help="Print the canonical draft pick list for a league.",
    )
    _add_league_arguments(draft_parser)
    draft_parser.add_argument(
        "--rounds",
        type=int,
        help="Round count used when reconstructing from rosters.",
    )
    _add_common_output_arguments(draft_parser)

    rules_parser = subparsers.add_parser(
        "scoring-rules",
        help="Print the resolved active scoring rules for a league.",
    )
    _add_league_arguments(rules_parser)
    rules_parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON response.")

    probability_parser = subparsers.add_parser(
        "win-probability",
        help="Estimate the chance a score lead holds up.",
    )
    probability_parser.add_argument("my_score", type=float)
    probability_parser.add_argument("opponent_score", type=float)
    probability_parser.add_argument(
        "--std-dev",
        type=float,
        help="Per-team score standard deviation (default: WIN_PROBABILITY_SD or 40).",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Entrypoint for CLI execution."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = EngineConfig.from_env()
    except ValueError as exc:
        parser.error(str(exc))

    try:
        if args.command == "win-probability":
            std_dev = args.std_dev if args.std_dev is not None else config.win_probability_sd
            probability = WinProbabilityEstimator.compute(args.my_score, args.opponent_score, std_dev)
            _print_json(
                {
                    "probability": probability,
                    "percentage": win_percentage(args.my_score, args.opponent_score, std_dev),
                },
                pretty=False,
            )
            return 0

        if args.command == "scoring-rules":
            rule_set = _resolve_rules(args, config)
            _print_json(rule_set.to_dict(), pretty=args.pretty)
            return 0

        if args.command == "draft":
            picks = _draft_command(args)
            _write_output([pick.to_dict() for pick in picks], args)
            return 0

        if args.command == "refresh":
            outcomes = _refresh_command(args, config)
            _write_output([outcome.to_dict() for outcome in outcomes], args)
            return 0 if all(outcome.ok for outcome in outcomes) else 1

        parser.error("Unknown command.")
    except (FantasyDataError, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _add_league_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("league_id", help="League id.")
    parser.add_argument(
        "--platform",
        choices=[platform.value for platform in Platform],
        default=Platform.SLEEPER.value,
        help="Upstream platform (default: sleeper).",
    )
    parser.add_argument("--season", help="Season year (required for ESPN).")


def _add_common_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Bypass the on-disk player directory cache.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional output file to write JSON.",
    )
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON response.")


def _print_json(payload: Any, *, pretty: bool) -> None:
    if pretty:
        print(json.dumps(payload, indent=2))
    else:
        print(json.dumps(payload))


def _write_output(payload: Any, args: argparse.Namespace) -> None:
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        rendered = json.dumps(payload, indent=2 if args.pretty else None)
        args.output.write_text(rendered, encoding="utf-8")
    else:
        _print_json(payload, pretty=args.pretty)


def _parse_league_spec(spec: str, default_platform: str) -> Tuple[Platform, str]:
    prefix, sep, league_id = spec.partition(":")
    if not sep:
        return Platform(default_platform), spec
    try:
        return Platform(prefix.lower()), league_id
    except ValueError as exc:
        raise ValueError(f"Unknown platform prefix in {spec!r}.") from exc


def _require_season(args: argparse.Namespace) -> str:
    if not args.season:
        raise ValueError("--season is required for ESPN leagues.")
    return str(args.season)


def _resolve_rules(args: argparse.Namespace, config: EngineConfig):
    resolver = ScoringRuleResolver(config.load_denylist())
    if Platform(args.platform) is Platform.SLEEPER:
        league = SleeperLeague.from_dict(SleeperClient.from_env().fetch_league(args.league_id))
        return resolver.resolve(league.scoring_settings)
    payload = EspnClient.from_env().fetch_league(args.league_id, _require_season(args))
    return resolver.resolve_espn(EspnLeague.from_dict(payload).scoring_items)


def _draft_command(args: argparse.Namespace):
    sleeper = SleeperClient.from_env()
    directory = PlayerDirectory.from_sleeper(sleeper.fetch_players(use_cache=not args.no_cache))

    if Platform(args.platform) is Platform.SLEEPER:
        league = SleeperLeague.from_dict(sleeper.fetch_league(args.league_id))
        rosters = [SleeperRoster.from_dict(raw) for raw in sleeper.fetch_rosters(args.league_id)]
        picks: List[SleeperPick] = []
        if league.draft_id:
            picks = [SleeperPick.from_dict(raw) for raw in sleeper.fetch_draft_picks(league.draft_id)]
        draft = draft_input_from_sleeper(
            league.league_id,
            league.total_rosters or len(rosters),
            picks,
            rosters,
            rounds=args.rounds,
        )
    else:
        payload = EspnClient.from_env().fetch_draft(args.league_id, _require_season(args))
        draft, directory = draft_input_from_espn(EspnLeague.from_dict(payload), directory)
        draft.rounds = args.rounds

    return DraftReconstructor(directory).reconstruct(draft)


def _refresh_command(args: argparse.Namespace, config: EngineConfig):
    leagues = [_parse_league_spec(spec, args.platform) for spec in args.leagues]
    sleeper = SleeperClient.from_env()
    espn = EspnClient.from_env()
    directory = PlayerDirectory.from_sleeper(sleeper.fetch_players(use_cache=not args.no_cache))
    stat_cache = SharedStatCache(sleeper.fetch_weekly_stats, secondary_store=sleeper.cache)
    stat_cache.handle_week_change(args.week, args.season)
    resolver = ScoringRuleResolver(config.load_denylist())
    estimator = WinProbabilityEstimator(config.win_probability_sd)

    assemblers = [
        LeagueMatchupAssembler(
            platform,
            league_id,
            args.week,
            args.season,
            sleeper_client=sleeper,
            espn_client=espn,
            stat_cache=stat_cache,
            directory=directory,
            resolver=resolver,
            estimator=estimator,
            credential=args.user,
        )
        for platform, league_id in leagues
    ]
    return refresh_leagues(assemblers, max_workers=config.max_workers)


if __name__ == "__main__":
    raise SystemExit(main())
