"""Tests for the command-line entry point."""

from __future__ import annotations

import json

import pytest

import main


def test_win_probability_command(capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WIN_PROBABILITY_SD", raising=False)

    exit_code = main.main(["win-probability", "100", "0"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == {"probability": pytest.approx(0.95), "percentage": 95}


def test_win_probability_rejects_bad_std_dev(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main.main(["win-probability", "10", "5", "--std-dev", "0"])

    assert exit_code == 1
    assert capsys.readouterr().err.startswith("Error:")


def test_parse_league_spec() -> None:
    assert main._parse_league_spec("espn:42", "sleeper") == (main.Platform.ESPN, "42")
    assert main._parse_league_spec("998", "sleeper") == (main.Platform.SLEEPER, "998")
    with pytest.raises(ValueError):
        main._parse_league_spec("yahoo:1", "sleeper")


def test_espn_commands_require_season(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main.main(["scoring-rules", "42", "--platform", "espn"])

    assert exit_code == 1
    assert "--season" in capsys.readouterr().err
