"""Unit tests for SleeperClient."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest
import requests

from data_fetcher.cache import LocalCache
from data_fetcher.errors import (
    AuthenticationFailure,
    DecodingFailure,
    NotFoundFailure,
    TransportFailure,
)
from data_fetcher.sleeper_client import SleeperClient, SleeperConfig

from mocks import MockResponse, MockSession


def build_client(session: MockSession, cache: Optional[LocalCache] = None) -> SleeperClient:
    return SleeperClient(config=SleeperConfig(base_url="https://sleeper.test/v1"), session=session, cache=cache)


def test_fetch_weekly_stats_hits_regular_season_endpoint() -> None:
    session = MockSession([MockResponse({"4046": {"pass_yd": 300}})])
    client = build_client(session)

    payload = client.fetch_weekly_stats(7, "2025")

    assert payload == {"4046": {"pass_yd": 300}}
    call = session.get_calls[0]
    assert call["url"] == "https://sleeper.test/v1/stats/nfl/regular/2025/7"
    assert call["kwargs"]["params"] == {"season_type": "regular"}
    assert call["kwargs"]["timeout"] == 15


def test_fetch_matchups_returns_empty_list_for_null_body() -> None:
    session = MockSession([MockResponse(None)])
    client = build_client(session)

    assert client.fetch_matchups("123", 3) == []
    assert session.get_calls[0]["url"].endswith("/league/123/matchups/3")


def test_http_errors_map_to_taxonomy() -> None:
    session = MockSession(
        [
            MockResponse({}, status_code=401),
            MockResponse({}, status_code=404),
            MockResponse({}, status_code=503),
        ]
    )
    client = build_client(session)

    with pytest.raises(AuthenticationFailure):
        client.fetch_league("1")
    with pytest.raises(NotFoundFailure):
        client.fetch_league("2")
    with pytest.raises(TransportFailure):
        client.fetch_league("3")


def test_connection_error_becomes_transport_failure() -> None:
    session = MockSession([requests.ConnectionError("boom")])
    client = build_client(session)

    with pytest.raises(TransportFailure) as excinfo:
        client.fetch_rosters("1")
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_invalid_json_and_wrong_shape_raise_decoding_failure() -> None:
    session = MockSession([MockResponse(None, invalid_json=True), MockResponse({"not": "a list"})])
    client = build_client(session)

    with pytest.raises(DecodingFailure):
        client.fetch_users("1")
    with pytest.raises(DecodingFailure):
        client.fetch_users("1")


def test_fetch_players_uses_disk_cache(tmp_path: Path) -> None:
    cache = LocalCache(tmp_path / "cache")
    session = MockSession([MockResponse({"4046": {"full_name": "Patrick Mahomes"}})])
    client = build_client(session, cache)

    first = client.fetch_players()
    second = client.fetch_players()

    assert first == second
    assert len(session.get_calls) == 1


def test_resolve_user_identity_passes_numeric_ids_through() -> None:
    session = MockSession()
    client = build_client(session)

    assert client.resolve_user_identity(" 123456 ") == "123456"
    assert session.get_calls == []


def test_resolve_user_identity_looks_up_usernames() -> None:
    session = MockSession([MockResponse({"user_id": "998877", "username": "gridiron"})])
    client = build_client(session)

    assert client.resolve_user_identity("gridiron") == "998877"
    assert session.get_calls[0]["url"].endswith("/user/gridiron")


def test_resolve_user_identity_unknown_user_raises_not_found() -> None:
    session = MockSession([MockResponse(None)])
    client = build_client(session)

    with pytest.raises(NotFoundFailure):
        client.resolve_user_identity("nobody")
