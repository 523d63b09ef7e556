"""Unit tests for EspnClient."""

from __future__ import annotations

import pytest

from data_fetcher.errors import AuthenticationFailure, DecodingFailure, UnsupportedOperationFailure
from data_fetcher.espn_client import EspnClient, EspnConfig

from mocks import MockResponse, MockSession

SWID = "{ABCDEF12-3456-7890-ABCD-EF1234567890}"


def build_client(session: MockSession, **config_kwargs: str) -> EspnClient:
    config = EspnConfig(base_url="https://espn.test/ffl", **config_kwargs)
    return EspnClient(config=config, session=session)


def test_fetch_league_requests_views_and_scoring_period() -> None:
    session = MockSession([MockResponse({"id": 42})])
    client = build_client(session)

    payload = client.fetch_league("42", "2025", week=5)

    assert payload == {"id": 42}
    call = session.get_calls[0]
    assert call["url"] == "https://espn.test/ffl/seasons/2025/segments/0/leagues/42"
    assert call["kwargs"]["params"]["view"] == ["mTeam", "mRoster", "mMatchupScore", "mSettings"]
    assert call["kwargs"]["params"]["scoringPeriodId"] == 5
    assert call["kwargs"]["cookies"] == {}


def test_private_league_sends_cookies() -> None:
    session = MockSession([MockResponse({"id": 42})])
    client = build_client(session, espn_s2="s2-token", swid=SWID)

    client.fetch_draft("42", "2025")

    call = session.get_calls[0]
    assert call["kwargs"]["cookies"] == {"espn_s2": "s2-token", "SWID": SWID}
    assert "mDraftDetail" in call["kwargs"]["params"]["view"]


def test_forbidden_private_league_raises_authentication_failure() -> None:
    session = MockSession([MockResponse({}, status_code=403)])
    client = build_client(session)

    with pytest.raises(AuthenticationFailure):
        client.fetch_league("42", "2025")


def test_non_object_payload_raises_decoding_failure() -> None:
    session = MockSession([MockResponse([1, 2, 3])])
    client = build_client(session)

    with pytest.raises(DecodingFailure):
        client.fetch_league("42", "2025")


def test_resolve_user_identity_normalizes_swid() -> None:
    client = build_client(MockSession())

    assert client.resolve_user_identity("abcdef12-3456-7890-abcd-ef1234567890") == SWID


def test_resolve_user_identity_rejects_usernames() -> None:
    client = build_client(MockSession())

    with pytest.raises(UnsupportedOperationFailure):
        client.resolve_user_identity("gridiron")
