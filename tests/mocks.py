"""Hand-written doubles for requests sessions shared by the client tests."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import requests


class MockResponse:
    """Minimal mock of requests.Response."""

    def __init__(self, payload: Any, status_code: int = 200, *, invalid_json: bool = False) -> None:
        self._payload = payload
        self._invalid_json = invalid_json
        self.status_code = status_code
        self.text = "<html>" if invalid_json else json.dumps(payload)
        self.headers: Dict[str, str] = {}

    def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class MockSession:
    """Queue-based mock for requests.Session."""

    def __init__(self, get_responses: Optional[List[Any]] = None) -> None:
        self.get_calls: List[Dict[str, Any]] = []
        self._get_responses = get_responses or []

    def get(self, url: str, **kwargs: Any) -> MockResponse:
        self.get_calls.append({"url": url, "kwargs": kwargs})
        if not self._get_responses:
            raise AssertionError("Unexpected GET call.")
        response = self._get_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response
