"""Error taxonomy shared by the upstream clients and the normalization engine."""

from __future__ import annotations

from typing import Optional

import requests


class FantasyDataError(RuntimeError):
    """Base class for every recoverable upstream or decoding failure."""


class TransportFailure(FantasyDataError):
    """Network or HTTP failure while talking to an upstream platform."""


class AuthenticationFailure(FantasyDataError):
    """Credential was rejected, expired or missing."""


class DecodingFailure(FantasyDataError):
    """Payload did not match the shape the decoder expects."""


class NotFoundFailure(FantasyDataError):
    """League, draft, user or player does not exist upstream."""


class UnsupportedOperationFailure(FantasyDataError):
    """Platform does not support the requested query."""


def translate_http_error(exc: requests.HTTPError, url: str) -> FantasyDataError:
    """Map an HTTP error raised by ``raise_for_status`` onto the taxonomy."""
    response: Optional[requests.Response] = exc.response
    status = response.status_code if response is not None else None
    if status in (401, 403):
        return AuthenticationFailure(f"GET {url} rejected credentials ({status})")
    if status == 404:
        return NotFoundFailure(f"GET {url} returned 404")
    return TransportFailure(f"GET {url} failed ({status if status is not None else 'unknown'})")
