"""Thin wrappers around ``requests`` for provider calls.

Every call carries a bounded timeout. Transport failures, non-2xx statuses
and undecodable bodies are raised as ``SourceUnavailable`` /
``MalformedResponse`` tagged with the calling source's name, so fallback
chains can treat them uniformly.
"""

from __future__ import annotations

from typing import Any

import requests

from btc_predictor.config import setting
from btc_predictor.errors import MalformedResponse, SourceUnavailable

DEFAULT_TIMEOUT = 10.0


def _timeout() -> float:
    return float(setting("http", "timeout_seconds", DEFAULT_TIMEOUT))


def _headers() -> dict[str, str]:
    return {
        "Accept": "application/json",
        "User-Agent": setting("http", "user_agent", "btc-predictor/1.0"),
    }


def _send(source: str, method: str, url: str, **kwargs) -> requests.Response:
    try:
        resp = requests.request(method, url, headers=_headers(), timeout=_timeout(), **kwargs)
    except requests.RequestException as e:
        raise SourceUnavailable(source, f"request failed: {e}") from e
    if not resp.ok:
        raise SourceUnavailable(source, f"HTTP {resp.status_code}")
    return resp


def _decode(source: str, resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise MalformedResponse(source, "response is not valid JSON") from e


def get_json(source: str, url: str, params: dict | None = None) -> Any:
    """GET *url* and return the decoded JSON body."""
    return _decode(source, _send(source, "GET", url, params=params))


def post_json(source: str, url: str, payload: dict) -> Any:
    """POST *payload* as JSON to *url* and return the decoded JSON body."""
    return _decode(source, _send(source, "POST", url, json=payload))


def get_text(source: str, url: str, params: dict | None = None) -> str:
    """GET *url* and return the raw body text."""
    return _send(source, "GET", url, params=params).text
