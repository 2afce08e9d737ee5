"""
HTTP helpers.

One small entry point for the place fetcher: GET a URL and decode its JSON body,
with a fixed User-Agent and a timeout. Non-2xx responses raise so the caller can
decide whether to fall back to local data.
"""

from __future__ import annotations

from typing import Any

import httpx


DEFAULT_USER_AGENT = "geoassist/0.1.0"


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    request_headers = {"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"}
    if headers:
        request_headers.update(headers)

    with httpx.Client(timeout=timeout_seconds) as client:
        resp = client.get(url, params=params, headers=request_headers)
        resp.raise_for_status()
        return resp.json()
