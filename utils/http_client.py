"""Pooled HTTP client shared by the quote providers and the chat client.

Wraps a requests.Session with default headers, a per-request timeout and a
bounded retry loop (exponential backoff) for connection errors and
retryable status codes. Responses are returned as-is; status handling is the
caller's job.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import Any

import requests

DEFAULT_TIMEOUT = 10.0

BROWSER_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/124.0 Safari/537.36'
)

JSON_HEADERS = {
    'User-Agent': BROWSER_USER_AGENT,
    'Accept': 'application/json',
}

HTML_HEADERS = {
    'User-Agent': BROWSER_USER_AGENT,
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
}


class HTTPClient:
    def __init__(
        self,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = 1,
        backoff: float = 0.2,
        retry_statuses: Iterable[int] | None = None,
    ) -> None:
        self.timeout = float(timeout)
        self.headers = dict(headers or JSON_HEADERS)
        self.retries = max(0, int(retries))
        self.backoff = max(0.0, float(backoff))
        self.retry_statuses = set(retry_statuses or (500, 502, 503, 504))
        self._session = requests.Session()
        self._session.headers.update(self.headers)

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> requests.Response:
        attempt = 0
        while True:
            try:
                resp = self._session.request(
                    method.upper(), url, params=params, json=json, timeout=self.timeout
                )
            except requests.RequestException:
                if attempt < self.retries:
                    time.sleep(self.backoff * (2**attempt))
                    attempt += 1
                    continue
                raise
            if resp.status_code in self.retry_statuses and attempt < self.retries:
                time.sleep(self.backoff * (2**attempt))
                attempt += 1
                continue
            return resp

    def get(self, url: str, params: dict[str, Any] | None = None) -> requests.Response:
        return self._request('GET', url, params=params)

    def post(self, url: str, json: dict[str, Any] | None = None) -> requests.Response:
        return self._request('POST', url, json=json)

    def close(self) -> None:
        self._session.close()


__all__ = ["HTTPClient", "DEFAULT_TIMEOUT", "JSON_HEADERS", "HTML_HEADERS"]
