from __future__ import annotations

import json as _json
from typing import Any

import pytest
import requests


class DummyResp:
    def __init__(self, payload: Any = None, status_code: int = 200, text: str | None = None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else _json.dumps(payload) if payload is not None else ''

    def json(self):
        if self._payload is None:
            raise ValueError('no json body')
        return self._payload


class FakeHTTP:
    """Stands in for utils.http_client.HTTPClient.

    routes maps a URL substring to a DummyResp, an exception instance, or a
    callable(url, params) returning either.
    """

    def __init__(self, routes: dict[str, Any] | None = None):
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, dict | None]] = []

    def _dispatch(self, method: str, url: str, params: dict | None):
        self.calls.append((method, url, params))
        # longest matching key wins so specific routes beat generic ones
        for key in sorted(self.routes, key=len, reverse=True):
            if key in url:
                out = self.routes[key]
                if callable(out) and not isinstance(out, DummyResp):
                    out = out(url, params)
                if isinstance(out, Exception):
                    raise out
                return out
        raise requests.ConnectionError(f"no route for {url}")

    def get(self, url, params=None):
        return self._dispatch('GET', url, params)

    def post(self, url, json=None):
        return self._dispatch('POST', url, json)

    def urls(self) -> list[str]:
        return [u for _, u, _ in self.calls]


@pytest.fixture()
def fake_http():
    return FakeHTTP()


def domestic_index_payload(close='2,650.12', delta='12.34', code='2', ratio='0.47'):
    return {
        'datas': [
            {
                'closePrice': close,
                'compareToPreviousClosePrice': delta,
                'compareToPreviousPrice': {'code': code, 'text': '', 'name': ''},
                'fluctuationsRatio': ratio,
            }
        ]
    }


def exchange_payload():
    def item(code, close, delta, type_code, ratio):
        return {
            'exchangeCode': code,
            'closePrice': close,
            'fluctuations': delta,
            'fluctuationsType': {'code': type_code, 'text': '', 'name': ''},
            'fluctuationsRatio': ratio,
        }

    return {
        'isSuccess': True,
        'result': [
            item('USD', '1,385.50', '-2.50', '5', '-0.18'),
            item('EUR', '1,498.20', '3.10', '2', '0.21'),
            item('JPY', '925.11', '0.00', '3', '0.00'),
            item('GBP', '1,760.40', '1.00', '2', '0.06'),
            item('CHF', '1,570.00', '2.00', '2', '0.13'),
            item('CNY', '190.12', '0.10', '2', '0.05'),
        ],
    }
