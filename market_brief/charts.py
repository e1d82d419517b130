"""Seven-day trend charts rendered by the QuickChart service.

Series come from Naver's chart APIs; the chart itself is just a URL whose
query string carries a Chart.js config, so Telegram can fetch the image
directly.
"""

from __future__ import annotations

import json
import math
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple
from urllib.parse import quote

import requests

from utils.http_client import JSON_HEADERS, HTTPClient
from utils.logging_setup import get_logger

from .exceptions import ProviderError
from .numbers import parse_number

logger = get_logger('charts')

CHART_API_URLS = {
    'kospi': 'https://api.stock.naver.com/chart/domestic/index/KOSPI?periodType=dayCandle',
    'usd': (
        'https://m.stock.naver.com/front-api/marketIndex/prices'
        '?category=exchange&reutersCode=FX_USDKRW&page=1'
    ),
}
QUICKCHART_URL = 'https://quickchart.io/chart'
CHART_DAYS = 7

KOSPI_TITLE, KOSPI_COLOR = '코스피 (KOSPI)', '#e74c3c'
USD_TITLE, USD_COLOR = 'USD/KRW 환율', '#3498db'


class ChartDataPoint(NamedTuple):
    date: str  # MM/DD
    value: float


class ChartUrls(NamedTuple):
    kospi: str | None
    usd: str | None

    def as_dict(self) -> dict[str, str | None]:
        return self._asdict()


def _encode_uri_component(text: str) -> str:
    # Same unreserved set as JavaScript's encodeURIComponent
    return quote(text, safe="-_.!~*'()")


def build_chart_url(data: list[ChartDataPoint], title: str, color: str) -> str:
    """Line-chart URL for the given series; the y axis is padded by 15% of the span."""
    labels = [p.date for p in data]
    values = [p.value for p in data]
    min_value, max_value = min(values), max(values)
    padding = (max_value - min_value) * 0.15

    config = {
        'type': 'line',
        'data': {
            'labels': labels,
            'datasets': [
                {
                    'label': title,
                    'data': values,
                    'fill': True,
                    'backgroundColor': f"{color}30",
                    'borderColor': color,
                    'borderWidth': 3,
                    'pointRadius': 5,
                    'pointBackgroundColor': color,
                    'tension': 0.3,
                }
            ],
        },
        'options': {
            'plugins': {
                'title': {
                    'display': True,
                    'text': f"{title} - 최근 {CHART_DAYS}일",
                    'font': {'size': 18, 'weight': 'bold'},
                },
                'legend': {'display': False},
            },
            'scales': {
                'y': {
                    'min': math.floor(min_value - padding),
                    'max': math.ceil(max_value + padding),
                    'ticks': {'font': {'size': 12}},
                },
                'x': {'ticks': {'font': {'size': 12}}},
            },
        },
    }

    chart_json = json.dumps(config, ensure_ascii=False, separators=(',', ':'))
    return f"{QUICKCHART_URL}?c={_encode_uri_component(chart_json)}&w=600&h=400&bkg=white"


def parse_index_series(payload: dict) -> list[ChartDataPoint]:
    """Last seven daily candles; localDate is YYYYMMDD."""
    infos = payload.get('priceInfos') if isinstance(payload, dict) else None
    if not infos:
        return []
    points = []
    for item in infos[-CHART_DAYS:]:
        if not isinstance(item, dict):
            continue
        date = str(item.get('localDate') or '')
        value = parse_number(item.get('closePrice'))
        if len(date) < 8 or value is None:
            continue
        points.append(ChartDataPoint(f"{date[4:6]}/{date[6:8]}", value))
    return points


def parse_exchange_series(payload: dict) -> list[ChartDataPoint]:
    """Newest-first exchange prices -> oldest-first last seven days; localTradedAt is YYYY-MM-DD."""
    if not isinstance(payload, dict) or not payload.get('isSuccess') or not isinstance(payload.get('result'), list):
        return []
    points = []
    for item in reversed(payload['result'][:CHART_DAYS]):
        if not isinstance(item, dict):
            continue
        parts = str(item.get('localTradedAt') or '').split('-')
        value = parse_number(item.get('closePrice'))
        if len(parts) != 3 or value is None:
            continue
        points.append(ChartDataPoint(f"{parts[1]}/{parts[2]}", value))
    return points


class ChartService:
    def __init__(self, http: HTTPClient | None = None) -> None:
        self._http = http or HTTPClient(headers=JSON_HEADERS)

    def _fetch_series(self, name: str, parse) -> list[ChartDataPoint]:
        url = CHART_API_URLS[name]
        try:
            resp = self._http.get(url)
            if resp.status_code != 200:
                raise ProviderError('naver', f"{name} chart API error", resp.status_code)
            points = parse(resp.json())
        except (requests.RequestException, ProviderError, ValueError) as e:
            logger.error(f"Error fetching {name} chart data: {e}")
            return []
        if not points:
            logger.error(f"No {name} price data")
        return points

    def fetch_kospi_series(self) -> list[ChartDataPoint]:
        return self._fetch_series('kospi', parse_index_series)

    def fetch_usd_series(self) -> list[ChartDataPoint]:
        return self._fetch_series('usd', parse_exchange_series)

    def get_kospi_chart_url(self) -> str | None:
        data = self.fetch_kospi_series()
        logger.debug(f"KOSPI chart data: {len(data)} points")
        return build_chart_url(data, KOSPI_TITLE, KOSPI_COLOR) if data else None

    def get_usd_chart_url(self) -> str | None:
        data = self.fetch_usd_series()
        logger.debug(f"USD chart data: {len(data)} points")
        return build_chart_url(data, USD_TITLE, USD_COLOR) if data else None

    def get_all_chart_urls(self) -> ChartUrls:
        with ThreadPoolExecutor(max_workers=2) as pool:
            kospi = pool.submit(self.get_kospi_chart_url)
            usd = pool.submit(self.get_usd_chart_url)
            urls = ChartUrls(kospi=kospi.result(), usd=usd.result())
        logger.info(f"Chart URLs generated: kospi={bool(urls.kospi)} usd={bool(urls.usd)}")
        return urls
