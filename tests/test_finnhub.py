from conftest import DummyResp, FakeHTTP
from market_brief.finnhub import (
    Candidate,
    FinnhubClient,
    build_direct_symbol_candidates,
    build_display_name,
    to_asset_type,
)
from market_brief.models import ChangeDirection
from utils.circuit_breaker import CircuitBreaker


def finnhub_http(quotes=None, search=None, profiles=None, status=None):
    """Fake Finnhub keyed by symbol; unknown quote symbols get an all-zero body."""
    quotes = quotes or {}
    profiles = profiles or {}

    def quote(url, params):
        if status:
            return DummyResp({}, status_code=status)
        return DummyResp(quotes.get(params['symbol'], {'c': 0, 'd': None, 'dp': None, 'pc': 0}))

    def profile(url, params):
        name = profiles.get(params['symbol'])
        return DummyResp({'name': name} if name else {})

    def do_search(url, params):
        return DummyResp({'count': len(search or []), 'result': search or []})

    return FakeHTTP({'/quote': quote, '/stock/profile2': profile, '/search': do_search})


def test_direct_symbol_candidates():
    assert build_direct_symbol_candidates(' aapl ') == ['AAPL']
    assert build_direct_symbol_candidates('$tsla') == ['$TSLA', 'TSLA']
    assert build_direct_symbol_candidates('btc-usd') == ['BTC-USD', 'BINANCE:BTCUSDT', 'COINBASE:BTC-USD']
    assert build_direct_symbol_candidates('dogeusdt') == ['DOGEUSDT', 'BINANCE:DOGEUSDT']
    assert build_direct_symbol_candidates('^gspc') == ['^GSPC', 'SPY']
    assert build_direct_symbol_candidates('   ') == []


def test_asset_type_and_display_name():
    assert to_asset_type('Crypto', 'X') == 'crypto'
    assert to_asset_type(None, 'BINANCE:BTCUSDT') == 'crypto'
    assert to_asset_type('Common Stock', 'AAPL') == 'stock'
    assert to_asset_type('ETP', 'AAPL') == 'other'
    assert to_asset_type('INDEX', '^GSPC') == 'index'
    assert build_display_name('AAPL', 'Apple Inc') == 'Apple Inc (AAPL)'
    assert build_display_name('AAPL', 'aapl') == 'AAPL'
    assert build_display_name('AAPL', '  ') == 'AAPL'


def test_lookup_direct_symbol_hit():
    http = finnhub_http(
        quotes={'AAPL': {'c': 189.5, 'd': 1.25, 'dp': 0.664, 'pc': 188.25}},
        profiles={'AAPL': 'Apple Inc'},
    )
    result = FinnhubClient('key', http=http).lookup('aapl')
    assert result.status == 'ok'
    data = result.data
    assert data.symbol == 'AAPL'
    assert data.name == 'Apple Inc (AAPL)'
    assert data.value == '189.5'
    assert data.change.direction == ChangeDirection.UP
    assert data.change.value == '1.25'
    assert data.change.percent == '0.66%'
    assert data.source_url == 'https://finnhub.io'
    assert all(p.get('token') == 'key' for _, _, p in http.calls)


def test_quote_derives_change_from_previous_close():
    http = finnhub_http(quotes={'XYZ': {'c': 90.0, 'pc': 100.0}})
    quote = FinnhubClient('key', http=http).get_quote('XYZ')
    assert quote.change == -10.0
    assert quote.change_percent == -10.0


def test_all_zero_quote_means_not_found():
    http = finnhub_http()
    assert FinnhubClient('key', http=http).get_quote('NOPE') is None


def test_lookup_falls_back_to_ranked_search():
    http = finnhub_http(
        quotes={'BINANCE:BTCUSDT': {'c': 67000.123, 'd': -500, 'dp': -0.74, 'pc': 67500.123}},
        search=[
            {'symbol': 'BTCX', 'description': 'Something else', 'type': 'Common Stock'},
            {'symbol': 'BINANCE:BTCUSDT', 'description': 'BITCOIN', 'type': 'Crypto'},
        ],
    )
    result = FinnhubClient('key', http=http).lookup('bitcoin')
    assert result.status == 'ok'
    assert result.data.symbol == 'BINANCE:BTCUSDT'
    assert result.data.asset_type == 'crypto'
    assert result.data.value == '67,000.12'
    assert result.data.change.direction == ChangeDirection.DOWN


def test_search_ranks_exact_symbol_first_and_dedupes():
    http = finnhub_http(
        search=[
            {'symbol': 'MSFT.MX', 'description': 'MICROSOFT CORP', 'type': 'Common Stock'},
            {'symbol': 'MSFT', 'description': 'MICROSOFT CORP', 'type': 'Common Stock'},
            {'symbol': 'msft', 'description': 'dup', 'type': ''},
            {'symbol': '', 'description': 'blank'},
        ]
    )
    candidates = FinnhubClient('key', http=http).search('msft')
    assert [c.symbol for c in candidates] == ['MSFT', 'MSFT.MX']
    assert candidates[0] == Candidate('MSFT', 'Common Stock', 'MICROSOFT CORP')


def test_lookup_empty_query_and_missing_key():
    assert FinnhubClient('key', http=FakeHTTP()).lookup('  ').status == 'not_found'
    result = FinnhubClient(None, http=FakeHTTP()).lookup('AAPL')
    assert result.status == 'error'
    assert result.reason == 'Missing FINNHUB_API_KEY'


def test_lookup_not_found_when_nothing_resolves():
    http = finnhub_http(search=[{'symbol': 'ZZZ', 'type': 'Common Stock'}])
    assert FinnhubClient('key', http=http).lookup('zzzz').status == 'not_found'


def test_lookup_404_is_not_found():
    http = finnhub_http(status=404)
    result = FinnhubClient('key', http=http).lookup('AAPL')
    assert result.status == 'not_found'


def test_rate_limit_is_error_and_stops_probing():
    http = finnhub_http(status=429)
    result = FinnhubClient('key', http=http).lookup('BTC-USD')
    assert result.status == 'error'
    assert 'rate limited' in result.reason
    assert len(http.calls) == 1


def test_search_failure_is_error():
    http = finnhub_http()
    http.routes['/search'] = DummyResp({}, status_code=500)
    result = FinnhubClient('key', http=http).lookup('AAPL')
    assert result.status == 'error'
    assert result.reason.startswith('Finnhub search failed')


def test_open_circuit_short_circuits_lookup():
    breaker = CircuitBreaker('finnhub', failure_threshold=1, recovery_time=60)
    http = finnhub_http(status=500)
    client = FinnhubClient('key', http=http, breaker=breaker)
    first = client.lookup('AAPL')
    assert first.status == 'error'
    calls = len(http.calls)
    second = client.lookup('AAPL')
    assert second.status == 'error'
    assert 'OPEN' in second.reason
    assert len(http.calls) == calls
