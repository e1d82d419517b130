import pytest

from conftest import DummyResp, FakeHTTP
from market_brief.bot import MarketBriefBot
from market_brief.charts import ChartUrls
from market_brief.config import BotConfig
from market_brief.models import (
    ChangeDirection,
    ChangeInfo,
    DailyMarketSummary,
    GlobalLookupResult,
    GlobalMarketData,
    MarketData,
    MarketSummaryItem,
    MarketType,
)
from market_brief.telegram import TelegramBot

KOSPI = MarketData(
    MarketType.KOSPI, '코스피', '2,650.12', ChangeInfo(ChangeDirection.UP, '12.34', '0.47%')
)


class StubMarket:
    def __init__(self, data=KOSPI):
        self.data = data
        self.requested = []

    def get_market_data(self, market):
        self.requested.append(market)
        return self.data

    def get_daily_market_summary(self):
        return DailyMarketSummary(kospi=MarketSummaryItem('2,650.12'))


class StubCharts:
    def __init__(self, error=None):
        self.error = error

    def get_all_chart_urls(self):
        if self.error:
            raise self.error
        return ChartUrls(kospi='https://quickchart.io/chart?c=k', usd='https://quickchart.io/chart?c=u')


class StubGlobalQuotes:
    def __init__(self, result):
        self.result = result
        self.queries = []

    def lookup(self, query):
        self.queries.append(query)
        return self.result


def apple_result():
    data = GlobalMarketData('AAPL', 'Apple Inc (AAPL)', '189.5', 'https://finnhub.io', 'stock')
    return GlobalLookupResult.ok(data, 'AAPL')


def make_bot(market=None, charts=None, global_quotes=None, telegram_response=None):
    http = FakeHTTP({'api.telegram.org': telegram_response or DummyResp({'ok': True, 'result': True})})
    bot = MarketBriefBot(
        telegram=TelegramBot('TOKEN', '42', http=http),
        market=market or StubMarket(),
        charts=charts or StubCharts(),
        global_quotes=global_quotes or StubGlobalQuotes(apple_result()),
    )
    return bot, http


def update(text, username='alice', first_name='Alice', chat_id=123):
    sender = {'id': 1, 'first_name': first_name}
    if username:
        sender['username'] = username
    return {'update_id': 1, 'message': {'message_id': 5, 'from': sender, 'chat': {'id': chat_id}, 'text': text}}


def sent(http):
    return [(url.rsplit('/', 1)[1], body) for _, url, body in http.calls]


def test_update_without_text_is_ignored():
    bot, http = make_bot()
    assert bot.handle_update({'update_id': 1}).action == 'ignored'
    assert bot.handle_update({'message': {'chat': {'id': 1}, 'photo': []}}).action == 'ignored'
    assert http.calls == []


def test_unknown_text_is_ignored():
    bot, http = make_bot()
    outcome = bot.handle_update(update('hello there'))
    assert (outcome.action, outcome.status_code, outcome.body) == ('ignored', 200, 'OK')
    assert http.calls == []


def test_now_sends_charts_then_summary_to_sender_chat():
    bot, http = make_bot()
    assert bot.handle_update(update('now')).action == 'briefing'
    calls = sent(http)
    assert [m for m, _ in calls] == ['sendPhoto', 'sendPhoto', 'sendMessage']
    assert all(body['chat_id'] == '123' for _, body in calls)
    assert calls[-1][1]['text'].startswith('<b>📊 일일 시장 상황</b>')


def test_help_command_with_bot_suffix():
    bot, http = make_bot()
    assert bot.handle_update(update('/help@market_brief_bot')).action == 'help'
    assert '사용법' in sent(http)[0][1]['text']


def test_alias_sends_quote_reply():
    market = StubMarket()
    bot, http = make_bot(market=market)
    outcome = bot.handle_update(update('코스피'))
    assert outcome.action == 'quote'
    assert market.requested == [MarketType.KOSPI]
    method, body = sent(http)[0]
    assert method == 'sendMessage'
    assert body['text'].startswith('@alice\n코스피의 현재 시세는 <b>2,650.12</b> ↗️+12.34 (0.47%) 입니다.')


def test_username_falls_back_to_first_name_then_user():
    bot, http = make_bot()
    bot.handle_update(update('KOSPI', username=None))
    bot.handle_update(update('/usd', username=None, first_name=None))
    texts = [body['text'] for _, body in sent(http)]
    assert texts[0].startswith('@Alice\n')
    assert texts[1].startswith('@user\n')


def test_unavailable_market_data_returns_500_without_reply():
    bot, http = make_bot(market=StubMarket(data=None))
    outcome = bot.handle_update(update('달러'))
    assert (outcome.action, outcome.status_code, outcome.body) == ('unavailable', 500, 'Failed to fetch market data')
    assert http.calls == []


def test_search_command_replies_with_lookup():
    quotes = StubGlobalQuotes(apple_result())
    bot, http = make_bot(global_quotes=quotes)
    assert bot.handle_update(update('? aapl')).action == 'search'
    assert quotes.queries == ['aapl']
    assert '🏢 Apple Inc (AAPL)의 현재 시세는 <b>189.5</b> 입니다.' in sent(http)[0][1]['text']


def test_search_error_still_replies():
    quotes = StubGlobalQuotes(GlobalLookupResult.error('AAPL', 'down'))
    bot, http = make_bot(global_quotes=quotes)
    assert bot.handle_update(update('?AAPL')).action == 'search'
    assert '시세 조회에 실패했습니다' in sent(http)[0][1]['text']


def test_run_test_reports_status():
    bot, http = make_bot()
    body, status = bot.run_test()
    assert status == 200
    assert body['message']['ok'] is True
    assert body['charts'] == {'kospi': 'https://quickchart.io/chart?c=k', 'usd': 'https://quickchart.io/chart?c=u'}
    assert all(b['chat_id'] == '42' for _, b in sent(http))

    bot, _ = make_bot(telegram_response=DummyResp({'ok': False, 'description': 'Unauthorized'}))
    body, status = bot.run_test()
    assert status == 500
    assert body['message']['description'] == 'Unauthorized'


def test_run_scheduled_logs_and_swallows_failures(caplog):
    bot, http = make_bot(charts=StubCharts(error=RuntimeError('charts down')))
    bot.run_scheduled()
    assert 'Scheduled briefing failed' in caplog.text
    assert http.calls == []


def test_from_config_wires_fallback():
    bot = MarketBriefBot.from_config(BotConfig(telegram_bot_token='T', telegram_chat_id='1'))
    assert bot.telegram.default_chat_id == '1'
    assert bot.global_quotes.quote_page is not None
    assert set(bot.global_quotes.breaker_stats()) == {'finnhub', 'quote_page'}

    bot = MarketBriefBot.from_config(BotConfig(quote_page_fallback=False, finnhub_cb_failures=2))
    assert bot.global_quotes.quote_page is None
    assert bot.global_quotes.finnhub._cb.failure_threshold == 2


@pytest.mark.parametrize('text', ['NOW', ' now ', '/now'])
def test_briefing_command_variants(text):
    bot, _ = make_bot()
    assert bot.handle_update(update(text)).action == 'briefing'


class FakeClosable:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


def test_close_releases_http_clients():
    clients = (FakeClosable(), FakeClosable())
    bot = MarketBriefBot(
        telegram=TelegramBot('TOKEN', '42', http=FakeHTTP()),
        market=StubMarket(),
        charts=StubCharts(),
        global_quotes=StubGlobalQuotes(apple_result()),
        http_clients=clients,
    )
    bot.close()
    assert all(c.closed for c in clients)


def test_from_config_tracks_http_clients():
    assert len(MarketBriefBot.from_config(BotConfig())._http_clients) == 3
    assert len(MarketBriefBot.from_config(BotConfig(quote_page_fallback=False))._http_clients) == 2
