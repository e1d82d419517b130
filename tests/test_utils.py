import logging
import os

import pytest
import requests

from utils.env import env_flag, env_float, env_int, env_str, load_dotenv_safe
from utils.http_client import HTTPClient
from utils.logging_setup import get_logger

ENV_KEYS = ('MB_PLAIN', 'MB_QUOTED', 'MB_EXPORTED', 'MB_COMMENTED', 'MB_EXISTING', 'MB_LOCAL')


@pytest.fixture()
def env(monkeypatch):
    # setenv then delenv so keys written by the loader are removed afterwards
    for key in ENV_KEYS:
        monkeypatch.setenv(key, '')
        monkeypatch.delenv(key)
    return monkeypatch


def test_load_dotenv_safe(env, tmp_path):
    (tmp_path / '.env').write_text(
        '\n'.join([
            '# comment',
            'MB_PLAIN=value',
            'MB_QUOTED="two words # not a comment"',
            'export MB_EXPORTED=yes',
            'MB_COMMENTED=abc # trailing',
            'MB_EXISTING=from-file',
            'garbage line',
        ]),
        encoding='utf-8',
    )
    (tmp_path / '.env.local').write_text('MB_LOCAL=1\nMB_PLAIN=override\n', encoding='utf-8')
    env.setenv('MB_EXISTING', 'from-env')

    loaded = load_dotenv_safe(base=tmp_path)
    assert loaded == [tmp_path / '.env', tmp_path / '.env.local']
    assert os.environ['MB_PLAIN'] == 'value'
    assert os.environ['MB_QUOTED'] == 'two words # not a comment'
    assert os.environ['MB_EXPORTED'] == 'yes'
    assert os.environ['MB_COMMENTED'] == 'abc'
    assert os.environ['MB_EXISTING'] == 'from-env'
    assert os.environ['MB_LOCAL'] == '1'


def test_load_dotenv_safe_without_files(tmp_path):
    assert load_dotenv_safe(base=tmp_path) == []


def test_typed_getters(env):
    env.setenv('MB_PLAIN', '  ')
    assert env_str('MB_PLAIN', 'dflt') == 'dflt'
    env.setenv('MB_PLAIN', 'Yes')
    assert env_flag('MB_PLAIN') is True
    env.setenv('MB_PLAIN', 'maybe')
    assert env_flag('MB_PLAIN', True) is True
    env.setenv('MB_PLAIN', '2.5')
    assert env_float('MB_PLAIN', 1.0) == 2.5
    assert env_int('MB_PLAIN', 4) == 4
    assert env_int('MB_QUOTED', 7) == 7


def test_get_logger_is_namespaced():
    root = logging.getLogger('market_brief')
    logger = get_logger('naver')
    assert logger.name == 'market_brief.naver'
    assert logger.parent is root


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code


def test_http_client_retries_transport_errors_and_5xx(monkeypatch):
    client = HTTPClient(retries=2, backoff=0)
    outcomes = [requests.ConnectionError('reset'), FakeResponse(503), FakeResponse(200)]
    seen = []

    def fake_request(method, url, params=None, json=None, timeout=None):
        seen.append((method, url, timeout))
        out = outcomes.pop(0)
        if isinstance(out, Exception):
            raise out
        return out

    monkeypatch.setattr(client._session, 'request', fake_request)
    resp = client.get('https://example.com/x')
    assert resp.status_code == 200
    assert len(seen) == 3
    assert seen[0] == ('GET', 'https://example.com/x', 10.0)


def test_http_client_gives_up_after_retries(monkeypatch):
    client = HTTPClient(retries=1, backoff=0)

    def always_down(method, url, params=None, json=None, timeout=None):
        raise requests.Timeout('slow')

    monkeypatch.setattr(client._session, 'request', always_down)
    with pytest.raises(requests.Timeout):
        client.post('https://example.com/x', json={'a': 1})


def test_http_client_returns_last_retryable_status(monkeypatch):
    client = HTTPClient(retries=1, backoff=0)
    monkeypatch.setattr(client._session, 'request', lambda *a, **kw: FakeResponse(502))
    assert client.get('https://example.com/x').status_code == 502
