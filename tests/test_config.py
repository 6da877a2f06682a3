from decimal import Decimal

import pytest

import constants
from config import load_config

TRADING_ENV_VARS = [
    'PRIVATE_KEY', 'COINGECKO_API_KEY', 'TELEGRAM_BOT_TOKEN', 'TELEGRAM_CHAT_ID', 'RPC_URL',
    'DEX_ROUTER_ADDRESS', 'BASE_TOKEN_ADDRESS', 'MIN_PROFIT', 'TOKEN_PAGE_SIZE', 'TOKEN_CATEGORY',
    'TREND_WINDOW_DAYS', 'SWAP_DEADLINE_SECONDS', 'COINGECKO_RATE_LIMIT_DELAY',
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in TRADING_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_reproduce_fixed_constants():
    config = load_config([])

    assert config.rpc_url == 'https://mainnet.base.org'
    assert config.router_address == '0x4752ba5dbc23f44d87826276bf6fd6b1c372ad24'
    assert config.base_token_address == '0x4200000000000000000000000000000000000006'
    assert config.native_symbol == 'ETH'
    assert config.min_profit == Decimal('0.001')
    assert config.token_limit == 5
    assert config.token_category == 'base-network'
    assert config.trend_window_days == 7
    assert config.dip_ratio == 0.9
    assert config.deadline_seconds == 1200
    assert config.private_key is None
    assert config.run_once is False
    assert (config.host, config.port) == (constants.DEFAULT_HOST, constants.DEFAULT_PORT)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv('PRIVATE_KEY', '  abc123  ')
    monkeypatch.setenv('MIN_PROFIT', '0.05')
    monkeypatch.setenv('TOKEN_PAGE_SIZE', '10')
    monkeypatch.setenv('TELEGRAM_BOT_TOKEN', 'bot-token')
    monkeypatch.setenv('TELEGRAM_CHAT_ID', '42')

    config = load_config(['--once', '--port', '9000', '--log-level', 'DEBUG'])

    assert config.private_key == 'abc123'
    assert config.min_profit == Decimal('0.05')
    assert config.token_limit == 10
    assert config.telegram_bot_token == 'bot-token'
    assert config.telegram_chat_id == '42'
    assert config.run_once is True
    assert config.port == 9000
    assert config.log_level == 'DEBUG'


def test_blank_private_key_is_treated_as_missing(monkeypatch):
    monkeypatch.setenv('PRIVATE_KEY', '   ')
    assert load_config([]).private_key is None


@pytest.mark.parametrize('name,value', [
    ('TOKEN_PAGE_SIZE', 'five'),
    ('TOKEN_PAGE_SIZE', '0'),
    ('MIN_PROFIT', 'lots'),
    ('MIN_PROFIT', '-1'),
    ('COINGECKO_RATE_LIMIT_DELAY', 'soon'),
])
def test_invalid_values_exit(monkeypatch, capsys, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(SystemExit) as excinfo:
        load_config([])
    assert excinfo.value.code == 1
    assert name in capsys.readouterr().out
