#!/usr/bin/env python3
import os
import argparse
from decimal import Decimal, InvalidOperation
from typing import NamedTuple, Optional, Sequence
import constants

class AppConfig(NamedTuple):
    """Typed configuration object."""
    host: str
    port: int
    run_once: bool
    log_level: str
    rpc_url: str
    router_address: str
    base_token_address: str
    native_symbol: str
    min_profit: Decimal
    token_limit: int
    token_category: str
    vs_currency: str
    trend_window_days: int
    dip_ratio: float
    deadline_seconds: int
    receipt_timeout: int
    coingecko_rate_limit_delay: float
    private_key: str | None
    coingecko_api_key: str | None
    telegram_bot_token: str | None
    telegram_chat_id: str | None


def _fail(message: str) -> None:
    print(f"{constants.C_RED}{message}{constants.C_RESET}")
    exit(1)


def _env_str(name: str, default: str) -> str:
    value = os.environ.get(name)
    return value.strip() if value and value.strip() else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        _fail(f"{name} must be an integer, got '{raw}'.")
    if value <= 0:
        _fail(f"{name} must be positive, got {value}.")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        _fail(f"{name} must be a number, got '{raw}'.")
    if value < 0:
        _fail(f"{name} must not be negative, got {value}.")
    return value


def _env_decimal(name: str, default: Decimal) -> Decimal:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        _fail(f"{name} must be a decimal amount, got '{raw}'.")
    if not value.is_finite() or value < 0:
        _fail(f"{name} must be a non-negative amount, got '{raw}'.")
    return value


def _optional_env(name: str) -> Optional[str]:
    value = os.environ.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_config(argv: Optional[Sequence[str]] = None) -> AppConfig:
    """
    Parses process switches and loads trading parameters from the environment.

    Trading parameters are environment-only; each falls back to the fixed
    default in ``constants`` when its variable is unset.
    """
    parser = argparse.ArgumentParser(
        description="Dip-buy swap bot for the top tokens on Base.",
        epilog="Example: ./main.py --port 8080  |  PRIVATE_KEY=... ./main.py --once"
    )
    parser.add_argument('--host', default=constants.DEFAULT_HOST, help=f'Interface for the HTTP trigger (default: {constants.DEFAULT_HOST}).')
    parser.add_argument('--port', type=int, default=constants.DEFAULT_PORT, help=f'Port for the HTTP trigger (default: {constants.DEFAULT_PORT}).')
    parser.add_argument('--once', action='store_true', help='Run a single trading pass, print the summary and exit.')
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Console log level (default: INFO).')

    args = parser.parse_args(argv)

    return AppConfig(
        host=args.host,
        port=args.port,
        run_once=args.once,
        log_level=args.log_level,
        rpc_url=_env_str(constants.RPC_URL_ENV_VAR, constants.RPC_URL),
        router_address=_env_str(constants.DEX_ROUTER_ADDRESS_ENV_VAR, constants.DEX_ROUTER_ADDRESS),
        base_token_address=_env_str(constants.BASE_TOKEN_ADDRESS_ENV_VAR, constants.BASE_TOKEN_ADDRESS),
        native_symbol=constants.NATIVE_SYMBOL,
        min_profit=_env_decimal(constants.MIN_PROFIT_ENV_VAR, constants.MIN_PROFIT),
        token_limit=_env_int(constants.TOKEN_PAGE_SIZE_ENV_VAR, constants.TOKEN_PAGE_SIZE),
        token_category=_env_str(constants.TOKEN_CATEGORY_ENV_VAR, constants.TOKEN_CATEGORY),
        vs_currency=constants.VS_CURRENCY,
        trend_window_days=_env_int(constants.TREND_WINDOW_DAYS_ENV_VAR, constants.TREND_WINDOW_DAYS),
        dip_ratio=constants.TREND_DIP_RATIO,
        deadline_seconds=_env_int(constants.SWAP_DEADLINE_SECONDS_ENV_VAR, constants.SWAP_DEADLINE_SECONDS),
        receipt_timeout=constants.RECEIPT_TIMEOUT_SECONDS,
        coingecko_rate_limit_delay=_env_float(constants.COINGECKO_RATE_LIMIT_DELAY_ENV_VAR, constants.COINGECKO_RATE_LIMIT_DELAY),
        private_key=_optional_env(constants.PRIVATE_KEY_ENV_VAR),
        coingecko_api_key=_optional_env(constants.COINGECKO_API_KEY_ENV_VAR),
        telegram_bot_token=_optional_env(constants.TELEGRAM_BOT_TOKEN_ENV_VAR),
        telegram_chat_id=_optional_env(constants.TELEGRAM_CHAT_ID_ENV_VAR),
    )
