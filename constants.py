#!/usr/bin/env python3
from decimal import Decimal

# --- ANSI Color Codes ---
C_GREEN = '\033[92m'
C_RED = '\033[91m'
C_YELLOW = '\033[93m'
C_BLUE = '\033[94m'
C_RESET = '\033[0m'

# --- API Configuration ---
COINGECKO_API_BASE_URL = 'https://api.coingecko.com/api/v3'
COINGECKO_RATE_LIMIT_DELAY = 2.0  # free tier allows ~30 calls/min
HTTP_TIMEOUT_SECONDS = 10
HTTP_RETRIES = 3
HTTP_RETRY_DELAY = 2.0

# --- Chain Configuration (Base mainnet) ---
RPC_URL = 'https://mainnet.base.org'
RPC_TIMEOUT_SECONDS = 20
DEX_ROUTER_ADDRESS = '0x4752ba5dbc23f44d87826276bf6fd6b1c372ad24'  # Uniswap V2 Router02
BASE_TOKEN_ADDRESS = '0x4200000000000000000000000000000000000006'  # WETH on Base
NATIVE_SYMBOL = 'ETH'
NATIVE_DECIMALS = 18
RECEIPT_TIMEOUT_SECONDS = 120

# --- Strategy Defaults ---
MIN_PROFIT = Decimal('0.001')  # expressed in the base asset
TOKEN_PAGE_SIZE = 5
TOKEN_CATEGORY = 'base-network'
VS_CURRENCY = 'usd'
TREND_WINDOW_DAYS = 7
TREND_DIP_RATIO = 0.9  # buy when current price is 10% below the trailing mean
SWAP_DEADLINE_SECONDS = 60 * 20

# --- HTTP Trigger ---
DEFAULT_HOST = '0.0.0.0'
DEFAULT_PORT = 8080
BOT_ROUTE = '/api/bot'
HEALTH_ROUTE = '/api/health'

# --- Environment Variable Names ---
PRIVATE_KEY_ENV_VAR = 'PRIVATE_KEY'
COINGECKO_API_KEY_ENV_VAR = 'COINGECKO_API_KEY'
TELEGRAM_BOT_TOKEN_ENV_VAR = 'TELEGRAM_BOT_TOKEN'
TELEGRAM_CHAT_ID_ENV_VAR = 'TELEGRAM_CHAT_ID'
RPC_URL_ENV_VAR = 'RPC_URL'
DEX_ROUTER_ADDRESS_ENV_VAR = 'DEX_ROUTER_ADDRESS'
BASE_TOKEN_ADDRESS_ENV_VAR = 'BASE_TOKEN_ADDRESS'
MIN_PROFIT_ENV_VAR = 'MIN_PROFIT'
TOKEN_PAGE_SIZE_ENV_VAR = 'TOKEN_PAGE_SIZE'
TOKEN_CATEGORY_ENV_VAR = 'TOKEN_CATEGORY'
TREND_WINDOW_DAYS_ENV_VAR = 'TREND_WINDOW_DAYS'
SWAP_DEADLINE_SECONDS_ENV_VAR = 'SWAP_DEADLINE_SECONDS'
COINGECKO_RATE_LIMIT_DELAY_ENV_VAR = 'COINGECKO_RATE_LIMIT_DELAY'
