#!/usr/bin/env python3
import logging
from dataclasses import dataclass
from typing import Any

import aiohttp
from web3 import Web3

from analysis.models import RunSummary
from config import AppConfig
from constants import RPC_TIMEOUT_SECONDS
from services.balance_reader import BalanceReader
from services.coingecko_client import CoinGeckoClient
from services.dex_router import DexRouter
from services.exceptions import PipelineFatalError
from services.trade_executor import TradeExecutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradingContext:
    """Everything one pass needs, built once at startup and shared by reference."""
    config: AppConfig
    wallet_address: str
    market_data: Any
    balance_reader: Any
    executor: TradeExecutor


def _normalise_private_key(raw_key: str) -> str:
    raw_key = raw_key.strip()
    return raw_key if raw_key.startswith('0x') else f'0x{raw_key}'


def create_trading_context(config: AppConfig, session: aiohttp.ClientSession) -> TradingContext:
    """Builds the provider, signing account and clients; raises PipelineFatalError without a usable key."""
    if not config.private_key:
        raise PipelineFatalError("Private key is missing! Set PRIVATE_KEY in the environment.")

    web3 = Web3(Web3.HTTPProvider(config.rpc_url, request_kwargs={"timeout": RPC_TIMEOUT_SECONDS}))
    logger.info("Using RPC URL: %s", config.rpc_url)
    try:
        account = web3.eth.account.from_key(_normalise_private_key(config.private_key))
    except Exception as exc:
        # the message may echo key material
        raise PipelineFatalError(f"Invalid private key ({type(exc).__name__}).") from None
    logger.info("Wallet Address: %s", account.address)

    market_data = CoinGeckoClient(
        session,
        config.coingecko_api_key,
        vs_currency=config.vs_currency,
        rate_limit_delay=config.coingecko_rate_limit_delay,
    )
    router = DexRouter(web3, account, config.router_address, receipt_timeout=config.receipt_timeout)
    logger.info("DEX Router Address: %s", router.router_address)

    executor = TradeExecutor(
        market_data,
        router,
        wallet_address=account.address,
        base_token_address=config.base_token_address,
        min_profit=config.min_profit,
        trend_window_days=config.trend_window_days,
        dip_ratio=config.dip_ratio,
        deadline_seconds=config.deadline_seconds,
    )
    return TradingContext(
        config=config,
        wallet_address=account.address,
        market_data=market_data,
        balance_reader=BalanceReader(web3, native_symbol=config.native_symbol),
        executor=executor,
    )


class PipelineRunner:
    """One end-to-end pass: universe -> balances -> per-token decision, strictly in order."""

    def __init__(self, context: TradingContext):
        self.context = context

    async def run(self) -> RunSummary:
        config = self.context.config
        logger.info("Starting trade execution...")

        try:
            tokens = await self.context.market_data.list_top_tokens(config.token_limit, config.token_category)
        except Exception as exc:
            raise PipelineFatalError(f"Could not fetch token universe: {exc}") from exc

        try:
            balances = await self.context.balance_reader.get_balances(self.context.wallet_address, tokens)
        except Exception as exc:
            raise PipelineFatalError(f"Could not fetch wallet balances: {exc}") from exc

        if balances.native_balance <= 0:
            logger.warning("No %s balance available for trading.", balances.native_symbol)

        # one signing key: tokens are submitted strictly in order
        outcomes = []
        for token in tokens:
            outcomes.append(await self.context.executor.evaluate(token, balances))

        summary = RunSummary(outcomes=tuple(outcomes))
        logger.info(summary.message)
        return summary
