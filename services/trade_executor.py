#!/usr/bin/env python3
"""Per-token buy decision and swap submission for the dip-buy strategy."""
from __future__ import annotations

import logging
import time
from decimal import ROUND_DOWN, Decimal
from typing import Callable

from analysis.models import BalanceSnapshot, Quote, SkipReason, Token, TradeOutcome, TradeSignal
from analysis.trend_analyzer import analyze_trend
from constants import NATIVE_DECIMALS, SWAP_DEADLINE_SECONDS, TREND_DIP_RATIO, TREND_WINDOW_DAYS
from services.dex_router import SwapRequest
from services.exceptions import QuoteError, SubmissionError


class TradeExecutor:
    """
    Walks one token through no-balance -> trend -> quote -> profit gate -> swap.

    Every path ends in a ``TradeOutcome``; nothing raised while evaluating one
    token escapes ``evaluate``, so the next token is always evaluated.
    """

    def __init__(
        self,
        market_data,
        router,
        *,
        wallet_address: str,
        base_token_address: str,
        min_profit: Decimal,
        trend_window_days: int = TREND_WINDOW_DAYS,
        dip_ratio: float = TREND_DIP_RATIO,
        deadline_seconds: int = SWAP_DEADLINE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.market_data = market_data
        self.router = router
        self.wallet_address = wallet_address
        self.base_token_address = base_token_address
        self.min_profit = min_profit
        self.min_profit_units = self._to_wei(min_profit, NATIVE_DECIMALS)
        self.trend_window_days = trend_window_days
        self.dip_ratio = dip_ratio
        self.deadline_seconds = deadline_seconds
        self._clock = clock
        self.logger = logging.getLogger(__name__)

    async def evaluate(self, token: Token, balances: BalanceSnapshot) -> TradeOutcome:
        try:
            outcome = await self._evaluate(token, balances)
        except Exception as exc:
            self.logger.error("Unexpected error while evaluating %s: %s", token.symbol, exc)
            outcome = TradeOutcome.failed(token, f"unexpected error: {exc}")
        self._log_outcome(outcome)
        return outcome

    async def _evaluate(self, token: Token, balances: BalanceSnapshot) -> TradeOutcome:
        native_balance = balances.native_balance
        if native_balance <= 0:
            return TradeOutcome.skipped(token, SkipReason.NO_BALANCE)

        self.logger.info("Evaluating trade for token: %s", token.symbol)
        series = await self.market_data.fetch_price_history(token.id, self.trend_window_days)
        signal = analyze_trend(series, self.dip_ratio)
        if not signal.should_trade:
            return TradeOutcome.skipped(token, SkipReason.UNFAVORABLE_TREND, signal=signal)

        amount_in = self._to_wei(native_balance, NATIVE_DECIMALS)
        path = (self.base_token_address, token.address)
        try:
            amounts = await self.router.get_amounts_out(amount_in, path)
        except QuoteError as exc:
            return TradeOutcome.failed(token, str(exc), signal=signal)
        quote = Quote(amount_in=amount_in, amount_out=int(amounts[-1]), path=path)

        self.logger.info(
            "Token: %s, %s amount: %s, expected out: %s",
            token.symbol, balances.native_symbol, native_balance, quote.amount_out,
        )
        if quote.amount_out < self.min_profit_units:
            return TradeOutcome.skipped(token, SkipReason.BELOW_PROFIT_THRESHOLD, signal=signal, quote=quote)

        return await self._submit(token, signal, quote)

    async def _submit(self, token: Token, signal: TradeSignal, quote: Quote) -> TradeOutcome:
        # deadline is taken at submission time, not quote time
        request = SwapRequest(
            amount_in=quote.amount_in,
            amount_out_min=self.min_profit_units,
            path=quote.path,
            to=self.wallet_address,
            deadline=int(self._clock()) + self.deadline_seconds,
        )
        try:
            tx_hash = await self.router.swap_exact_tokens_for_tokens(request)
        except SubmissionError as exc:
            return TradeOutcome.failed(token, str(exc), signal=signal, quote=quote, tx_hash=exc.tx_hash)
        return TradeOutcome.executed(token, tx_hash, signal=signal, quote=quote)

    def _log_outcome(self, outcome: TradeOutcome) -> None:
        if outcome.error:
            self.logger.error("Trade %s", outcome.describe())
        else:
            self.logger.info("Trade %s", outcome.describe())

    @staticmethod
    def _to_wei(amount: Decimal, decimals: int) -> int:
        scale = Decimal(10) ** decimals
        return int((amount * scale).to_integral_value(rounding=ROUND_DOWN))
