#!/usr/bin/env python3
from typing import Optional


class TradingBotError(Exception):
    """Base class for every error raised by the trading pipeline."""


class ProviderError(TradingBotError):
    """Market-data request failed: network, timeout, rate limit or malformed payload."""


class BalanceReadError(TradingBotError):
    """An on-chain balance (or the decimals needed to scale it) could not be read."""


class QuoteError(TradingBotError):
    """The router could not quote the requested path."""


class SubmissionError(TradingBotError):
    """
    Raised when a swap could not be built, signed, broadcast or mined successfully.
    When the tx reached the chain and reverted, ``tx_hash`` identifies it.
    """
    def __init__(self, msg: str, tx_hash: Optional[str] = None):
        super().__init__(msg)
        self.tx_hash = tx_hash


class PipelineFatalError(TradingBotError):
    """The whole pass is meaningless: no token universe, no balances or no signing context."""
