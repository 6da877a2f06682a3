#!/usr/bin/env python3
"""Value objects passed between the stages of a trading pass."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True, slots=True)
class Token:
    """A candidate token as listed by the market-data provider."""
    id: str
    symbol: str
    address: Optional[str]
    volume: Optional[float] = None


@dataclass(frozen=True, slots=True)
class PricePoint:
    timestamp_ms: int
    price: float


# Ascending by timestamp, covering the trailing trend window.
PriceSeries = Tuple[PricePoint, ...]


@dataclass(frozen=True, slots=True)
class BalanceSnapshot:
    """Wallet balances keyed by token symbol, plus the native asset."""
    native_symbol: str
    balances: Mapping[str, Decimal]

    def __post_init__(self) -> None:
        object.__setattr__(self, 'balances', MappingProxyType(dict(self.balances)))

    def get(self, symbol: str) -> Decimal:
        return self.balances.get(symbol, Decimal(0))

    def has(self, symbol: str) -> bool:
        return symbol in self.balances

    @property
    def native_balance(self) -> Decimal:
        return self.get(self.native_symbol)


@dataclass(frozen=True, slots=True)
class TradeSignal:
    should_trade: bool
    current_price: Optional[float]
    average_price: Optional[float]


@dataclass(frozen=True, slots=True)
class Quote:
    """Router quote in raw token units; advisory until it passes the profit gate."""
    amount_in: int
    amount_out: int
    path: Tuple[str, ...]


class OutcomeStatus(str, Enum):
    EXECUTED = 'executed'
    SKIPPED = 'skipped'
    FAILED = 'failed'


class SkipReason(str, Enum):
    NO_BALANCE = 'no-balance'
    UNFAVORABLE_TREND = 'unfavorable-trend'
    BELOW_PROFIT_THRESHOLD = 'below-profit-threshold'


@dataclass(frozen=True, slots=True)
class TradeOutcome:
    """Terminal result of one token's evaluation."""
    token: Token
    status: OutcomeStatus
    tx_hash: Optional[str] = None
    reason: Optional[SkipReason] = None
    error: Optional[str] = None
    signal: Optional[TradeSignal] = None
    quote: Optional[Quote] = None

    @classmethod
    def executed(cls, token: Token, tx_hash: str, *, signal: Optional[TradeSignal] = None,
                 quote: Optional[Quote] = None) -> TradeOutcome:
        return cls(token=token, status=OutcomeStatus.EXECUTED, tx_hash=tx_hash, signal=signal, quote=quote)

    @classmethod
    def skipped(cls, token: Token, reason: SkipReason, *, signal: Optional[TradeSignal] = None,
                quote: Optional[Quote] = None) -> TradeOutcome:
        return cls(token=token, status=OutcomeStatus.SKIPPED, reason=reason, signal=signal, quote=quote)

    @classmethod
    def failed(cls, token: Token, error: str, *, signal: Optional[TradeSignal] = None,
               quote: Optional[Quote] = None, tx_hash: Optional[str] = None) -> TradeOutcome:
        return cls(token=token, status=OutcomeStatus.FAILED, error=error, signal=signal, quote=quote, tx_hash=tx_hash)

    def describe(self) -> str:
        symbol = self.token.symbol.upper()
        if self.status is OutcomeStatus.EXECUTED:
            return f"{symbol}: executed (tx {self.tx_hash})"
        if self.status is OutcomeStatus.SKIPPED:
            return f"{symbol}: skipped ({self.reason.value})"
        return f"{symbol}: failed ({self.error})"

    def to_dict(self) -> dict:
        return {
            'symbol': self.token.symbol,
            'status': self.status.value,
            'tx_hash': self.tx_hash,
            'reason': self.reason.value if self.reason else None,
            'error': self.error,
        }


@dataclass(frozen=True, slots=True)
class RunSummary:
    outcomes: Tuple[TradeOutcome, ...]

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def executed(self) -> int:
        return self._count(OutcomeStatus.EXECUTED)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def message(self) -> str:
        if not self.outcomes:
            return "No candidate tokens found; nothing to trade."
        return (
            f"Evaluated {len(self.outcomes)} tokens: "
            f"{self.executed} executed, {self.skipped} skipped, {self.failed} failed."
        )
