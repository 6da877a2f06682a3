#!/usr/bin/env python3
import logging
from typing import Sequence

from analysis.models import PricePoint, TradeSignal
from constants import TREND_DIP_RATIO

logger = logging.getLogger(__name__)


def analyze_trend(series: Sequence[PricePoint], dip_ratio: float = TREND_DIP_RATIO) -> TradeSignal:
    """
    Mean-reversion dip check over a trailing price window.

    Signals a buy when the latest price is below ``dip_ratio`` times the
    arithmetic mean of every sample in the window. An empty window never
    signals a buy.
    """
    if not series:
        logger.warning("No historical data available to analyze trends.")
        return TradeSignal(should_trade=False, current_price=None, average_price=None)

    prices = [point.price for point in series]
    current_price = prices[-1]
    average_price = sum(prices) / len(prices)

    logger.info("Current Price: %s, Average Price: %s", current_price, average_price)
    return TradeSignal(
        should_trade=current_price < average_price * dip_ratio,
        current_price=current_price,
        average_price=average_price,
    )
