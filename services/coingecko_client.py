#!/usr/bin/env python3
import asyncio
import logging
import time
from typing import Any, Optional, Dict, List

import aiohttp
from analysis.models import PricePoint, PriceSeries, Token
from constants import (COINGECKO_API_BASE_URL, COINGECKO_RATE_LIMIT_DELAY, HTTP_RETRIES,
                       HTTP_RETRY_DELAY, HTTP_TIMEOUT_SECONDS, VS_CURRENCY)
from services.exceptions import ProviderError

logger = logging.getLogger(__name__)

async def api_get(url: str, session: aiohttp.ClientSession, params: Optional[Dict] = None, headers: Optional[Dict] = None,
                  retries: int = HTTP_RETRIES, timeout: float = HTTP_TIMEOUT_SECONDS, retry_delay: float = HTTP_RETRY_DELAY) -> Any:
    """Makes an async GET request with retries and timeout; raises ProviderError once retries run out."""
    for attempt in range(retries):
        try:
            async with session.get(url, params=params, headers=headers, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
                response.raise_for_status()
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            if attempt < retries - 1:
                logger.debug("GET %s failed (attempt %s/%s): %s", url, attempt + 1, retries, e)
                await asyncio.sleep(retry_delay)
            else:
                raise ProviderError(f"API request failed after {retries} attempts: {e}") from e
    raise ProviderError(f"API request to {url} was not attempted")

class CoinGeckoClient:
    """Market data for the token universe and trailing price history."""

    def __init__(self, session: aiohttp.ClientSession, api_key: Optional[str] = None, *,
                 base_url: str = COINGECKO_API_BASE_URL, vs_currency: str = VS_CURRENCY,
                 rate_limit_delay: float = COINGECKO_RATE_LIMIT_DELAY, retries: int = HTTP_RETRIES,
                 retry_delay: float = HTTP_RETRY_DELAY):
        self.session = session
        self.api_key = api_key
        self.headers = {'x-cg-demo-api-key': self.api_key} if self.api_key else {}
        self.base_url = base_url
        self.vs_currency = vs_currency
        self._retries = retries
        self._retry_delay = retry_delay
        self._last_request_time = 0.0
        self._rate_limit_delay = rate_limit_delay

    async def _wait_for_rate_limit(self):
        elapsed = time.time() - self._last_request_time
        if elapsed < self._rate_limit_delay:
            await asyncio.sleep(self._rate_limit_delay - elapsed)
        self._last_request_time = time.time()

    async def _get(self, path: str, params: Optional[Dict] = None) -> Any:
        await self._wait_for_rate_limit()
        return await api_get(f"{self.base_url}{path}", self.session, params=params, headers=self.headers,
                             retries=self._retries, retry_delay=self._retry_delay)

    async def list_top_tokens(self, limit: int, category: str) -> List[Token]:
        """Top tokens by volume in ``category``; empty on any provider failure."""
        logger.info("Fetching top tokens by volume...")
        params = {
            'vs_currency': self.vs_currency,
            'order': 'volume_desc',
            'per_page': limit,
            'page': 1,
            'category': category,
        }
        try:
            data = await self._get("/coins/markets", params=params)
            tokens = self._parse_tokens(data)[:limit]
        except ProviderError as e:
            logger.error("Error fetching top tokens: %s", e)
            return []
        logger.info("Top tokens fetched: %s", ", ".join(token.symbol for token in tokens))
        return tokens

    async def fetch_price_history(self, token_id: str, window_days: int) -> PriceSeries:
        """Trailing ``[timestamp, price]`` samples for ``token_id``; empty on any provider failure."""
        logger.info("Fetching historical data for %s...", token_id)
        params = {'vs_currency': self.vs_currency, 'days': str(window_days)}
        try:
            data = await self._get(f"/coins/{token_id}/market_chart", params=params)
            series = self._parse_prices(data)
        except ProviderError as e:
            logger.error("Error fetching historical data for %s: %s", token_id, e)
            return ()
        logger.info("Historical data for %s fetched successfully (%s samples).", token_id, len(series))
        return series

    @staticmethod
    def _parse_tokens(data: Any) -> List[Token]:
        if not isinstance(data, list):
            raise ProviderError(f"Unexpected /coins/markets payload: {type(data).__name__}")
        tokens = []
        for entry in data:
            try:
                volume = entry.get('total_volume')
                tokens.append(Token(
                    id=str(entry['id']),
                    symbol=str(entry['symbol']),
                    address=entry.get('contract_address') or None,
                    volume=float(volume) if volume is not None else None,
                ))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed market entry %r: %s", entry, e)
        return tokens

    @staticmethod
    def _parse_prices(data: Any) -> PriceSeries:
        if not isinstance(data, dict) or not isinstance(data.get('prices'), list):
            raise ProviderError("Could not parse price history from CoinGecko API response.")
        try:
            points = [PricePoint(timestamp_ms=int(item[0]), price=float(item[1])) for item in data['prices']]
        except (IndexError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed price sample: {e}") from e
        return tuple(sorted(points, key=lambda point: point.timestamp_ms))
