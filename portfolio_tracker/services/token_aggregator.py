"""Per-token aggregation with stale fallback and retry."""
from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from ..config import AggregationConfig
from ..interfaces.price_oracle import PriceOracle
from ..models import TokenAggregation
from .balance_aggregator import BalanceAggregator
from .cache import StaleCache

logger = logging.getLogger(__name__)


class TokenAggregator:
    """Build a ``TokenAggregation`` for one mint, degrading gracefully.

    On failure the last good result for the mint is returned if there is
    one. Otherwise the whole fetch is retried with exponential backoff, and
    the first error is raised once the retries are used up.
    """

    def __init__(
        self,
        oracle: PriceOracle,
        balance_aggregator: BalanceAggregator,
        stale_cache: StaleCache,
        config: AggregationConfig,
    ) -> None:
        self._oracle = oracle
        self._balances = balance_aggregator
        self._stale_cache = stale_cache
        self._config = config

    async def _aggregate_once(
        self, mint: str, wallets: Sequence[str]
    ) -> TokenAggregation:
        metadata = await self._oracle.fetch_metadata(mint)
        balances = await self._balances.aggregate(mint, wallets, metadata.price_usd)
        result = TokenAggregation(mint=mint, metadata=metadata, balances=tuple(balances))
        self._stale_cache.put(mint, result)
        return result

    async def aggregate(self, mint: str, wallets: Sequence[str]) -> TokenAggregation:
        logger.info("Fetching data for token %s", mint)
        try:
            return await self._aggregate_once(mint, wallets)
        except Exception as e:
            logger.error("Error fetching token data for %s: %s", mint, e)
            error = e

        delay = self._config.retry_delay_seconds
        for attempt in range(1, self._config.max_retries + 1):
            stale = self._stale_cache.get(mint)
            if stale is not None:
                logger.warning("Using stale data for token %s", mint)
                return stale

            logger.info("Retry attempt %d for token %s in %.1fs", attempt, mint, delay)
            await asyncio.sleep(delay)
            try:
                return await self._aggregate_once(mint, wallets)
            except Exception as e:
                logger.warning("Retry %d for token %s failed: %s", attempt, mint, e)
            delay = min(
                delay * self._config.backoff_factor,
                self._config.max_retry_delay_seconds,
            )

        stale = self._stale_cache.get(mint)
        if stale is not None:
            logger.warning("Using stale data for token %s", mint)
            return stale

        logger.error("Giving up on token %s", mint)
        raise error
