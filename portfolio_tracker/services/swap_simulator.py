"""Swap-quote simulation of selling each tracked holding."""
from __future__ import annotations

import logging

from ..config import StableAssetsConfig
from ..interfaces.swap_quote import SwapQuoteProvider
from ..models import SwapQuote, TokenAggregation
from .cache import QueryCache

logger = logging.getLogger(__name__)

QuoteKey = tuple[str, float]


class SwapSimulator:
    """Fill the quote cache for the total held amount of a token."""

    def __init__(
        self,
        provider: SwapQuoteProvider,
        quote_cache: QueryCache[QuoteKey, SwapQuote],
        stable_assets: StableAssetsConfig,
    ) -> None:
        self._provider = provider
        self._cache = quote_cache
        self._stable_assets = stable_assets

    async def simulate(self, aggregation: TokenAggregation) -> SwapQuote | None:
        """Quote for selling the whole holding, or ``None`` if not applicable.

        Stable assets and empty holdings are never quoted. Quotes for earlier
        holdings of the same mint are dropped. Provider errors are logged and
        leave the quote absent.
        """
        mint = aggregation.mint
        amount = aggregation.total_amount
        if amount <= 0:
            return None
        if self._stable_assets.is_stable(mint, aggregation.metadata.symbol):
            return None

        for key in self._cache.keys():
            if key[0] == mint and key[1] != amount:
                self._cache.discard(key)

        try:
            return await self._cache.fetch(
                (mint, amount), lambda: self._provider.get_quote(mint, amount)
            )
        except Exception as e:
            logger.error("Swap simulation for %s failed: %s", mint, e)
            return None
