"""Portfolio totals computed from whatever is already cached."""
from __future__ import annotations

from typing import Iterable

from ..config import StableAssetsConfig
from ..models import PortfolioValuation, SwapQuote, TokenAggregation
from .cache import QueryCache


def compute_portfolio_value(
    tokens: Iterable[str],
    token_cache: QueryCache[str, TokenAggregation],
    quote_cache: QueryCache[tuple[str, float], SwapQuote],
    stable_assets: StableAssetsConfig,
) -> PortfolioValuation:
    """Sum the cached valuation of every tracked token.

    Tokens without cached data count as zero. Stable assets contribute their
    USD value to the sell simulation directly; other tokens contribute their
    cached swap quote for the held amount, or nothing if there is none yet.
    Never fetches.
    """
    mints = list(tokens)
    total_value = 0.0
    sell_value = 0.0

    for mint in mints:
        data = token_cache.get_data(mint)
        if data is None:
            continue

        value = data.total_usd_value
        total_value += value

        if stable_assets.is_stable(mint, data.metadata.symbol):
            sell_value += value
            continue

        quote = quote_cache.get_data((mint, data.total_amount))
        if quote is not None:
            sell_value += quote.out_amount_usd

    return PortfolioValuation(
        total_value_usd=total_value,
        total_tokens=len(mints),
        sell_simulation_value_usd=sell_value,
    )
