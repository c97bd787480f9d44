"""Service modules"""
from .analytics import TIME_RANGES, compute_portfolio_stats, filter_by_range
from .balance_aggregator import BalanceAggregator
from .cache import QueryCache, StaleCache
from .refresh import RefreshCoordinator
from .swap_simulator import SwapSimulator
from .token_aggregator import TokenAggregator
from .token_set import TrackedTokenSet
from .tracker import PortfolioTracker
from .valuation import compute_portfolio_value

__all__ = [
    "TIME_RANGES",
    "BalanceAggregator",
    "PortfolioTracker",
    "QueryCache",
    "RefreshCoordinator",
    "StaleCache",
    "SwapSimulator",
    "TokenAggregator",
    "TrackedTokenSet",
    "compute_portfolio_stats",
    "compute_portfolio_value",
    "filter_by_range",
]
