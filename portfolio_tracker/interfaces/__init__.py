"""Protocol interfaces for the portfolio tracker."""
from .cache import Invalidator
from .chain import ChainClient
from .notifier import Notifier
from .price_oracle import PriceOracle
from .snapshot_store import SnapshotStore
from .swap_quote import SwapQuoteProvider

__all__ = [
    "ChainClient",
    "Invalidator",
    "Notifier",
    "PriceOracle",
    "SnapshotStore",
    "SwapQuoteProvider",
]
