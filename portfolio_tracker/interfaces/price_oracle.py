"""Price oracle protocol: token metadata and price feed abstraction."""
from typing import Protocol

from ..models import TokenMetadata


class PriceOracle(Protocol):
    """Abstract interface for fetching token metadata.

    Implementations return ``TokenMetadata.placeholder(mint)`` instead of
    raising when the feed has no record or is unreachable.
    """

    async def fetch_metadata(self, mint: str) -> TokenMetadata: ...
