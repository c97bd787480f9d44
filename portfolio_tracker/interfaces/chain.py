"""Chain client protocol: on-chain wallet balance lookup."""
from typing import Protocol


class ChainClient(Protocol):
    """Abstract interface for reading wallet balances from the ledger."""

    async def get_balance(self, wallet_address: str, mint: str) -> float: ...
