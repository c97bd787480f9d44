"""Swap quote protocol: simulated sale of a token amount."""
from typing import Protocol

from ..models import SwapQuote


class SwapQuoteProvider(Protocol):
    """Abstract interface for quoting a sale into the USD quote asset."""

    async def get_quote(self, mint: str, amount: float) -> SwapQuote: ...
