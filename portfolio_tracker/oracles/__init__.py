"""Price and quote providers."""
from .dexscreener import DexScreenerOracle
from .jupiter import JupiterQuoteClient

__all__ = ["DexScreenerOracle", "JupiterQuoteClient"]
