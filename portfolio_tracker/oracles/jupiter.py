"""Jupiter swap quote client."""
import logging
import math
import ssl

import aiohttp
import certifi

from ..config import ProvidersConfig
from ..models import SwapQuote

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 9
QUOTE_DECIMALS = 6


class JupiterQuoteClient:
    """Quote the sale of a token amount into the USD quote mint."""

    def __init__(self, config: ProvidersConfig) -> None:
        self.quote_url = config.jupiter_quote_url
        self.output_mint = config.quote_output_mint
        self.slippage_bps = config.slippage_bps
        self.timeout = config.request_timeout
        self.token_decimals = dict(config.token_decimals)

    def _decimals(self, mint: str, default: int) -> int:
        return self.token_decimals.get(mint, default)

    async def get_quote(self, mint: str, amount: float) -> SwapQuote:
        """Quote selling ``amount`` UI units of ``mint``.

        Raises:
            RuntimeError: the quote API answered with a non-200 status.
        """
        if not amount or amount <= 0:
            return SwapQuote(out_amount_usd=0.0)

        input_decimals = self._decimals(mint, DEFAULT_DECIMALS)
        output_decimals = self._decimals(self.output_mint, QUOTE_DECIMALS)
        raw_amount = math.floor(amount * 10**input_decimals)

        params = {
            "inputMint": mint,
            "outputMint": self.output_mint,
            "amount": str(raw_amount),
            "slippageBps": str(self.slippage_bps),
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.get(
                self.quote_url,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    raise RuntimeError(f"Jupiter API error: HTTP {response.status}")
                data = await response.json()

        out_amount = int(data.get("outAmount", 0)) / 10**output_decimals
        logger.debug("Jupiter quote for %s %s: $%.4f", amount, mint, out_amount)
        return SwapQuote(
            out_amount_usd=out_amount,
            price_impact_pct=float(data.get("priceImpactPct") or 0),
            slippage_bps=int(data.get("slippageBps") or 0),
        )
