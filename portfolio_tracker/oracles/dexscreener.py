"""DexScreener token metadata and price oracle."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import ProvidersConfig
from ..models import TokenMetadata

logger = logging.getLogger(__name__)


def _as_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _parse_pair(mint: str, pair: dict[str, Any]) -> TokenMetadata:
    base = pair.get("baseToken") or {}
    return TokenMetadata(
        name=base.get("name") or "Unknown Token",
        symbol=base.get("symbol") or mint[:4].upper(),
        price_usd=_as_float(pair.get("priceUsd")),
        market_cap_usd=_as_float(pair.get("fdv")),
        liquidity_usd=_as_float((pair.get("liquidity") or {}).get("usd")),
        volume_24h_usd=_as_float((pair.get("volume") or {}).get("h24")),
        price_change_24h_pct=_as_float((pair.get("priceChange") or {}).get("h24")),
    )


class DexScreenerOracle:
    """Fetch token metadata from the DexScreener pairs API."""

    def __init__(self, config: ProvidersConfig) -> None:
        self.base_url = config.dexscreener_url.rstrip("/")
        self.timeout = config.request_timeout

    async def fetch_metadata(self, mint: str) -> TokenMetadata:
        """Return metadata for ``mint`` from its first listed pair.

        Never raises: an unknown mint, an HTTP error or a malformed response
        all yield ``TokenMetadata.placeholder(mint)``.
        """
        if not mint or not mint.strip():
            logger.error("Invalid token mint address: %r", mint)
            return TokenMetadata.placeholder(mint or "")

        url = f"{self.base_url}/{mint}"
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        logger.error(
                            "DexScreener request for %s failed: HTTP %s",
                            mint,
                            response.status,
                        )
                        return TokenMetadata.placeholder(mint)

                    content_type = response.headers.get("Content-Type", "")
                    if "application/json" not in content_type:
                        logger.error(
                            "DexScreener did not return JSON for %s (content-type %s)",
                            mint,
                            content_type,
                        )
                        return TokenMetadata.placeholder(mint)

                    data = await response.json()

            pairs = data.get("pairs") or []
            if not pairs:
                logger.info("No DexScreener pairs for %s", mint)
                return TokenMetadata.placeholder(mint)

            return _parse_pair(mint, pairs[0])

        except Exception as e:
            logger.error("Error fetching token info for %s: %s", mint, e)
            return TokenMetadata.placeholder(mint)
