"""Batched, paced wallet balance lookups for one mint."""
from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from ..config import AggregationConfig
from ..interfaces.chain import ChainClient
from ..models import WalletBalance

logger = logging.getLogger(__name__)


class BalanceAggregator:
    """Value every wallet's holding of a mint at a single price sample.

    Wallets are queried in batches of ``batch_size``; all lookups in a batch
    run concurrently and the next batch starts only once the previous one
    has resolved, after a ``batch_delay_seconds`` pause.
    """

    def __init__(self, chain_client: ChainClient, config: AggregationConfig) -> None:
        self._client = chain_client
        self._batch_size = config.batch_size
        self._batch_delay = config.batch_delay_seconds

    async def _fetch_one(
        self, wallet: str, mint: str, price_usd: float
    ) -> WalletBalance | None:
        try:
            amount = await self._client.get_balance(wallet, mint)
        except Exception as e:
            logger.error("Failed to get balance for wallet %s: %s", wallet, e)
            return None

        if not amount or amount <= 0:
            return None
        return WalletBalance(
            wallet_address=wallet, mint=mint, amount=float(amount), price_usd=price_usd
        )

    async def aggregate(
        self, mint: str, wallets: Sequence[str], price_usd: float
    ) -> list[WalletBalance]:
        """Positive balances of ``mint`` in input wallet order."""
        balances: list[WalletBalance] = []
        size = self._batch_size

        for start in range(0, len(wallets), size):
            batch = wallets[start : start + size]
            results = await asyncio.gather(
                *(self._fetch_one(wallet, mint, price_usd) for wallet in batch)
            )
            balances.extend(r for r in results if r is not None)

            if start + size < len(wallets):
                await asyncio.sleep(self._batch_delay)

        logger.debug(
            "%s: %d of %d wallets hold a balance", mint, len(balances), len(wallets)
        )
        return balances
