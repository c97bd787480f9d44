"""Portfolio tracking session: wires providers, caches and services."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Mapping

from ..chains.solana import SolanaClient
from ..config import AppConfig
from ..formatters import format_balance, format_currency, format_price, truncate_address
from ..interfaces.notifier import Notifier
from ..interfaces.snapshot_store import SnapshotStore
from ..models import (
    PortfolioSnapshot,
    PortfolioStats,
    PortfolioValuation,
    SwapQuote,
    TokenAggregation,
)
from ..notifications import TelegramNotifier
from ..oracles import DexScreenerOracle, JupiterQuoteClient
from ..storage import SupabaseSnapshotStore
from .analytics import compute_portfolio_stats, filter_by_range
from .balance_aggregator import BalanceAggregator
from .cache import QueryCache, StaleCache
from .refresh import RefreshCoordinator
from .swap_simulator import QuoteKey, SwapSimulator
from .token_aggregator import TokenAggregator
from .token_set import TrackedTokenSet
from .valuation import compute_portfolio_value

logger = logging.getLogger(__name__)

LoadResults = Mapping[str, "TokenAggregation | Exception"]


class PortfolioTracker:
    """One tracking session: tracked mints, wallets and their caches."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config

        # Build provider clients
        self._chain = SolanaClient(config.chain)
        self._oracle = DexScreenerOracle(config.providers)
        self._quotes = JupiterQuoteClient(config.providers)
        self._store: SnapshotStore = SupabaseSnapshotStore(config.storage)

        # Build notifiers
        self._notifiers: list[Notifier] = []
        if config.notifications.telegram.enabled:
            self._notifiers.append(TelegramNotifier(config.notifications.telegram))

        self._tokens = TrackedTokenSet(config.tokens)
        self._wallets = tuple(config.wallets)

        # Session-scoped caches
        self._stale_cache = StaleCache()
        self._token_cache: QueryCache[str, TokenAggregation] = QueryCache(
            stale_time=config.tracker.stale_time_seconds
        )
        self._quote_cache: QueryCache[QuoteKey, SwapQuote] = QueryCache(
            stale_time=config.tracker.stale_time_seconds
        )

        self._aggregator = TokenAggregator(
            self._oracle,
            BalanceAggregator(self._chain, config.aggregation),
            self._stale_cache,
            config.aggregation,
        )
        self._simulator = SwapSimulator(
            self._quotes, self._quote_cache, config.stable_assets
        )
        self._refresher = RefreshCoordinator(self._tokens, self._token_cache)

    # ------------------------------------------------------------------
    # Tracked tokens
    # ------------------------------------------------------------------

    @property
    def tokens(self) -> list[str]:
        return list(self._tokens)

    @property
    def wallets(self) -> tuple[str, ...]:
        return self._wallets

    @property
    def is_refreshing(self) -> bool:
        return self._refresher.is_refreshing

    def add_token(self, mint: str) -> bool:
        added = self._tokens.add(mint)
        if added:
            logger.info("Tracking token %s", mint)
        return added

    def remove_token(self, mint: str) -> bool:
        removed = self._tokens.remove(mint)
        if removed:
            logger.info("Stopped tracking token %s", mint)
        return removed

    def clear_tokens(self) -> None:
        self._tokens.clear()
        logger.info("Cleared all tracked tokens")

    # ------------------------------------------------------------------
    # Loading and refresh
    # ------------------------------------------------------------------

    def token_data(self, mint: str) -> TokenAggregation | None:
        return self._token_cache.get_data(mint)

    def swap_quote(self, mint: str) -> SwapQuote | None:
        data = self._token_cache.get_data(mint)
        if data is None:
            return None
        return self._quote_cache.get_data((mint, data.total_amount))

    async def load_token(self, mint: str) -> TokenAggregation:
        """Cached aggregation for ``mint``, loading it if stale.

        Raises only when the aggregation failed with no stale data to fall
        back on.
        """
        result = await self._token_cache.fetch(
            mint, lambda: self._aggregator.aggregate(mint, self._wallets)
        )
        await self._simulator.simulate(result)
        return result

    async def load_all(self) -> dict[str, TokenAggregation | Exception]:
        """Load every tracked token; a failure stays in that token's slot."""
        mints = list(self._tokens)
        results = await asyncio.gather(
            *(self.load_token(mint) for mint in mints), return_exceptions=True
        )

        outcome: dict[str, TokenAggregation | Exception] = {}
        for mint, result in zip(mints, results):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            if isinstance(result, Exception):
                logger.error("Failed to load token %s: %s", mint, result)
            outcome[mint] = result
        return outcome

    async def refresh_all(self) -> bool:
        return await self._refresher.refresh_all()

    # ------------------------------------------------------------------
    # Valuation and snapshots
    # ------------------------------------------------------------------

    def portfolio_value(self) -> PortfolioValuation:
        return compute_portfolio_value(
            self._tokens,
            self._token_cache,
            self._quote_cache,
            self._config.stable_assets,
        )

    def build_snapshot(self) -> PortfolioSnapshot:
        return PortfolioSnapshot.capture(
            self.portfolio_value(), wallet_count=len(self._wallets)
        )

    async def save_snapshot(self) -> PortfolioSnapshot | None:
        """Persist the current valuation; ``None`` if the store rejected it."""
        snapshot = self.build_snapshot()
        try:
            saved = await self._store.insert(snapshot)
        except Exception as e:
            logger.error("Failed to save portfolio snapshot: %s", e)
            await self._send_alert(
                f"Failed to save portfolio snapshot: {e}\n\n{self._now_str()} UTC",
                subject="⚠️ Portfolio snapshot not saved",
            )
            return None

        logger.info(
            "Portfolio snapshot saved: value $%.2f, sell simulation $%.2f",
            saved.total_value,
            saved.sell_simulation_value,
        )
        return saved

    async def snapshot_history(self, limit: int = 100) -> list[PortfolioSnapshot]:
        return await self._store.list_recent(limit)

    async def delete_snapshot(self, snapshot_id: str) -> None:
        await self._store.delete(snapshot_id)

    async def snapshots_between(
        self, start: datetime, end: datetime
    ) -> list[PortfolioSnapshot]:
        return await self._store.list_between(start, end)

    async def portfolio_stats(
        self, time_range: str = "30d", limit: int = 1000
    ) -> PortfolioStats:
        """Value change and spread over the stored history in ``time_range``."""
        history = await self._store.list_recent(limit)
        return compute_portfolio_stats(filter_by_range(history, time_range))

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def _token_line(self, mint: str, result: TokenAggregation | Exception | None) -> str:
        if isinstance(result, Exception):
            return f"{truncate_address(mint)} · ⚠️ failed to load: {result}"

        data = self.token_data(mint)
        if data is None:
            return f"{truncate_address(mint)} · no data yet"

        line = (
            f"{data.metadata.symbol} · {format_price(data.metadata.price_usd)}"
            f" · {format_balance(data.total_amount)}"
            f" · {format_currency(data.total_usd_value)}"
        )
        quote = self.swap_quote(mint)
        if quote is not None:
            line += (
                f" · sell {format_currency(quote.out_amount_usd)}"
                f" ({abs(quote.price_impact_pct):.2f}% impact)"
            )
        return line

    def format_summary(self, results: LoadResults | None = None) -> str:
        """Multi-line portfolio summary; ``results`` supplies per-token errors."""
        results = results or {}
        valuation = self.portfolio_value()

        lines = [self._token_line(mint, results.get(mint)) for mint in self._tokens]
        body = "\n".join(lines) if lines else "No tokens tracked."

        return (
            f"📊 Solana Portfolio · {valuation.total_tokens} tokens"
            f" · {len(self._wallets)} wallets\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"Total value: {format_currency(valuation.total_value_usd)}\n"
            f"Sell simulation: {format_currency(valuation.sell_simulation_value_usd)}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = False) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def generate_report(self) -> str:
        """Load all tokens and send the portfolio summary to the notifiers."""
        results = await self.load_all()
        report = self.format_summary(results)
        await self._send_log(report, silent=False)
        logger.info("Portfolio report sent")
        return report

    async def run_continuous(
        self,
        interval_seconds: int | None = None,
        snapshot_every: int | None = None,
    ) -> None:
        """Refresh and reload on a timer, saving a snapshot every N cycles."""
        interval = interval_seconds or self._config.tracker.refresh_interval_seconds
        if snapshot_every is None:
            snapshot_every = self._config.tracker.snapshot_every
        logger.info(
            "Starting continuous tracking (refreshing every %d seconds)", interval
        )

        cycle = 0
        while True:
            try:
                await self.refresh_all()
                await self.load_all()
                valuation = self.portfolio_value()
                logger.info(
                    "Portfolio value $%.2f · sell simulation $%.2f · %d tokens",
                    valuation.total_value_usd,
                    valuation.sell_simulation_value_usd,
                    valuation.total_tokens,
                )

                cycle += 1
                if snapshot_every and cycle % snapshot_every == 0:
                    await self.save_snapshot()

                await asyncio.sleep(interval)
            except Exception as e:
                logger.error("Error in tracking loop: %s", e)
                await asyncio.sleep(60)
