"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class TokenMetadata:
    """Price and market data for a single mint."""

    name: str
    symbol: str
    price_usd: float = 0.0
    market_cap_usd: float = 0.0
    liquidity_usd: float = 0.0
    volume_24h_usd: float = 0.0
    price_change_24h_pct: float = 0.0

    @classmethod
    def placeholder(cls, mint: str) -> TokenMetadata:
        """Zero-valued record for a mint the price feed does not know."""
        return cls(name="Unknown Token", symbol=mint[:4].upper())


@dataclass(frozen=True)
class WalletBalance:
    """Holding of one mint in one wallet, valued at a single price sample."""

    wallet_address: str
    mint: str
    amount: float
    price_usd: float

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"Negative balance for wallet {self.wallet_address}")

    @property
    def usd_value(self) -> float:
        return self.amount * self.price_usd


@dataclass(frozen=True)
class TokenAggregation:
    """Metadata plus every non-zero wallet balance for one mint."""

    mint: str
    metadata: TokenMetadata
    balances: tuple[WalletBalance, ...] = ()

    @property
    def total_usd_value(self) -> float:
        return sum(b.usd_value for b in self.balances)

    @property
    def total_amount(self) -> float:
        return sum(b.amount for b in self.balances)


@dataclass(frozen=True)
class SwapQuote:
    """Simulated sale of a token amount into the quote asset."""

    out_amount_usd: float
    price_impact_pct: float = 0.0
    slippage_bps: int = 0


@dataclass(frozen=True)
class PortfolioValuation:
    total_value_usd: float
    total_tokens: int
    sell_simulation_value_usd: float


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Persisted point-in-time portfolio valuation."""

    timestamp: str
    total_value: float
    sell_simulation_value: float
    wallet_count: int = 0
    token_count: int = 0
    id: str | None = None
    created_at: str | None = None

    @classmethod
    def capture(
        cls,
        valuation: PortfolioValuation,
        wallet_count: int,
        now: datetime | None = None,
    ) -> PortfolioSnapshot:
        now = now or datetime.now(timezone.utc)
        return cls(
            timestamp=now.isoformat(),
            total_value=float(valuation.total_value_usd),
            sell_simulation_value=float(valuation.sell_simulation_value_usd),
            wallet_count=wallet_count,
            token_count=valuation.total_tokens,
        )

    def to_row(self) -> dict[str, Any]:
        """Insert payload; ``id`` and ``created_at`` are assigned by the store."""
        return {
            "timestamp": self.timestamp,
            "total_value": self.total_value,
            "sell_simulation_value": self.sell_simulation_value,
            "wallet_count": self.wallet_count,
            "token_count": self.token_count,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> PortfolioSnapshot:
        row_id = row.get("id")
        return cls(
            timestamp=row.get("timestamp", ""),
            total_value=float(row.get("total_value") or 0),
            sell_simulation_value=float(row.get("sell_simulation_value") or 0),
            wallet_count=int(row.get("wallet_count") or 0),
            token_count=int(row.get("token_count") or 0),
            id=str(row_id) if row_id is not None else None,
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class PortfolioStats:
    """Change and spread of portfolio value over a run of snapshots.

    Changes compare the newest snapshot with the oldest. Percentages are 0
    when the oldest value is not positive. ``volatility`` is the population
    standard deviation of ``total_value``.
    """

    snapshot_count: int = 0
    change: float = 0.0
    change_pct: float = 0.0
    sell_simulation_change: float = 0.0
    sell_simulation_change_pct: float = 0.0
    average_value: float = 0.0
    max_value: float = 0.0
    min_value: float = 0.0
    volatility: float = 0.0
