"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

NATIVE_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

DEFAULT_TOKEN_DECIMALS: dict[str, int] = {
    USDC_MINT: 6,
    NATIVE_MINT: 9,
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": 6,  # USDT
    "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So": 9,  # mSOL
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": 5,  # BONK
    "kinXdEcpDQeHPEuQnqmUgtYykqKGVFq6CeVX5iAHJq6": 5,  # KIN
    "DUSTawucrTsGU8hcqRdHDCbuYhCPADMLM2VcCb8VnFnQ": 9,  # DUST
}

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrackerConfig:
    refresh_interval_seconds: int = 60
    stale_time_seconds: float = 60.0
    snapshot_every: int = 0
    include_native_token: bool = False


@dataclass(frozen=True)
class AggregationConfig:
    batch_size: int = 3
    batch_delay_seconds: float = 1.0
    max_retries: int = 3
    retry_delay_seconds: float = 2.0
    backoff_factor: float = 1.5
    max_retry_delay_seconds: float = 30.0


@dataclass(frozen=True)
class StableAssetsConfig:
    mints: tuple[str, ...] = (USDC_MINT,)
    symbols: tuple[str, ...] = ("USDC",)

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbols", tuple(s.upper() for s in self.symbols))

    def is_stable(self, mint: str, symbol: str = "") -> bool:
        """True when the token is valued 1:1 in USD without a swap quote."""
        return mint in self.mints or symbol.upper() in self.symbols


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class ProvidersConfig:
    dexscreener_url: str = "https://api.dexscreener.com/latest/dex/tokens"
    jupiter_quote_url: str = "https://quote-api.jup.ag/v6/quote"
    quote_output_mint: str = USDC_MINT
    slippage_bps: int = 50
    request_timeout: int = 15
    token_decimals: dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_TOKEN_DECIMALS)
    )


@dataclass(frozen=True)
class StorageConfig:
    supabase_url: str = ""
    supabase_key: str = ""
    table: str = "portfolio_snapshots"
    timeout: int = 15


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    tokens: tuple[str, ...] = ()
    wallets: tuple[str, ...] = ()
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    stable_assets: StableAssetsConfig = field(default_factory=StableAssetsConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# Used for any section the YAML file does not provide.
_ENV_DEFAULTS: dict[str, Any] = {
    "tokens": "${PORTFOLIO_TOKEN_ADDRESSES}",
    "wallets": "${PORTFOLIO_WALLET_ADDRESSES}",
    "chain": {"rpc_endpoints": ["${SOLANA_RPC_URL}"]},
    "storage": {
        "supabase_url": "${SUPABASE_URL}",
        "supabase_key": "${SUPABASE_ANON_KEY}",
    },
}

# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


def _split_addresses(raw: Any) -> tuple[str, ...]:
    """Normalise a list or comma-separated string of addresses.

    Blank entries are dropped and duplicates removed, first occurrence wins.
    """
    if raw is None:
        return ()
    items = raw.split(",") if isinstance(raw, str) else raw

    seen: dict[str, None] = {}
    for item in items:
        for part in str(item).split(","):
            address = part.strip()
            if address:
                seen.setdefault(address, None)
    return tuple(seen)


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_tracker(raw: dict[str, Any]) -> TrackerConfig:
    return TrackerConfig(
        refresh_interval_seconds=int(raw.get("refresh_interval_seconds", 60)),
        stale_time_seconds=float(raw.get("stale_time_seconds", 60.0)),
        snapshot_every=int(raw.get("snapshot_every", 0)),
        include_native_token=bool(raw.get("include_native_token", False)),
    )


def _build_tokens(raw: Any, tracker: TrackerConfig) -> tuple[str, ...]:
    tokens = _split_addresses(raw)
    if tracker.include_native_token and NATIVE_MINT not in tokens:
        tokens = (NATIVE_MINT,) + tokens
    return tokens


def _build_aggregation(raw: dict[str, Any]) -> AggregationConfig:
    return AggregationConfig(
        batch_size=int(raw.get("batch_size", 3)),
        batch_delay_seconds=float(raw.get("batch_delay_seconds", 1.0)),
        max_retries=int(raw.get("max_retries", 3)),
        retry_delay_seconds=float(raw.get("retry_delay_seconds", 2.0)),
        backoff_factor=float(raw.get("backoff_factor", 1.5)),
        max_retry_delay_seconds=float(raw.get("max_retry_delay_seconds", 30.0)),
    )


def _build_stable_assets(raw: dict[str, Any]) -> StableAssetsConfig:
    return StableAssetsConfig(
        mints=_split_addresses(raw.get("mints", [USDC_MINT])),
        symbols=_split_addresses(raw.get("symbols", ["USDC"])),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=_split_addresses(raw.get("rpc_endpoints", [])),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
    )


def _build_providers(raw: dict[str, Any]) -> ProvidersConfig:
    decimals = dict(DEFAULT_TOKEN_DECIMALS)
    decimals.update({k: int(v) for k, v in raw.get("token_decimals", {}).items()})
    return ProvidersConfig(
        dexscreener_url=raw.get("dexscreener_url", ProvidersConfig.dexscreener_url),
        jupiter_quote_url=raw.get("jupiter_quote_url", ProvidersConfig.jupiter_quote_url),
        quote_output_mint=raw.get("quote_output_mint", USDC_MINT),
        slippage_bps=int(raw.get("slippage_bps", 50)),
        request_timeout=int(raw.get("request_timeout", 15)),
        token_decimals=decimals,
    )


def _build_storage(raw: dict[str, Any]) -> StorageConfig:
    return StorageConfig(
        supabase_url=raw.get("supabase_url", ""),
        supabase_key=raw.get("supabase_key", ""),
        table=raw.get("table", "portfolio_snapshots"),
        timeout=int(raw.get("timeout", 15)),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root. When that default file is absent the configuration
            is built from environment variables alone; an explicit path that
            does not exist is an error.
    """
    load_dotenv()

    if config_path is None:
        config_path = _DEFAULT_CONFIG_PATH
        if not config_path.exists():
            logger.info("No config file at %s, using environment defaults", config_path)
            config_path = None
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

    file_raw: dict[str, Any] = {}
    if config_path is not None:
        with open(config_path) as f:
            file_raw = yaml.safe_load(f) or {}

    raw = _interpolate_env({**_ENV_DEFAULTS, **file_raw})

    tracker = _build_tracker(raw.get("tracker", {}))
    cfg = AppConfig(
        tracker=tracker,
        tokens=_build_tokens(raw.get("tokens"), tracker),
        wallets=_split_addresses(raw.get("wallets")),
        aggregation=_build_aggregation(raw.get("aggregation", {})),
        stable_assets=_build_stable_assets(raw.get("stable_assets", {})),
        chain=_build_chain(raw.get("chain", {})),
        providers=_build_providers(raw.get("providers", {})),
        storage=_build_storage(raw.get("storage", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info(
        "Configuration loaded: %d tokens, %d wallets", len(cfg.tokens), len(cfg.wallets)
    )
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    agg = cfg.aggregation
    if agg.batch_size < 1:
        raise ValueError("aggregation.batch_size must be at least 1")
    if agg.batch_delay_seconds < 0 or agg.retry_delay_seconds < 0:
        raise ValueError("aggregation delays must not be negative")
    if agg.max_retry_delay_seconds < 0:
        raise ValueError("aggregation delays must not be negative")
    if agg.max_retries < 0:
        raise ValueError("aggregation.max_retries must not be negative")
    if agg.backoff_factor < 1:
        raise ValueError("aggregation.backoff_factor must be at least 1")
    if cfg.tracker.refresh_interval_seconds <= 0:
        raise ValueError("tracker.refresh_interval_seconds must be positive")
