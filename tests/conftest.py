"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from portfolio_tracker.config import (
    USDC_MINT,
    AggregationConfig,
    AppConfig,
    ChainConfig,
    NotificationsConfig,
    ProvidersConfig,
    StableAssetsConfig,
    StorageConfig,
    TelegramConfig,
    TrackerConfig,
)
from portfolio_tracker.models import TokenAggregation, TokenMetadata, WalletBalance

X_MINT = "XmintXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX"
WALLET_A = "WalletAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"
WALLET_B = "WalletBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBB"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fast_aggregation() -> AggregationConfig:
    """No pacing or backoff waits."""
    return AggregationConfig(
        batch_size=2,
        batch_delay_seconds=0.0,
        max_retries=2,
        retry_delay_seconds=0.0,
        backoff_factor=1.5,
        max_retry_delay_seconds=0.0,
    )


@pytest.fixture()
def stable_assets() -> StableAssetsConfig:
    return StableAssetsConfig(mints=(USDC_MINT,), symbols=("USDC",))


@pytest.fixture()
def sample_app_config(
    fast_aggregation: AggregationConfig, stable_assets: StableAssetsConfig
) -> AppConfig:
    return AppConfig(
        tracker=TrackerConfig(refresh_interval_seconds=30, stale_time_seconds=60.0),
        tokens=(USDC_MINT, X_MINT),
        wallets=(WALLET_A, WALLET_B),
        aggregation=fast_aggregation,
        stable_assets=stable_assets,
        chain=ChainConfig(rpc_endpoints=("https://rpc.example.com",), rpc_timeout=5),
        providers=ProvidersConfig(),
        storage=StorageConfig(supabase_url="https://db.example.com", supabase_key="key"),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def x_metadata() -> TokenMetadata:
    return TokenMetadata(
        name="Token X",
        symbol="X",
        price_usd=5.0,
        market_cap_usd=1_000_000.0,
        liquidity_usd=250_000.0,
        volume_24h_usd=80_000.0,
        price_change_24h_pct=-2.5,
    )


@pytest.fixture()
def usdc_metadata() -> TokenMetadata:
    return TokenMetadata(name="USD Coin", symbol="USDC", price_usd=1.0)


@pytest.fixture()
def x_aggregation(x_metadata: TokenMetadata) -> TokenAggregation:
    return TokenAggregation(
        mint=X_MINT,
        metadata=x_metadata,
        balances=(
            WalletBalance(wallet_address=WALLET_A, mint=X_MINT, amount=6.0, price_usd=5.0),
            WalletBalance(wallet_address=WALLET_B, mint=X_MINT, amount=4.0, price_usd=5.0),
        ),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    tracker:
      refresh_interval_seconds: 45
      stale_time_seconds: 30
      snapshot_every: 10
      include_native_token: true
    tokens:
      - "TokenOne1111111111111111111111111111111111"
      - "TokenTwo2222222222222222222222222222222222"
    wallets: "WalletOne, WalletTwo,WalletOne"
    aggregation:
      batch_size: 5
      batch_delay_seconds: 0.1
      max_retries: 4
      retry_delay_seconds: 1.0
      backoff_factor: 2.0
    stable_assets:
      mints: ["EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"]
      symbols: [usdc, usdt]
    chain:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
    providers:
      slippage_bps: 100
      token_decimals: {TokenOne1111111111111111111111111111111111: 6}
    storage:
      supabase_url: "https://db.example.com"
      supabase_key: "anon"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: 999
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sample provider payloads
# ---------------------------------------------------------------------------


@pytest.fixture()
def dexscreener_payload() -> dict:
    return {
        "pairs": [
            {
                "baseToken": {"name": "Token X", "symbol": "X"},
                "priceUsd": "5.25",
                "fdv": 1200000,
                "liquidity": {"usd": 340000.5},
                "volume": {"h24": 91000},
                "priceChange": {"h24": -3.2},
            },
            {
                "baseToken": {"name": "Token X (other pool)", "symbol": "X"},
                "priceUsd": "5.10",
            },
        ]
    }


@pytest.fixture()
def token_accounts_result() -> dict:
    return {
        "context": {"slot": 1},
        "value": [
            {
                "pubkey": "Acct1",
                "account": {
                    "data": {
                        "parsed": {
                            "info": {
                                "mint": X_MINT,
                                "tokenAmount": {
                                    "amount": "1500000",
                                    "decimals": 6,
                                    "uiAmount": 1.5,
                                },
                            },
                            "type": "account",
                        }
                    }
                },
            },
            {
                "pubkey": "Acct2",
                "account": {
                    "data": {
                        "parsed": {
                            "info": {
                                "mint": X_MINT,
                                "tokenAmount": {
                                    "amount": "2500000",
                                    "decimals": 6,
                                    "uiAmount": None,
                                },
                            },
                            "type": "account",
                        }
                    }
                },
            },
        ],
    }
