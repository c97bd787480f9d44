"""Unit tests for the Jupiter swap quote client."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from portfolio_tracker.config import USDC_MINT, ProvidersConfig
from portfolio_tracker.oracles.jupiter import JupiterQuoteClient

BONK_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
UNLISTED_MINT = "UnlistedMintXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX"


@pytest.fixture()
def client() -> JupiterQuoteClient:
    return JupiterQuoteClient(ProvidersConfig(slippage_bps=50, request_timeout=5))


def _mock_session(status: int = 200, data: dict | None = None) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=data or {})
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestGetQuote:
    @pytest.mark.asyncio
    async def test_converts_out_amount_to_usd(self, client: JupiterQuoteClient) -> None:
        mock_session = _mock_session(
            data={"outAmount": "48123456", "priceImpactPct": "0.12", "slippageBps": 50}
        )

        with patch("portfolio_tracker.oracles.jupiter.aiohttp.ClientSession", return_value=mock_session):
            with patch("portfolio_tracker.oracles.jupiter.aiohttp.TCPConnector"):
                quote = await client.get_quote(UNLISTED_MINT, 10.0)

        assert quote.out_amount_usd == pytest.approx(48.123456)
        assert quote.price_impact_pct == pytest.approx(0.12)
        assert quote.slippage_bps == 50

        params = mock_session.get.call_args.kwargs["params"]
        assert params == {
            "inputMint": UNLISTED_MINT,
            "outputMint": USDC_MINT,
            "amount": "10000000000",
            "slippageBps": "50",
        }

    @pytest.mark.asyncio
    async def test_uses_known_token_decimals(self, client: JupiterQuoteClient) -> None:
        mock_session = _mock_session(data={"outAmount": "1000000"})

        with patch("portfolio_tracker.oracles.jupiter.aiohttp.ClientSession", return_value=mock_session):
            with patch("portfolio_tracker.oracles.jupiter.aiohttp.TCPConnector"):
                await client.get_quote(BONK_MINT, 1.234567)

        assert mock_session.get.call_args.kwargs["params"]["amount"] == "123456"

    @pytest.mark.asyncio
    async def test_non_200_raises(self, client: JupiterQuoteClient) -> None:
        mock_session = _mock_session(status=429)

        with patch("portfolio_tracker.oracles.jupiter.aiohttp.ClientSession", return_value=mock_session):
            with patch("portfolio_tracker.oracles.jupiter.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="HTTP 429"):
                    await client.get_quote(UNLISTED_MINT, 1.0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -3.0])
    async def test_non_positive_amount_skips_request(
        self, client: JupiterQuoteClient, amount: float
    ) -> None:
        with patch("portfolio_tracker.oracles.jupiter.aiohttp.ClientSession") as session_cls:
            quote = await client.get_quote(UNLISTED_MINT, amount)

        session_cls.assert_not_called()
        assert quote.out_amount_usd == 0.0
