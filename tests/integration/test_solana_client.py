"""Integration tests for the Solana client: RPC fallback and balance parsing."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from portfolio_tracker.chains.solana import RpcError, SolanaClient
from portfolio_tracker.config import NATIVE_MINT, ChainConfig

X_MINT = "XmintXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX"
WALLET = "WalletAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"


@pytest.fixture()
def client() -> SolanaClient:
    return SolanaClient(
        ChainConfig(
            rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
            rpc_timeout=5,
        )
    )


def _response(data: dict) -> AsyncMock:
    response = AsyncMock()
    response.json = AsyncMock(return_value=data)
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


def _mock_session(response_data: dict | None = None, error: Exception | None = None):
    mock_session = AsyncMock()
    if error:
        mock_session.post = MagicMock(side_effect=error)
    else:
        mock_session.post = MagicMock(return_value=_response(response_data or {}))
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestRpcCall:
    @pytest.mark.asyncio
    async def test_successful_call(self, client: SolanaClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "result": {"value": 1}})

        with patch("portfolio_tracker.chains.solana.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("portfolio_tracker.chains.solana.client.aiohttp.TCPConnector"):
                result = await client.rpc_call("getBalance", [WALLET])

        assert result == {"value": 1}
        payload = mock_session.post.call_args.kwargs["json"]
        assert payload["method"] == "getBalance"
        assert payload["params"] == [WALLET]

    @pytest.mark.asyncio
    async def test_rpc_error_raises(self, client: SolanaClient) -> None:
        mock_session = _mock_session(
            {"jsonrpc": "2.0", "error": {"code": -32602, "message": "Invalid param"}}
        )

        with patch("portfolio_tracker.chains.solana.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("portfolio_tracker.chains.solana.client.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="All RPC endpoints failed"):
                    await client.rpc_call("getBalance", [WALLET])

    @pytest.mark.asyncio
    async def test_invalid_request_not_retried_elsewhere(self, client: SolanaClient) -> None:
        mock_session = _mock_session(
            {"jsonrpc": "2.0", "error": {"code": -32602, "message": "Invalid param: WrongSize"}}
        )

        with patch(
            "portfolio_tracker.chains.solana.client.aiohttp.ClientSession",
            return_value=mock_session,
        ) as session_cls:
            with patch("portfolio_tracker.chains.solana.client.aiohttp.TCPConnector"):
                with pytest.raises(RpcError) as exc_info:
                    await client.rpc_call("getBalance", ["bad"])

        assert exc_info.value.code == -32602
        assert "WrongSize" in exc_info.value.message
        assert session_cls.call_count == 1

    @pytest.mark.asyncio
    async def test_node_error_falls_back(self, client: SolanaClient) -> None:
        behind = _mock_session(
            {"jsonrpc": "2.0", "error": {"code": -32005, "message": "Node is behind"}}
        )
        healthy = _mock_session({"jsonrpc": "2.0", "result": {"value": 7}})

        with patch(
            "portfolio_tracker.chains.solana.client.aiohttp.ClientSession",
            side_effect=[behind, healthy],
        ):
            with patch("portfolio_tracker.chains.solana.client.aiohttp.TCPConnector"):
                result = await client.rpc_call("getBalance", [WALLET])

        assert result == {"value": 7}
        assert client.current_rpc_index == 1

    @pytest.mark.asyncio
    async def test_fallback_to_next_endpoint(self, client: SolanaClient) -> None:
        """When the first endpoint fails, the second answers and becomes current."""
        failing = _mock_session(error=ConnectionError("refused"))
        working = _mock_session({"jsonrpc": "2.0", "result": {"ok": True}})

        with patch(
            "portfolio_tracker.chains.solana.client.aiohttp.ClientSession",
            side_effect=[failing, working],
        ):
            with patch("portfolio_tracker.chains.solana.client.aiohttp.TCPConnector"):
                result = await client.rpc_call("getHealth", [])

        assert result == {"ok": True}
        assert working.post.call_args[0][0] == "https://rpc2.example.com"
        assert client.current_rpc_index == 1

    @pytest.mark.asyncio
    async def test_no_endpoints_configured(self) -> None:
        client = SolanaClient(ChainConfig(rpc_endpoints=()))
        with pytest.raises(RuntimeError, match="No RPC endpoints configured"):
            await client.rpc_call("getHealth", [])


class TestBalances:
    @pytest.mark.asyncio
    async def test_native_balance_in_sol(self, client: SolanaClient) -> None:
        mock_session = _mock_session({"result": {"context": {}, "value": 2_500_000_000}})

        with patch("portfolio_tracker.chains.solana.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("portfolio_tracker.chains.solana.client.aiohttp.TCPConnector"):
                balance = await client.get_balance(WALLET, NATIVE_MINT)

        assert balance == pytest.approx(2.5)
        assert mock_session.post.call_args.kwargs["json"]["method"] == "getBalance"

    @pytest.mark.asyncio
    async def test_token_balance_sums_accounts(
        self, client: SolanaClient, token_accounts_result: dict
    ) -> None:
        mock_session = _mock_session({"result": token_accounts_result})

        with patch("portfolio_tracker.chains.solana.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("portfolio_tracker.chains.solana.client.aiohttp.TCPConnector"):
                balance = await client.get_balance(WALLET, X_MINT)

        assert balance == pytest.approx(4.0)
        payload = mock_session.post.call_args.kwargs["json"]
        assert payload["method"] == "getTokenAccountsByOwner"
        assert payload["params"] == [WALLET, {"mint": X_MINT}, {"encoding": "jsonParsed"}]

    @pytest.mark.asyncio
    async def test_no_token_accounts_is_zero(self, client: SolanaClient) -> None:
        mock_session = _mock_session({"result": {"value": []}})

        with patch("portfolio_tracker.chains.solana.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("portfolio_tracker.chains.solana.client.aiohttp.TCPConnector"):
                balance = await client.get_balance(WALLET, X_MINT)

        assert balance == 0.0
