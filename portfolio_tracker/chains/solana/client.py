"""Solana JSON-RPC client with endpoint fallback."""
import logging
import ssl
from typing import Any, Iterator

import aiohttp
import certifi

from ...config import NATIVE_MINT, ChainConfig

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000

# JSON-RPC codes for a malformed request; every endpoint would reject it.
INVALID_REQUEST_CODES = frozenset({-32600, -32601, -32602})


class RpcError(RuntimeError):
    """Error object returned by a Solana RPC node."""

    def __init__(self, code: int | None, message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message

    @classmethod
    def from_response(cls, error: Any) -> "RpcError":
        if isinstance(error, dict):
            return cls(error.get("code"), str(error.get("message", "")))
        return cls(None, str(error))

    @property
    def is_invalid_request(self) -> bool:
        return self.code in INVALID_REQUEST_CODES


class SolanaClient:
    """Reads wallet balances over Solana JSON-RPC.

    Requests go to the endpoint that last answered. Transport failures and
    node-side errors move on to the next configured endpoint; a malformed
    request is raised at once.
    """

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0

    def _endpoint_order(self) -> Iterator[int]:
        count = len(self.endpoints)
        for offset in range(count):
            yield (self.current_rpc_index + offset) % count

    async def _post(
        self, url: str, payload: dict[str, Any], ssl_context: ssl.SSLContext
    ) -> Any:
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                url, json=payload, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                body = await response.json()

        if "error" in body:
            raise RpcError.from_response(body["error"])
        return body.get("result", {})

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Call ``method`` on the first endpoint that answers.

        Raises:
            RpcError: the request itself was rejected as invalid.
            RuntimeError: no endpoint is configured or every endpoint failed.
        """
        if not self.endpoints:
            raise RuntimeError("No RPC endpoints configured")

        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for index in self._endpoint_order():
            url = self.endpoints[index]
            try:
                result = await self._post(url, payload, ssl_context)
            except RpcError as e:
                if e.is_invalid_request:
                    raise
                last_error = e
            except Exception as e:
                last_error = e
            else:
                if index != self.current_rpc_index:
                    logger.info("Switched to RPC endpoint: %s", url)
                    self.current_rpc_index = index
                return result

            logger.warning("%s via %s failed: %s", method, url, last_error)

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def get_native_balance(self, wallet_address: str) -> float:
        """SOL balance of a wallet."""
        result = await self.rpc_call("getBalance", [wallet_address])
        return int(result.get("value", 0)) / LAMPORTS_PER_SOL

    async def get_token_balance(self, wallet_address: str, mint: str) -> float:
        """SPL token balance, summed over every token account for the mint."""
        result = await self.rpc_call(
            "getTokenAccountsByOwner",
            [wallet_address, {"mint": mint}, {"encoding": "jsonParsed"}],
        )

        total = 0.0
        for account in result.get("value", []):
            info = (
                account.get("account", {})
                .get("data", {})
                .get("parsed", {})
                .get("info", {})
            )
            token_amount = info.get("tokenAmount", {})
            ui_amount = token_amount.get("uiAmount")
            if ui_amount is None:
                decimals = int(token_amount.get("decimals", 0))
                ui_amount = int(token_amount.get("amount", "0")) / (10**decimals)
            total += float(ui_amount)
        return total

    async def get_balance(self, wallet_address: str, mint: str) -> float:
        """Balance of ``mint`` held by ``wallet_address``.

        The native mint is read with ``getBalance``; everything else through
        the wallet's token accounts.
        """
        if mint == NATIVE_MINT:
            return await self.get_native_balance(wallet_address)
        return await self.get_token_balance(wallet_address, mint)
