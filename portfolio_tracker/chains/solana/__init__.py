"""Solana RPC client."""
from .client import RpcError, SolanaClient

__all__ = ["RpcError", "SolanaClient"]
