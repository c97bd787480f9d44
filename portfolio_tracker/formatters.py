"""Human-readable number and address formatting."""
from __future__ import annotations


def format_currency(num: float) -> str:
    """Format a USD amount with a B/M/K suffix above one thousand."""
    if num == 0:
        return "$0"
    if num >= 1_000_000_000:
        return f"${num / 1_000_000_000:.2f}B"
    if num >= 1_000_000:
        return f"${num / 1_000_000:.2f}M"
    if num >= 1_000:
        return f"${num / 1_000:.2f}K"
    return f"${num:,.2f}"


def format_price(price: float) -> str:
    """Format a unit price, keeping precision for sub-cent tokens."""
    if price == 0:
        return "$0"
    if price >= 10_000_000:
        return f"${price:,.2f}"
    if price >= 1_000_000:
        return f"${price / 1_000_000:.2f}M"
    if price >= 1_000:
        return f"${price / 1_000:.2f}K"
    if price >= 0.01:
        return f"${price:.2f}"
    if price >= 0.0001:
        return f"${price:.4f}"
    return f"${price:.4e}"


def format_balance(balance: float) -> str:
    if balance == 0:
        return "0"
    if balance < 0.0001:
        return f"{balance:.4e}"
    if balance < 0.001:
        return f"{balance:.6f}"
    if balance >= 1_000:
        return f"{balance:,.2f}"
    return f"{balance:.6f}" if balance < 0.1 else f"{balance:.2f}"


def truncate_address(address: str) -> str:
    """``ABCD...WXYZ`` form of a wallet or mint address."""
    if len(address) <= 8:
        return address
    return f"{address[:4]}...{address[-4:]}"
