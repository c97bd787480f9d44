"""Ordered set of tracked token mints."""
from __future__ import annotations

from typing import Iterable, Iterator


class TrackedTokenSet:
    """Unique mints in insertion order. Only explicit calls remove entries."""

    def __init__(self, mints: Iterable[str] = ()) -> None:
        self._mints: dict[str, None] = {}
        for mint in mints:
            self.add(mint)

    def add(self, mint: str) -> bool:
        mint = mint.strip()
        if not mint or mint in self._mints:
            return False
        self._mints[mint] = None
        return True

    def remove(self, mint: str) -> bool:
        if mint not in self._mints:
            return False
        del self._mints[mint]
        return True

    def clear(self) -> None:
        self._mints.clear()

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._mints))

    def __len__(self) -> int:
        return len(self._mints)

    def __contains__(self, mint: object) -> bool:
        return mint in self._mints

    def __repr__(self) -> str:
        return f"TrackedTokenSet({list(self._mints)!r})"
