"""Refresh coordination for tracked tokens."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from ..interfaces.cache import Invalidator

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """Invalidate every tracked token's cached data, one refresh at a time."""

    def __init__(self, tokens: Iterable[str], cache: Invalidator) -> None:
        self._tokens = tokens
        self._cache = cache
        self._refreshing = False

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    async def refresh_all(self) -> bool:
        """Invalidate all tracked tokens concurrently.

        Returns ``False`` without doing anything when a refresh is already in
        flight. Data is reloaded on the next read, not here.
        """
        if self._refreshing:
            logger.debug("Refresh already in progress, skipping")
            return False

        self._refreshing = True
        try:
            mints = list(self._tokens)
            await asyncio.gather(*(self._cache.invalidate(mint) for mint in mints))
            logger.info("Invalidated %d tokens", len(mints))
        finally:
            self._refreshing = False
        return True
