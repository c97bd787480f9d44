"""Cache invalidation protocol."""
from typing import Hashable, Protocol


class Invalidator(Protocol):
    """Anything that can mark a cached key stale."""

    async def invalidate(self, key: Hashable) -> None: ...
