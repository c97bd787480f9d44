"""Snapshot store protocol: append-only portfolio history."""
from datetime import datetime
from typing import Protocol

from ..models import PortfolioSnapshot


class SnapshotStore(Protocol):
    """Abstract interface for persisting portfolio snapshots."""

    async def insert(self, snapshot: PortfolioSnapshot) -> PortfolioSnapshot: ...

    async def list_recent(self, limit: int = 100) -> list[PortfolioSnapshot]: ...

    async def delete(self, snapshot_id: str) -> None: ...

    async def list_between(
        self, start: datetime, end: datetime
    ) -> list[PortfolioSnapshot]: ...
