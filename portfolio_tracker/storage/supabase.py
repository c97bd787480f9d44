"""Supabase (PostgREST) store for portfolio snapshots."""
from __future__ import annotations

import logging
import ssl
from datetime import datetime
from typing import Any

import aiohttp
import certifi

from ..config import StorageConfig
from ..models import PortfolioSnapshot

logger = logging.getLogger(__name__)


class SnapshotStoreError(RuntimeError):
    """The snapshot table could not be read or written."""


class SupabaseSnapshotStore:
    """Append-only snapshot table accessed through the PostgREST API."""

    def __init__(self, config: StorageConfig) -> None:
        self.base_url = config.supabase_url.rstrip("/")
        self.api_key = config.supabase_key
        self.table = config.table
        self.timeout = config.timeout

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        params: list[tuple[str, str]] | None = None,
        payload: Any = None,
        prefer: str | None = None,
    ) -> Any:
        if not self.base_url or not self.api_key:
            raise SnapshotStoreError("Supabase credentials not configured")

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.request(
                method,
                self.endpoint,
                params=params,
                json=payload,
                headers=self._headers(prefer),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status >= 400:
                    detail = await response.text()
                    raise SnapshotStoreError(
                        f"Supabase {method} failed: HTTP {response.status} {detail}"
                    )
                if response.status == 204:
                    return None
                return await response.json()

    async def insert(self, snapshot: PortfolioSnapshot) -> PortfolioSnapshot:
        """Insert one snapshot and return the stored row."""
        rows = await self._request(
            "POST", payload=[snapshot.to_row()], prefer="return=representation"
        )
        if not rows:
            raise SnapshotStoreError("Supabase insert returned no row")
        saved = PortfolioSnapshot.from_row(rows[0])
        logger.info("Saved portfolio snapshot %s", saved.id)
        return saved

    async def list_recent(self, limit: int = 100) -> list[PortfolioSnapshot]:
        """Most recent snapshots first."""
        rows = await self._request(
            "GET",
            params=[
                ("select", "*"),
                ("order", "created_at.desc"),
                ("limit", str(limit)),
            ],
        )
        return [PortfolioSnapshot.from_row(row) for row in rows or []]

    async def delete(self, snapshot_id: str) -> None:
        await self._request("DELETE", params=[("id", f"eq.{snapshot_id}")])
        logger.info("Deleted portfolio snapshot %s", snapshot_id)

    async def list_between(
        self, start: datetime, end: datetime
    ) -> list[PortfolioSnapshot]:
        """Snapshots created within ``[start, end]``, newest first."""
        rows = await self._request(
            "GET",
            params=[
                ("select", "*"),
                ("created_at", f"gte.{start.isoformat()}"),
                ("created_at", f"lte.{end.isoformat()}"),
                ("order", "created_at.desc"),
            ],
        )
        return [PortfolioSnapshot.from_row(row) for row in rows or []]
