"""Summary statistics over stored portfolio snapshots."""
from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Sequence

from ..models import PortfolioSnapshot, PortfolioStats

logger = logging.getLogger(__name__)

# Look-back windows in days; ``all`` keeps every snapshot.
TIME_RANGES: dict[str, int | None] = {"7d": 7, "30d": 30, "90d": 90, "all": None}


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def filter_by_range(
    snapshots: Sequence[PortfolioSnapshot],
    time_range: str = "all",
    now: datetime | None = None,
) -> list[PortfolioSnapshot]:
    """Snapshots created within the look-back window, order preserved.

    A snapshot is dated by ``created_at``, falling back to ``timestamp``;
    one with no readable date is outside every bounded window.

    Raises:
        ValueError: ``time_range`` is not one of ``TIME_RANGES``.
    """
    if time_range not in TIME_RANGES:
        raise ValueError(
            f"Unknown time range {time_range!r}, expected one of {', '.join(TIME_RANGES)}"
        )

    days = TIME_RANGES[time_range]
    if days is None:
        return list(snapshots)

    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
    kept = []
    for snapshot in snapshots:
        created = _parse_time(snapshot.created_at or snapshot.timestamp)
        if created is None:
            logger.debug("Skipping snapshot %s with unreadable date", snapshot.id)
        elif created >= cutoff:
            kept.append(snapshot)
    return kept


def _change(oldest: float, newest: float) -> tuple[float, float]:
    change = newest - oldest
    return change, (change / oldest * 100 if oldest > 0 else 0.0)


def compute_portfolio_stats(snapshots: Sequence[PortfolioSnapshot]) -> PortfolioStats:
    """Stats for ``snapshots`` ordered newest first, as the store lists them."""
    if not snapshots:
        return PortfolioStats()

    values = [s.total_value for s in snapshots]
    newest, oldest = snapshots[0], snapshots[-1]

    change, change_pct = _change(oldest.total_value, newest.total_value)
    sell_change, sell_change_pct = _change(
        oldest.sell_simulation_value, newest.sell_simulation_value
    )

    average = sum(values) / len(values)
    variance = sum((v - average) ** 2 for v in values) / len(values)

    return PortfolioStats(
        snapshot_count=len(values),
        change=change,
        change_pct=change_pct,
        sell_simulation_change=sell_change,
        sell_simulation_change_pct=sell_change_pct,
        average_value=average,
        max_value=max(values),
        min_value=min(values),
        volatility=math.sqrt(variance),
    )
