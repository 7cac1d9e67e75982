"""Weekly snapshot log.

Unlike crawls, snapshots are upserted: saving a snapshot for an ISO week
that already has one replaces it in place. The log is kept newest-first and
capped at ``max_snapshots`` (one year of weekly data by default).
"""

import logging
from datetime import date, datetime, timezone

from ai_visibility.core.config import settings
from ai_visibility.schemas.snapshot import HistoricalSnapshot
from ai_visibility.storage.kv import KeyValueStore, as_utc, timestamp_of

logger = logging.getLogger(__name__)

SNAPSHOTS_KEY = "ai-visibility-historical-snapshots"


def iso_week(day: date | datetime) -> str:
    """ISO-8601 week label ``YYYY-Www`` (week 1 contains the year's first Thursday)."""
    if isinstance(day, datetime):
        day = day.astimezone(timezone.utc).date() if day.tzinfo else day.date()
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


class SnapshotStore:
    def __init__(self, kv: KeyValueStore, max_snapshots: int | None = None):
        self.kv = kv
        self.max_snapshots = max_snapshots or settings.max_snapshots

    async def save_snapshot(self, snapshot: HistoricalSnapshot) -> None:
        """Replace the snapshot for the same ISO week, or append a new one."""
        stored = await self.kv.upsert_in_list(
            SNAPSHOTS_KEY,
            snapshot.model_dump(mode="json"),
            match=lambda existing: existing.get("iso_week") == snapshot.iso_week,
            sort_key=timestamp_of,
            max_items=self.max_snapshots,
        )
        logger.info("Saved snapshot for week %s, total snapshots: %d", snapshot.iso_week, len(stored))

    async def load_all_snapshots(self) -> list[HistoricalSnapshot]:
        raw = await self.kv.get_list(SNAPSHOTS_KEY)
        snapshots = [HistoricalSnapshot.model_validate(item) for item in raw]
        snapshots.sort(key=lambda s: as_utc(s.timestamp), reverse=True)
        return snapshots

    async def get_latest_snapshot(self) -> HistoricalSnapshot | None:
        snapshots = await self.load_all_snapshots()
        return snapshots[0] if snapshots else None

    async def get_previous_snapshot(self) -> HistoricalSnapshot | None:
        """Second-newest snapshot: the prior week's aggregate."""
        snapshots = await self.load_all_snapshots()
        return snapshots[1] if len(snapshots) > 1 else None

    async def get_comparison_baseline(self, current_week: str) -> HistoricalSnapshot | None:
        """Newest snapshot from a week other than *current_week*."""
        for snapshot in await self.load_all_snapshots():
            if snapshot.iso_week != current_week:
                return snapshot
        return None

    async def get_snapshots_in_range(self, start: datetime, end: datetime) -> list[HistoricalSnapshot]:
        start, end = as_utc(start), as_utc(end)
        return [s for s in await self.load_all_snapshots() if start <= as_utc(s.timestamp) <= end]

    async def get_last_n_weeks(self, n: int) -> list[HistoricalSnapshot]:
        return (await self.load_all_snapshots())[:n]

    async def clear_historical_data(self) -> None:
        await self.kv.delete(SNAPSHOTS_KEY)
        logger.info("Cleared all historical snapshots")
