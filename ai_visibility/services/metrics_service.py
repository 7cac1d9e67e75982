"""Store-backed views over the metrics functions.

Metrics are always computed on demand from the flat result store; deltas
are taken against the newest snapshot from an earlier ISO week, so a
snapshot written earlier this week never serves as its own baseline.
"""

from datetime import datetime, timezone

from ai_visibility.schemas.metrics import CompetitorMetrics, KpiData, PlatformData
from ai_visibility.schemas.query import QueryResult
from ai_visibility.schemas.snapshot import ComparisonResult, HistoricalSnapshot, TrendData
from ai_visibility.services.competitor_tracking import get_all_metrics
from ai_visibility.services.historical_tracking import compare_with_previous, get_trend_data
from ai_visibility.services.metrics_calculator import get_kpi_data, get_platform_data
from ai_visibility.storage.config_store import ConfigStore
from ai_visibility.storage.crawl_store import CrawlStore
from ai_visibility.storage.result_store import ResultStore
from ai_visibility.storage.snapshot_store import SnapshotStore, iso_week


class MetricsService:
    def __init__(
        self,
        config_store: ConfigStore,
        result_store: ResultStore,
        crawl_store: CrawlStore,
        snapshot_store: SnapshotStore,
    ):
        self.config_store = config_store
        self.result_store = result_store
        self.crawl_store = crawl_store
        self.snapshot_store = snapshot_store

    async def results(self, crawl_id: str | None = None) -> list[QueryResult]:
        """One crawl's results, or the whole flat result store."""
        if crawl_id:
            return await self.crawl_store.get_crawl_results(crawl_id)
        return await self.result_store.load_query_results()

    async def baseline(self) -> HistoricalSnapshot | None:
        return await self.snapshot_store.get_comparison_baseline(iso_week(datetime.now(timezone.utc)))

    async def comparison(self, crawl_id: str | None = None) -> ComparisonResult:
        config = await self.config_store.load()
        return compare_with_previous(await self.results(crawl_id), config.brand, await self.baseline())

    async def kpi_data(self, crawl_id: str | None = None) -> KpiData:
        results = await self.results(crawl_id)
        config = await self.config_store.load()
        return get_kpi_data(results, compare_with_previous(results, config.brand, await self.baseline()))

    async def platform_data(self, crawl_id: str | None = None) -> list[PlatformData]:
        return get_platform_data(await self.results(crawl_id), await self.baseline())

    async def competitor_data(self, crawl_id: str | None = None) -> list[CompetitorMetrics]:
        config = await self.config_store.load()
        return get_all_metrics(config.brand, await self.results(crawl_id), baseline=await self.baseline())

    async def trend_data(self, weeks: int = 12) -> TrendData:
        return get_trend_data(await self.snapshot_store.get_last_n_weeks(weeks))
