"""Weekly snapshots, week-over-week comparison and trend series."""

from datetime import datetime, timezone

from ai_visibility.schemas.config import BrandConfig
from ai_visibility.schemas.query import Platform, QueryResult
from ai_visibility.schemas.snapshot import (
    ComparisonResult,
    CompetitorSnapshotMetric,
    HistoricalSnapshot,
    MetricComparison,
    PlatformSnapshotMetric,
    SnapshotMetrics,
    TrendData,
)
from ai_visibility.services.competitor_tracking import get_all_metrics
from ai_visibility.services.metrics_calculator import (
    calculate_avg_sentiment,
    calculate_competitor_rank,
    calculate_overall_visibility,
    calculate_platform_metrics,
    calculate_total_mentions,
    trend_of,
)
from ai_visibility.storage.snapshot_store import iso_week


def create_snapshot(results: list[QueryResult], brand: BrandConfig, now: datetime | None = None) -> HistoricalSnapshot:
    """Aggregate *results* into a snapshot stamped with the current ISO week."""
    now = now or datetime.now(timezone.utc)
    all_metrics = get_all_metrics(brand, results)

    platform_metrics = []
    for platform in Platform:
        metrics = calculate_platform_metrics(results, platform)
        platform_metrics.append(
            PlatformSnapshotMetric(
                platform=platform.value,
                visibility=metrics.visibility,
                mentions=metrics.mentions,
                sentiment=metrics.sentiment,
            )
        )

    return HistoricalSnapshot(
        id=f"snapshot-{now.isoformat()}",
        timestamp=now,
        date=now.date().isoformat(),
        iso_week=iso_week(now),
        metrics=SnapshotMetrics(
            overall_visibility=calculate_overall_visibility(results),
            total_mentions=calculate_total_mentions(results),
            avg_sentiment=calculate_avg_sentiment(results),
            competitor_rank=calculate_competitor_rank(all_metrics),
            total_queries=len(results),
        ),
        platform_metrics=platform_metrics,
        competitor_metrics=[
            CompetitorSnapshotMetric(name=m.name, visibility=m.visibility, mentions=m.mentions, sentiment=m.sentiment)
            for m in all_metrics
        ],
    )


def _compare(current: int, previous: int, inverted: bool = False) -> MetricComparison:
    return MetricComparison(
        current=current,
        previous=previous,
        change=current - previous,
        trend=trend_of(previous, current) if inverted else trend_of(current, previous),
    )


def _unchanged(current: int) -> MetricComparison:
    return MetricComparison(current=current, previous=0, change=0, trend="stable")


def compare_with_previous(
    results: list[QueryResult],
    brand: BrandConfig,
    baseline: HistoricalSnapshot | None,
) -> ComparisonResult:
    """Current metrics against *baseline*.

    Competitor rank is inverted: a numerically lower rank trends "up".
    """
    current = create_snapshot(results, brand).metrics

    if baseline is None:
        return ComparisonResult(
            overall_visibility=_unchanged(current.overall_visibility),
            total_mentions=_unchanged(current.total_mentions),
            avg_sentiment=_unchanged(current.avg_sentiment),
            competitor_rank=_unchanged(current.competitor_rank),
            has_comparison=False,
        )

    previous = baseline.metrics
    return ComparisonResult(
        overall_visibility=_compare(current.overall_visibility, previous.overall_visibility),
        total_mentions=_compare(current.total_mentions, previous.total_mentions),
        avg_sentiment=_compare(current.avg_sentiment, previous.avg_sentiment),
        competitor_rank=_compare(current.competitor_rank, previous.competitor_rank, inverted=True),
        has_comparison=True,
    )


def get_trend_data(snapshots: list[HistoricalSnapshot]) -> TrendData:
    """Chart series from *snapshots*, in the order given (newest first from the store)."""

    def platform_series(platform: Platform) -> list[int]:
        series = []
        for snapshot in snapshots:
            metric = next((p for p in snapshot.platform_metrics if p.platform == platform.value), None)
            series.append(metric.visibility if metric else 0)
        return series

    return TrendData(
        dates=[s.date for s in snapshots],
        visibility=[s.metrics.overall_visibility for s in snapshots],
        mentions=[s.metrics.total_mentions for s in snapshots],
        sentiment=[s.metrics.avg_sentiment for s in snapshots],
        rank=[s.metrics.competitor_rank for s in snapshots],
        platform_visibility={platform.value: platform_series(platform) for platform in Platform},
    )
