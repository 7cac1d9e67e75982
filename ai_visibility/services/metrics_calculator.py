"""Visibility metrics over a set of query results.

All functions here are pure: they take results (and, for deltas, an
already-computed comparison or baseline snapshot) and return numbers.
Scores are integers in 0..100, rounded half-up.
"""

import math

from ai_visibility.schemas.metrics import CompetitorMetrics, KpiData, KpiValue, PlatformData, PlatformMetrics
from ai_visibility.schemas.query import Platform, QueryResult, Sentiment
from ai_visibility.schemas.snapshot import ComparisonResult, HistoricalSnapshot, Trend

SENTIMENT_SCORES = {
    Sentiment.POSITIVE: 80,
    Sentiment.NEUTRAL: 50,
    Sentiment.NEGATIVE: 30,
}

# Assumed position when a mention has none, or when nothing is mentioned
MISSING_POSITION = 10


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def trend_of(current: float, previous: float) -> Trend:
    if current > previous:
        return "up"
    if current < previous:
        return "down"
    return "stable"


def visibility_score(mentioned_count: int, total: int, positions: list[int | None]) -> float:
    """Unrounded visibility: 60% mention rate, 40% position score."""
    if total == 0:
        return 0.0
    mention_rate = mentioned_count / total * 100
    if positions:
        avg_position = sum(p or MISSING_POSITION for p in positions) / len(positions)
    else:
        avg_position = MISSING_POSITION
    position_score = max(0.0, 100 - (avg_position - 1) * 10)
    return mention_rate * 0.6 + position_score * 0.4


def calculate_overall_visibility(results: list[QueryResult]) -> int:
    mentioned = [r for r in results if r.mentioned]
    return round_half_up(visibility_score(len(mentioned), len(results), [r.position for r in mentioned]))


def calculate_total_mentions(results: list[QueryResult]) -> int:
    return sum(1 for r in results if r.mentioned)


def calculate_avg_sentiment(results: list[QueryResult]) -> int:
    """Mean sentiment score of mentioned results; 0 when nothing is mentioned."""
    scores = [SENTIMENT_SCORES[r.sentiment] for r in results if r.mentioned]
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))


def calculate_competitor_rank(all_metrics: list[CompetitorMetrics]) -> int:
    """1-indexed rank of the user's brand, by visibility descending.

    The sort is stable, so on equal scores the brand (listed first) wins.
    """
    ranked = sorted(all_metrics, key=lambda m: m.visibility, reverse=True)
    for index, metric in enumerate(ranked):
        if metric.is_user:
            return index + 1
    return 1


def calculate_platform_metrics(results: list[QueryResult], platform: Platform) -> PlatformMetrics:
    platform_results = [r for r in results if r.platform == platform]
    return PlatformMetrics(
        visibility=calculate_overall_visibility(platform_results),
        mentions=calculate_total_mentions(platform_results),
        sentiment=calculate_avg_sentiment(platform_results),
        total=len(platform_results),
    )


def get_platform_data(results: list[QueryResult], baseline: HistoricalSnapshot | None = None) -> list[PlatformData]:
    """Per-platform metrics for all four platforms, with change vs *baseline*."""
    data = []
    for platform in Platform:
        metrics = calculate_platform_metrics(results, platform)
        change = 0
        trend: Trend = "stable"
        if baseline:
            previous = next((p for p in baseline.platform_metrics if p.platform == platform.value), None)
            if previous:
                change = metrics.visibility - previous.visibility
                trend = trend_of(metrics.visibility, previous.visibility)
        data.append(
            PlatformData(
                id=platform.value.lower(),
                name=platform.value,
                visibility=metrics.visibility,
                mentions=metrics.mentions,
                sentiment=metrics.sentiment,
                change=change,
                trend=trend,
            )
        )
    return data


def _vs_last_week(change: int) -> str:
    return f"vs last week: {'+' if change > 0 else ''}{change}"


def get_kpi_data(results: list[QueryResult], comparison: ComparisonResult) -> KpiData:
    """KPI cards: current values from *comparison* plus labels and descriptions."""
    has_comparison = comparison.has_comparison
    rank = comparison.competitor_rank
    if has_comparison:
        arrow = "↓" if rank.change > 0 else "↑" if rank.change < 0 else "→"
        rank_description = f"vs last week: {arrow} {abs(rank.change)}"
    else:
        rank_description = "In your industry category"

    return KpiData(
        overall_visibility=KpiValue(
            value=comparison.overall_visibility.current,
            change=comparison.overall_visibility.change,
            trend=comparison.overall_visibility.trend,
            label="Overall AI Visibility Score",
            description=_vs_last_week(comparison.overall_visibility.change)
            if has_comparison
            else "Across all monitored AI platforms",
        ),
        total_mentions=KpiValue(
            value=comparison.total_mentions.current,
            change=comparison.total_mentions.change,
            trend=comparison.total_mentions.trend,
            label="Total AI Mentions",
            description=_vs_last_week(comparison.total_mentions.change)
            if has_comparison
            else f"From {len(results)} queries",
        ),
        avg_sentiment=KpiValue(
            value=comparison.avg_sentiment.current,
            change=comparison.avg_sentiment.change,
            trend=comparison.avg_sentiment.trend,
            label="Sentiment Score",
            description=_vs_last_week(comparison.avg_sentiment.change)
            if has_comparison
            else "Positive mention rate",
        ),
        competitor_rank=KpiValue(
            value=rank.current,
            change=rank.change,
            trend=rank.trend,
            label="Competitor Ranking",
            description=rank_description,
        ),
        has_comparison=has_comparison,
    )
