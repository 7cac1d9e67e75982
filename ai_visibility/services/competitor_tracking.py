"""Per-entity visibility for the user's brand and the tracked competitors."""

import re

from ai_visibility.analysis.competitors import COMPETITORS, CompetitorConfig
from ai_visibility.schemas.config import BrandConfig
from ai_visibility.schemas.metrics import CompetitorMetrics
from ai_visibility.schemas.query import QueryResult
from ai_visibility.schemas.snapshot import HistoricalSnapshot
from ai_visibility.services.metrics_calculator import (
    SENTIMENT_SCORES,
    calculate_avg_sentiment,
    calculate_competitor_rank,
    calculate_overall_visibility,
    calculate_total_mentions,
    round_half_up,
    visibility_score,
)

# Sentiment reported for a competitor that is never mentioned
NEUTRAL_SCORE = 50


def _slug(name: str) -> str:
    return re.sub(r"\s+", "-", name.lower())


def _growth(name: str, visibility: int, baseline: HistoricalSnapshot | None) -> int:
    if not baseline:
        return 0
    previous = next((c for c in baseline.competitor_metrics if c.name == name), None)
    return visibility - previous.visibility if previous else 0


def calculate_competitor_metrics(
    competitor: CompetitorConfig,
    results: list[QueryResult],
    baseline: HistoricalSnapshot | None = None,
) -> CompetitorMetrics:
    """Visibility of one competitor across *results*.

    A result counts for the competitor when its ``competitor_mentions``
    lists the competitor's name. No position is recorded for competitors,
    so the position part of the score always uses the default position.
    """
    subset = [r for r in results if competitor.name in r.competitor_mentions]
    visibility = round_half_up(visibility_score(len(subset), len(results), [None] * len(subset)))
    scores = [SENTIMENT_SCORES[r.sentiment] for r in subset]
    sentiment = round_half_up(sum(scores) / len(scores)) if scores else NEUTRAL_SCORE

    return CompetitorMetrics(
        id=_slug(competitor.name),
        name=competitor.name,
        visibility=visibility,
        mentions=len(subset),
        sentiment=sentiment,
        growth=_growth(competitor.name, visibility, baseline),
        is_user=False,
    )


def get_brand_metrics(
    brand: BrandConfig,
    results: list[QueryResult],
    baseline: HistoricalSnapshot | None = None,
) -> CompetitorMetrics:
    """The user's brand scored like a competitor; equals the overall metrics."""
    visibility = calculate_overall_visibility(results)
    return CompetitorMetrics(
        id=_slug(brand.name),
        name=brand.name,
        visibility=visibility,
        mentions=calculate_total_mentions(results),
        sentiment=calculate_avg_sentiment(results),
        growth=_growth(brand.name, visibility, baseline),
        is_user=True,
    )


def get_all_competitor_metrics(
    results: list[QueryResult],
    competitors: tuple[CompetitorConfig, ...] | list[CompetitorConfig] = COMPETITORS,
    baseline: HistoricalSnapshot | None = None,
) -> list[CompetitorMetrics]:
    return [calculate_competitor_metrics(c, results, baseline) for c in competitors]


def get_all_metrics(
    brand: BrandConfig,
    results: list[QueryResult],
    competitors: tuple[CompetitorConfig, ...] | list[CompetitorConfig] = COMPETITORS,
    baseline: HistoricalSnapshot | None = None,
) -> list[CompetitorMetrics]:
    """Brand plus competitors, sorted by visibility descending (brand first on ties)."""
    entities = [get_brand_metrics(brand, results, baseline), *get_all_competitor_metrics(results, competitors, baseline)]
    return sorted(entities, key=lambda m: m.visibility, reverse=True)


def competitor_rank(
    brand: BrandConfig,
    results: list[QueryResult],
    competitors: tuple[CompetitorConfig, ...] | list[CompetitorConfig] = COMPETITORS,
) -> int:
    return calculate_competitor_rank(get_all_metrics(brand, results, competitors))
