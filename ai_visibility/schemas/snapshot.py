from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Trend = Literal["up", "down", "stable"]


class SnapshotMetrics(BaseModel):
    overall_visibility: int
    total_mentions: int
    avg_sentiment: int
    competitor_rank: int
    total_queries: int


class PlatformSnapshotMetric(BaseModel):
    platform: str
    visibility: int
    mentions: int
    sentiment: int


class CompetitorSnapshotMetric(BaseModel):
    name: str
    visibility: int
    mentions: int
    sentiment: int


class HistoricalSnapshot(BaseModel):
    """Weekly aggregate; at most one per ISO week."""

    id: str
    timestamp: datetime
    date: str
    iso_week: str  # YYYY-Www
    metrics: SnapshotMetrics
    platform_metrics: list[PlatformSnapshotMetric] = Field(default_factory=list)
    competitor_metrics: list[CompetitorSnapshotMetric] = Field(default_factory=list)


class MetricComparison(BaseModel):
    current: int
    previous: int
    change: int
    trend: Trend


class ComparisonResult(BaseModel):
    overall_visibility: MetricComparison
    total_mentions: MetricComparison
    avg_sentiment: MetricComparison
    competitor_rank: MetricComparison
    has_comparison: bool


class TrendData(BaseModel):
    dates: list[str]
    visibility: list[int]
    mentions: list[int]
    sentiment: list[int]
    rank: list[int]
    platform_visibility: dict[str, list[int]]
