from pydantic import BaseModel

from ai_visibility.schemas.snapshot import Trend


class CompetitorMetrics(BaseModel):
    id: str
    name: str
    visibility: int  # 0-100
    mentions: int
    sentiment: int  # 0-100
    growth: int  # visibility change vs the comparison snapshot
    is_user: bool = False


class PlatformMetrics(BaseModel):
    visibility: int
    mentions: int
    sentiment: int
    total: int


class PlatformData(BaseModel):
    id: str
    name: str
    visibility: int
    mentions: int
    sentiment: int
    change: int
    trend: Trend


class KpiValue(BaseModel):
    value: int
    change: int
    trend: Trend
    label: str
    description: str


class KpiData(BaseModel):
    overall_visibility: KpiValue
    total_mentions: KpiValue
    avg_sentiment: KpiValue
    competitor_rank: KpiValue
    has_comparison: bool
