"""Visibility metrics API: KPIs, per-platform, per-competitor and trends."""

from fastapi import APIRouter, Depends, Query

from ai_visibility.core.dependencies import get_metrics_service, get_snapshot_store
from ai_visibility.schemas.metrics import CompetitorMetrics, KpiData, PlatformData
from ai_visibility.schemas.snapshot import ComparisonResult, HistoricalSnapshot, TrendData
from ai_visibility.services.metrics_service import MetricsService
from ai_visibility.storage.snapshot_store import SnapshotStore

router = APIRouter(prefix="/metrics", tags=["metrics"])

_CRAWL = Query(None, description="Limit to one crawl (default: all stored results)")


@router.get("/kpis", response_model=KpiData)
async def get_kpis(crawl_id: str | None = _CRAWL, service: MetricsService = Depends(get_metrics_service)):
    return await service.kpi_data(crawl_id)


@router.get("/platforms", response_model=list[PlatformData])
async def get_platforms(crawl_id: str | None = _CRAWL, service: MetricsService = Depends(get_metrics_service)):
    return await service.platform_data(crawl_id)


@router.get("/competitors", response_model=list[CompetitorMetrics])
async def get_competitors(crawl_id: str | None = _CRAWL, service: MetricsService = Depends(get_metrics_service)):
    return await service.competitor_data(crawl_id)


@router.get("/comparison", response_model=ComparisonResult)
async def get_comparison(crawl_id: str | None = _CRAWL, service: MetricsService = Depends(get_metrics_service)):
    return await service.comparison(crawl_id)


@router.get("/trends", response_model=TrendData)
async def get_trends(
    weeks: int = Query(12, ge=1, le=52),
    service: MetricsService = Depends(get_metrics_service),
):
    return await service.trend_data(weeks)


@router.get("/snapshots", response_model=list[HistoricalSnapshot])
async def list_snapshots(store: SnapshotStore = Depends(get_snapshot_store)):
    return await store.load_all_snapshots()
