from typing import List

from fastapi import APIRouter, Depends, Query
from shortlink_app.schemas.analytics import ClickAnalytics, GlobalStats, URLAnalytics
from shortlink_app.services.analytics_service import AnalyticsService
from shortlink_app.dependencies import get_analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


# Admin routes are declared first so "admin" is not taken as an identifier
@router.get("/admin/recent-activity", response_model=List[ClickAnalytics])
async def get_recent_activity(
    limit: int = Query(10, ge=1, le=100),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Recent clicks across all URLs"""
    return await analytics_service.get_recent_activity(limit)


@router.get("/admin/global-stats", response_model=GlobalStats)
async def get_global_stats(
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Totals and the top URLs by clicks"""
    return await analytics_service.get_global_stats()


@router.get("/{identifier}", response_model=URLAnalytics)
async def get_url_analytics(
    identifier: str,
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Click statistics, daily trend and top referrers for one short URL"""
    return await analytics_service.get_url_analytics(identifier)
