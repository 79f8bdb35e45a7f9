from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class ClickAnalytics(BaseModel):
    ip_address: str = Field(..., description="Masked IP address, e.g. 192.168.1.***")
    clicked_at: datetime
    country_code: Optional[str] = None
    referrer: Optional[str] = None


class DailyStat(BaseModel):
    date: str = Field(..., description="UTC date, YYYY-MM-DD")
    clicks: int


class ReferrerStat(BaseModel):
    domain: str
    clicks: int


class AnalyticsUrlInfo(BaseModel):
    id: str
    original_url: str
    short_code: str
    alias: Optional[str] = None
    created_at: datetime


class URLAnalytics(BaseModel):
    url: AnalyticsUrlInfo
    total_clicks: int
    unique_clicks: int
    recent_clicks: List[ClickAnalytics]
    daily_stats: List[DailyStat]
    top_referrers: List[ReferrerStat]


class TopUrl(BaseModel):
    short_code: str
    alias: Optional[str] = None
    original_url: str
    clicks: int


class GlobalStats(BaseModel):
    total_urls: int
    total_clicks: int
    unique_visitors: int
    top_urls: List[TopUrl]
