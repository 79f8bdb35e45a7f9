import ipaddress
from collections import Counter
from datetime import datetime, time, timedelta, timezone
from typing import Callable, List
from urllib.parse import urlparse

from shortlink_app.schemas.analytics import (
    AnalyticsUrlInfo,
    ClickAnalytics,
    DailyStat,
    GlobalStats,
    ReferrerStat,
    TopUrl,
    URLAnalytics,
)
from shortlink_app.schemas.records import ClickEventRecord, as_utc, utc_now
from shortlink_app.services.url_service import get_live_record
from shortlink_app.storage.strategies import UrlStore

RECENT_CLICKS_LIMIT = 5
DAILY_STATS_DAYS = 7
TOP_REFERRERS_LIMIT = 5
TOP_URLS_LIMIT = 5
DIRECT_REFERRER = "Direct"


def mask_ip_address(ip_address: str) -> str:
    """Hide the host part: 1.2.3.*** for IPv4, first four groups + ::*** for IPv6"""
    try:
        parsed = ipaddress.ip_address(ip_address)
    except ValueError:
        parsed = None

    if isinstance(parsed, ipaddress.IPv6Address) or (parsed is None and ":" in ip_address):
        groups = parsed.exploded.split(":") if parsed else ip_address.split(":")
        return ":".join(groups[:4]) + "::***"
    return ".".join(ip_address.split(".")[:3]) + ".***"


def referrer_domain(referrer: str) -> str:
    """Host part of a referrer URL; empty or host-less referrers count as direct"""
    return urlparse(referrer).netloc or DIRECT_REFERRER


def _to_click_analytics(click: ClickEventRecord) -> ClickAnalytics:
    return ClickAnalytics(
        ip_address=mask_ip_address(click.ip_address),
        clicked_at=click.clicked_at,
        country_code=click.country_code,
        referrer=click.referrer,
    )


class AnalyticsService:
    """
    Read-only aggregation over click events.

    Aggregates are eventually consistent with the click log; per-URL lookups
    treat expired records as missing, like every other read path.
    """

    def __init__(self, store: UrlStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    async def get_url_analytics(self, identifier: str) -> URLAnalytics:
        """
        Raises:
            NotFound: identifier is missing or expired
        """
        now = self.clock()
        record = get_live_record(self.store, identifier, now)

        recent = self.store.list_clicks(record.id, limit=RECENT_CLICKS_LIMIT)

        return URLAnalytics(
            url=AnalyticsUrlInfo(
                id=record.id,
                original_url=record.original_url,
                short_code=record.short_code,
                alias=record.alias,
                created_at=record.created_at,
            ),
            total_clicks=self.store.count_clicks(record.id),
            unique_clicks=self.store.count_unique_visitors(record.id),
            recent_clicks=[_to_click_analytics(click) for click in recent],
            daily_stats=self._daily_stats(record.id, now),
            top_referrers=self._top_referrers(record.id),
        )

    async def get_recent_activity(self, limit: int = 10) -> List[ClickAnalytics]:
        """Most recent clicks across all URLs"""
        return [_to_click_analytics(click) for click in self.store.list_clicks(limit=limit)]

    async def get_global_stats(self) -> GlobalStats:
        top = self.store.top_urls(TOP_URLS_LIMIT, self.clock())
        return GlobalStats(
            total_urls=self.store.count_urls(),
            total_clicks=self.store.count_clicks(),
            unique_visitors=self.store.count_unique_visitors(),
            top_urls=[
                TopUrl(
                    short_code=record.short_code,
                    alias=record.alias,
                    original_url=record.original_url,
                    clicks=record.click_count,
                )
                for record in top
            ],
        )

    def _daily_stats(self, url_id: str, now: datetime) -> List[DailyStat]:
        """Last DAILY_STATS_DAYS UTC days, oldest first, days without clicks filled with 0"""
        today = as_utc(now).date()
        first_day = today - timedelta(days=DAILY_STATS_DAYS - 1)
        since = datetime.combine(first_day, time.min, tzinfo=timezone.utc)

        counts = self.store.daily_click_counts(url_id, since)

        return [
            DailyStat(date=day.isoformat(), clicks=counts.get(day.isoformat(), 0))
            for day in (first_day + timedelta(days=offset) for offset in range(DAILY_STATS_DAYS))
        ]

    def _top_referrers(self, url_id: str) -> List[ReferrerStat]:
        by_domain = Counter()
        for referrer, clicks in self.store.referrer_counts(url_id).items():
            by_domain[referrer_domain(referrer)] += clicks

        ranked = sorted(by_domain.items(), key=lambda item: (-item[1], item[0]))
        return [
            ReferrerStat(domain=domain, clicks=clicks)
            for domain, clicks in ranked[:TOP_REFERRERS_LIMIT]
        ]
