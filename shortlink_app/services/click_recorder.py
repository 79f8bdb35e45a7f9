import uuid
from datetime import datetime
from typing import Callable, Optional

from shortlink_app.exceptions import ValidationError
from shortlink_app.schemas.records import ClickEventRecord, UrlRecord, utc_now
from shortlink_app.storage.strategies import UrlStore


class ClickRecorder:
    """
    Records one visit: a ClickEvent row plus a +1 on the record's click_count.

    click_count is a denormalized total so the hot redirect path costs one
    insert and one increment instead of a count over all events. The store
    performs both writes as one unit of work; on failure the error propagates
    and neither write is kept.
    """

    def __init__(self, store: UrlStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def record_click(
        self,
        record: UrlRecord,
        ip_address: str,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
        country_code: Optional[str] = None
    ) -> None:
        if not ip_address:
            raise ValidationError("IP address is required to record a click")

        click = ClickEventRecord(
            id=str(uuid.uuid4()),
            url_id=record.id,
            ip_address=ip_address,
            user_agent=user_agent,
            referrer=referrer,
            country_code=country_code,
            clicked_at=self.clock(),
        )
        self.store.record_click(click)
