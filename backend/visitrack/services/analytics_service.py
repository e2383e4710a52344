import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from visitrack.database import StoreUnavailableError
from visitrack.models.analytics import (
    AnalyticsEvent,
    AnalyticsHeatmap,
    AnalyticsPageview,
    AnalyticsSession,
)
from visitrack.schemas.analytics import (
    AnalyticsSummary,
    BrowserCount,
    DeviceCount,
    EngagementMilestone,
    EventCreate,
    HeatmapCreate,
    PageviewCreate,
    ReturningVisitorStats,
    SessionCreate,
    TimeOnPageBucket,
    TopPage,
    UTMPerformance,
)

logger = logging.getLogger(__name__)

HEATMAP_POINT_LIMIT = 10000

# (label, upper bound in seconds, exclusive)
TIME_ON_PAGE_BUCKETS = [
    ("0-10s", 10),
    ("10-30s", 30),
    ("30-60s", 60),
    ("1-2min", 120),
    ("2-5min", 300),
    ("5min+", None),
]


def bucket_durations(durations: list[Optional[int]]) -> list[TimeOnPageBucket]:
    counts = {label: 0 for label, _ in TIME_ON_PAGE_BUCKETS}
    for duration in durations:
        seconds = duration or 0
        for label, upper in TIME_ON_PAGE_BUCKETS:
            if upper is None or seconds < upper:
                counts[label] += 1
                break
    return [TimeOnPageBucket(time_range=label, count=count) for label, count in counts.items()]


def _load_metadata(raw: Optional[str]) -> dict[str, Any]:
    try:
        data = json.loads(raw or "{}")
    except (TypeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def parse_utm_metadata(raw: Optional[str], sessions: int) -> UTMPerformance:
    metadata = _load_metadata(raw)
    return UTMPerformance(
        campaign=metadata.get("campaign") or None,
        source=metadata.get("source") or None,
        medium=metadata.get("medium") or None,
        sessions=sessions,
    )


def parse_milestone_metadata(raw: Optional[str], count: int) -> EngagementMilestone:
    seconds = _load_metadata(raw).get("seconds") or 0
    try:
        milestone = int(seconds)
    except (TypeError, ValueError):
        milestone = 0
    return EngagementMilestone(milestone=milestone, user_count=count)


def _date_range(column, start_date: Optional[datetime], end_date: Optional[datetime]) -> list:
    conditions = []
    if start_date:
        conditions.append(column >= start_date)
    if end_date:
        conditions.append(column <= end_date)
    return conditions


class AnalyticsService:
    """Visitor tracking writes and dashboard aggregates."""

    def __init__(self, db: Optional[AsyncSession]):
        if db is None:
            raise StoreUnavailableError("Database not available")
        self.db = db

    # === Tracking ===

    async def create_session(self, data: SessionCreate) -> AnalyticsSession:
        session = AnalyticsSession(**data.model_dump())
        self.db.add(session)
        await self.db.flush()
        return session

    async def update_session_activity(self, session_id: str) -> None:
        await self.db.execute(
            update(AnalyticsSession)
            .where(AnalyticsSession.session_id == session_id)
            .values(last_activity=datetime.now(timezone.utc))
        )

    async def track_pageview(self, data: PageviewCreate) -> None:
        self.db.add(AnalyticsPageview(**data.model_dump()))
        await self.db.flush()
        await self.update_session_activity(data.session_id)

    async def track_event(self, data: EventCreate) -> None:
        values = data.model_dump(exclude={"metadata"})
        self.db.add(AnalyticsEvent(**values, event_metadata=data.metadata))
        await self.db.flush()
        await self.update_session_activity(data.session_id)

    async def track_heatmap(self, data: HeatmapCreate) -> None:
        self.db.add(AnalyticsHeatmap(**data.model_dump()))
        await self.db.flush()

    # === Dashboard ===

    async def _count(self, model, conditions: list) -> int:
        query = select(func.count()).select_from(model)
        if conditions:
            query = query.where(and_(*conditions))
        result = await self.db.execute(query)
        return int(result.scalar() or 0)

    async def get_summary(
        self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None
    ) -> AnalyticsSummary:
        # The range only applies when both ends are given
        bounded = start_date is not None and end_date is not None

        def in_range(column) -> list:
            return _date_range(column, start_date, end_date) if bounded else []

        return AnalyticsSummary(
            total_sessions=await self._count(
                AnalyticsSession, in_range(AnalyticsSession.created_at)
            ),
            total_pageviews=await self._count(
                AnalyticsPageview, in_range(AnalyticsPageview.created_at)
            ),
            total_events=await self._count(AnalyticsEvent, in_range(AnalyticsEvent.created_at)),
        )

    async def get_top_pages(
        self,
        limit: int = 10,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[TopPage]:
        views = func.count(AnalyticsPageview.id).label("views")
        query = select(AnalyticsPageview.path, views)
        if start_date and end_date:
            query = query.where(
                and_(*_date_range(AnalyticsPageview.created_at, start_date, end_date))
            )
        query = query.group_by(AnalyticsPageview.path).order_by(views.desc()).limit(limit)

        result = await self.db.execute(query)
        return [TopPage(path=row.path, views=row.views) for row in result.all()]

    async def get_heatmap_data(self, path: str, event_type: str = "click") -> list[AnalyticsHeatmap]:
        result = await self.db.execute(
            select(AnalyticsHeatmap)
            .where(and_(AnalyticsHeatmap.path == path, AnalyticsHeatmap.event_type == event_type))
            .limit(HEATMAP_POINT_LIMIT)
        )
        return list(result.scalars().all())

    async def get_recent_sessions(self, limit: int = 50) -> list[AnalyticsSession]:
        result = await self.db.execute(
            select(AnalyticsSession).order_by(AnalyticsSession.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def _session_breakdown(self, column, start_date, end_date) -> list:
        count = func.count(AnalyticsSession.id).label("count")
        query = select(column, count)
        if start_date and end_date:
            query = query.where(
                and_(*_date_range(AnalyticsSession.created_at, start_date, end_date))
            )
        result = await self.db.execute(query.group_by(column))
        return result.all()

    async def get_device_stats(
        self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None
    ) -> list[DeviceCount]:
        rows = await self._session_breakdown(AnalyticsSession.device, start_date, end_date)
        return [DeviceCount(device=row.device, count=row.count) for row in rows]

    async def get_browser_stats(
        self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None
    ) -> list[BrowserCount]:
        rows = await self._session_breakdown(AnalyticsSession.browser, start_date, end_date)
        return [BrowserCount(browser=row.browser, count=row.count) for row in rows]

    async def get_returning_visitor_stats(
        self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None
    ) -> ReturningVisitorStats:
        returning = await self._count(
            AnalyticsEvent,
            [
                AnalyticsEvent.event_type == "returning_visitor",
                *_date_range(AnalyticsEvent.created_at, start_date, end_date),
            ],
        )
        total = await self._count(
            AnalyticsSession, _date_range(AnalyticsSession.created_at, start_date, end_date)
        )
        return ReturningVisitorStats(returning_visitors=returning, new_visitors=total - returning)

    async def _grouped_event_metadata(self, event_type: str, start_date, end_date) -> list:
        count = func.count(AnalyticsEvent.id).label("count")
        query = (
            select(AnalyticsEvent.event_metadata.label("event_metadata"), count)
            .where(
                and_(
                    AnalyticsEvent.event_type == event_type,
                    *_date_range(AnalyticsEvent.created_at, start_date, end_date),
                )
            )
            .group_by(AnalyticsEvent.event_metadata)
        )
        result = await self.db.execute(query)
        return result.all()

    async def get_utm_performance(
        self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None
    ) -> list[UTMPerformance]:
        rows = await self._grouped_event_metadata("utm_tracking", start_date, end_date)
        return [parse_utm_metadata(row.event_metadata, int(row.count)) for row in rows]

    async def get_time_on_page_stats(
        self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None
    ) -> list[TimeOnPageBucket]:
        query = select(AnalyticsPageview.duration).where(
            and_(
                AnalyticsPageview.duration.isnot(None),
                *_date_range(AnalyticsPageview.created_at, start_date, end_date),
            )
        )
        result = await self.db.execute(query)
        return bucket_durations(list(result.scalars().all()))

    async def get_engagement_milestones(
        self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None
    ) -> list[EngagementMilestone]:
        rows = await self._grouped_event_metadata("time_milestone", start_date, end_date)
        milestones = [parse_milestone_metadata(row.event_metadata, int(row.count)) for row in rows]
        return sorted(milestones, key=lambda m: m.milestone)
