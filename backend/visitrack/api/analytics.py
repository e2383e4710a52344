"""
Visitor analytics endpoints.

Tracking endpoints are public so the tracked site can post to them. Every
reporting endpoint requires an admin session; dashboard clients calling them
without one receive 403.
"""

from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from visitrack.database import get_db
from visitrack.schemas.analytics import (
    AnalyticsSummary,
    BrowserCount,
    DeviceCount,
    EngagementMilestone,
    EventCreate,
    HeatmapCreate,
    HeatmapPoint,
    PageviewCreate,
    ReturningVisitorStats,
    SessionCreate,
    SessionResponse,
    TimeOnPageBucket,
    TopPage,
    TrackResponse,
    UTMPerformance,
)
from visitrack.services.analytics_service import AnalyticsService
from visitrack.utils.auth import AdminUser

router = APIRouter(prefix="/analytics", tags=["Analytics"])

Db = Annotated[Optional[AsyncSession], Depends(get_db)]
StartDate = Annotated[Optional[datetime], Query(description="Range start (inclusive)")]
EndDate = Annotated[Optional[datetime], Query(description="Range end (inclusive)")]


# === Tracking (public, called by the tracked site) ===


@router.post("/sessions", response_model=TrackResponse)
async def create_session(data: SessionCreate, db: Db) -> TrackResponse:
    await AnalyticsService(db).create_session(data)
    await db.commit()
    return TrackResponse()


@router.post("/pageviews", response_model=TrackResponse)
async def track_pageview(data: PageviewCreate, db: Db) -> TrackResponse:
    await AnalyticsService(db).track_pageview(data)
    await db.commit()
    return TrackResponse()


@router.post("/events", response_model=TrackResponse)
async def track_event(data: EventCreate, db: Db) -> TrackResponse:
    await AnalyticsService(db).track_event(data)
    await db.commit()
    return TrackResponse()


@router.post("/heatmap", response_model=TrackResponse)
async def track_heatmap(data: HeatmapCreate, db: Db) -> TrackResponse:
    await AnalyticsService(db).track_heatmap(data)
    await db.commit()
    return TrackResponse()


# === Dashboard (admin only) ===


@router.get("/summary", response_model=AnalyticsSummary)
async def get_summary(
    db: Db, admin: AdminUser, start_date: StartDate = None, end_date: EndDate = None
) -> AnalyticsSummary:
    return await AnalyticsService(db).get_summary(start_date, end_date)


@router.get("/top-pages", response_model=list[TopPage])
async def get_top_pages(
    db: Db,
    admin: AdminUser,
    limit: int = Query(10, ge=1, le=1000),
    start_date: StartDate = None,
    end_date: EndDate = None,
) -> list[TopPage]:
    return await AnalyticsService(db).get_top_pages(limit, start_date, end_date)


@router.get("/heatmap", response_model=list[HeatmapPoint])
async def get_heatmap_data(
    db: Db,
    admin: AdminUser,
    path: str = Query(...),
    event_type: str = Query("click"),
) -> list[HeatmapPoint]:
    points = await AnalyticsService(db).get_heatmap_data(path, event_type)
    return [HeatmapPoint.model_validate(point) for point in points]


@router.get("/sessions/recent", response_model=list[SessionResponse])
async def get_recent_sessions(
    db: Db,
    admin: AdminUser,
    limit: int = Query(50, ge=1, le=1000),
) -> list[SessionResponse]:
    sessions = await AnalyticsService(db).get_recent_sessions(limit)
    return [SessionResponse.model_validate(session) for session in sessions]


@router.get("/devices", response_model=list[DeviceCount])
async def get_device_stats(
    db: Db, admin: AdminUser, start_date: StartDate = None, end_date: EndDate = None
) -> list[DeviceCount]:
    return await AnalyticsService(db).get_device_stats(start_date, end_date)


@router.get("/browsers", response_model=list[BrowserCount])
async def get_browser_stats(
    db: Db, admin: AdminUser, start_date: StartDate = None, end_date: EndDate = None
) -> list[BrowserCount]:
    return await AnalyticsService(db).get_browser_stats(start_date, end_date)


@router.get("/returning-visitors", response_model=ReturningVisitorStats)
async def get_returning_visitor_stats(
    db: Db, admin: AdminUser, start_date: StartDate = None, end_date: EndDate = None
) -> ReturningVisitorStats:
    return await AnalyticsService(db).get_returning_visitor_stats(start_date, end_date)


@router.get("/utm", response_model=list[UTMPerformance])
async def get_utm_performance(
    db: Db, admin: AdminUser, start_date: StartDate = None, end_date: EndDate = None
) -> list[UTMPerformance]:
    return await AnalyticsService(db).get_utm_performance(start_date, end_date)


@router.get("/time-on-page", response_model=list[TimeOnPageBucket])
async def get_time_on_page_stats(
    db: Db, admin: AdminUser, start_date: StartDate = None, end_date: EndDate = None
) -> list[TimeOnPageBucket]:
    return await AnalyticsService(db).get_time_on_page_stats(start_date, end_date)


@router.get("/milestones", response_model=list[EngagementMilestone])
async def get_engagement_milestones(
    db: Db, admin: AdminUser, start_date: StartDate = None, end_date: EndDate = None
) -> list[EngagementMilestone]:
    return await AnalyticsService(db).get_engagement_milestones(start_date, end_date)
