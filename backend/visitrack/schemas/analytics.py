from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# Tracking payloads (sent by the tracked site)
class SessionCreate(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=64)
    user_agent: Optional[str] = None
    ip_address: Optional[str] = Field(None, max_length=45)
    country: Optional[str] = Field(None, max_length=2)
    city: Optional[str] = Field(None, max_length=100)
    device: Optional[str] = Field(None, max_length=50)
    browser: Optional[str] = Field(None, max_length=50)
    os: Optional[str] = Field(None, max_length=50)
    referrer: Optional[str] = None
    landing_page: Optional[str] = None


class PageviewCreate(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=64)
    path: str
    title: Optional[str] = None
    referrer: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0, description="Seconds spent on the page")


class EventCreate(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=64)
    event_type: str = Field(..., max_length=50)
    event_name: Optional[str] = Field(None, max_length=100)
    element_id: Optional[str] = Field(None, max_length=100)
    element_class: Optional[str] = None
    element_text: Optional[str] = None
    path: str
    metadata: Optional[str] = Field(None, description="JSON encoded event details")


class HeatmapCreate(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=64)
    path: str
    event_type: str = Field(..., max_length=20)
    x: Optional[int] = None
    y: Optional[int] = None
    scroll_depth: Optional[int] = None
    viewport_width: Optional[int] = None
    viewport_height: Optional[int] = None


class TrackResponse(BaseModel):
    success: bool = True


# Dashboard responses
class AnalyticsSummary(BaseModel):
    total_sessions: int
    total_pageviews: int
    total_events: int


class TopPage(BaseModel):
    path: str
    views: int


class HeatmapPoint(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: str
    path: str
    event_type: str
    x: Optional[int] = None
    y: Optional[int] = None
    scroll_depth: Optional[int] = None
    viewport_width: Optional[int] = None
    viewport_height: Optional[int] = None
    created_at: datetime


class SessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: str
    user_id: Optional[int] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    device: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    referrer: Optional[str] = None
    landing_page: Optional[str] = None
    created_at: datetime
    last_activity: datetime


class DeviceCount(BaseModel):
    device: Optional[str]
    count: int


class BrowserCount(BaseModel):
    browser: Optional[str]
    count: int


class ReturningVisitorStats(BaseModel):
    returning_visitors: int
    new_visitors: int


class UTMPerformance(BaseModel):
    campaign: Optional[str] = None
    source: Optional[str] = None
    medium: Optional[str] = None
    sessions: int


class TimeOnPageBucket(BaseModel):
    time_range: str
    count: int


class EngagementMilestone(BaseModel):
    milestone: int
    user_count: int
