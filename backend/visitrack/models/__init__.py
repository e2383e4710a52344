"""Database models."""

from visitrack.models.analytics import (
    AnalyticsEvent,
    AnalyticsHeatmap,
    AnalyticsPageview,
    AnalyticsSession,
)
from visitrack.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "AnalyticsSession",
    "AnalyticsPageview",
    "AnalyticsEvent",
    "AnalyticsHeatmap",
]
