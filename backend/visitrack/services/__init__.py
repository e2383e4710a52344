"""Service layer for business logic."""

from visitrack.services.analytics_service import AnalyticsService
from visitrack.services.auth_service import AuthErrorKind, AuthResult, SessionAuthenticator
from visitrack.services.identity_provider import IdentityProviderClient, get_identity_client
from visitrack.services.notification_service import NotificationService, get_notification_service
from visitrack.services.user_service import UserService

__all__ = [
    "AnalyticsService",
    "AuthErrorKind",
    "AuthResult",
    "SessionAuthenticator",
    "IdentityProviderClient",
    "get_identity_client",
    "NotificationService",
    "get_notification_service",
    "UserService",
]
