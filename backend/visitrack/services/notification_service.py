import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from visitrack.config import Settings, get_settings

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 1200
CONTENT_MAX_LENGTH = 20000
SEND_NOTIFICATION_PATH = "webdevtoken.v1.WebDevService/SendNotification"


class NotificationValidationError(ValueError):
    pass


class NotificationConfigError(RuntimeError):
    pass


@dataclass
class OwnerNotification:
    title: str
    content: str


def validate_notification(title: Optional[str], content: Optional[str]) -> OwnerNotification:
    if not isinstance(title, str) or not title.strip():
        raise NotificationValidationError("Notification title is required.")
    if not isinstance(content, str) or not content.strip():
        raise NotificationValidationError("Notification content is required.")

    title = title.strip()
    content = content.strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise NotificationValidationError(
            f"Notification title must be at most {TITLE_MAX_LENGTH} characters."
        )
    if len(content) > CONTENT_MAX_LENGTH:
        raise NotificationValidationError(
            f"Notification content must be at most {CONTENT_MAX_LENGTH} characters."
        )
    return OwnerNotification(title=title, content=content)


def build_endpoint_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/{SEND_NOTIFICATION_PATH}"


class NotificationService:
    """Delivers messages to the deployment owner through the notification API."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.api_url = settings.notification_api_url
        self.api_key = settings.notification_api_key
        self.timeout = settings.http_timeout

    async def notify_owner(self, title: Optional[str], content: Optional[str]) -> bool:
        """
        Send a notification to the owner.

        Returns False when the service rejects the message or cannot be
        reached. Invalid input and missing configuration raise.
        """
        notification = validate_notification(title, content)

        if not self.api_url:
            raise NotificationConfigError("Notification service URL is not configured.")
        if not self.api_key:
            raise NotificationConfigError("Notification service API key is not configured.")

        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Connect-Protocol-Version": "1",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    build_endpoint_url(self.api_url),
                    headers=headers,
                    json={"title": notification.title, "content": notification.content},
                )
        except httpx.HTTPError as e:
            logger.warning("Error calling notification service: %s", e)
            return False

        if not response.is_success:
            detail = f": {response.text}" if response.text else ""
            logger.warning(
                "Failed to notify owner (%s %s)%s",
                response.status_code,
                response.reason_phrase,
                detail,
            )
            return False
        return True


_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
