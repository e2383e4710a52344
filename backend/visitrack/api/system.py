from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from visitrack.schemas.notification import NotifyOwnerRequest, NotifyOwnerResponse
from visitrack.services.notification_service import (
    NotificationConfigError,
    NotificationService,
    NotificationValidationError,
    get_notification_service,
)
from visitrack.utils.auth import AdminUser

router = APIRouter(prefix="/system", tags=["System"])


@router.post("/notify-owner", response_model=NotifyOwnerResponse)
async def notify_owner(
    data: NotifyOwnerRequest,
    admin: AdminUser,
    notification_service: Annotated[NotificationService, Depends(get_notification_service)],
) -> NotifyOwnerResponse:
    try:
        delivered = await notification_service.notify_owner(data.title, data.content)
    except NotificationValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None
    except NotificationConfigError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        ) from None

    return NotifyOwnerResponse(success=delivered)
