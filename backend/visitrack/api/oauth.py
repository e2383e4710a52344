import logging
from datetime import datetime, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from visitrack.database import get_db
from visitrack.schemas.user import UserUpsert
from visitrack.services.identity_provider import IdentityProviderClient, get_identity_client
from visitrack.services.user_service import UserService
from visitrack.utils.cookies import SESSION_MAX_AGE, set_session_cookie
from visitrack.utils.session_token import ONE_YEAR, create_session_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oauth", tags=["OAuth"])


@router.get("/callback")
async def oauth_callback(
    request: Request,
    db: Annotated[Optional[AsyncSession], Depends(get_db)],
    identity_client: Annotated[IdentityProviderClient, Depends(get_identity_client)],
    code: Optional[str] = None,
    state: Optional[str] = None,
) -> Response:
    if not code or not state:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "code and state are required"},
        )

    try:
        token_response = await identity_client.exchange_code(code, state)
        identity = await identity_client.get_user_info(token_response.access_token)

        if not identity.open_id:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "openId missing from user info"},
            )

        user_service = UserService(db)
        await user_service.upsert(
            UserUpsert(
                open_id=identity.open_id,
                name=identity.name or None,
                email=identity.email,
                login_method=identity.login_method or identity.platform,
                last_signed_in=datetime.now(timezone.utc),
            )
        )
        if db is not None:
            await db.commit()

        session_token = create_session_token(identity.open_id, name=identity.name or "", ttl=ONE_YEAR)
    except Exception:
        logger.exception("OAuth callback failed")
        if db is not None:
            await db.rollback()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "OAuth callback failed"},
        )

    response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    set_session_cookie(response, request, session_token, max_age=SESSION_MAX_AGE)
    return response
