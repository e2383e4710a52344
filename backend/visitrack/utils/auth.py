import logging
from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from visitrack.database import get_db
from visitrack.models.user import User, UserRole
from visitrack.services.auth_service import AuthErrorKind, SessionAuthenticator
from visitrack.services.identity_provider import IdentityProviderClient, get_identity_client
from visitrack.services.user_service import UserService

logger = logging.getLogger(__name__)

UNAUTHED_ERR_MSG = "Please login (10001)"
NOT_ADMIN_ERR_MSG = "You do not have required permission (10002)"


@dataclass
class RequestContext:
    """Per-request auth state. ``user`` is None for anonymous requests."""

    user: Optional[User] = None


async def get_request_context(
    request: Request,
    db: Annotated[Optional[AsyncSession], Depends(get_db)],
    identity_client: Annotated[IdentityProviderClient, Depends(get_identity_client)],
) -> RequestContext:
    """
    Authenticate the request from its session cookie.

    Every authentication failure, expected or not, yields an anonymous
    context. Endpoints decide for themselves whether a user is required.
    """
    authenticator = SessionAuthenticator(UserService(db), identity_client)

    try:
        result = await authenticator.authenticate(request)
        if db is not None:
            await db.commit()
    except Exception:
        logger.exception("Unexpected error while authenticating request")
        if db is not None:
            await db.rollback()
        return RequestContext()

    if not result.ok:
        if result.error is not AuthErrorKind.no_session:
            logger.debug("Treating request as anonymous: %s (%s)", result.error, result.detail)
        if db is not None:
            await db.rollback()
        return RequestContext()

    return RequestContext(user=result.user)


async def get_current_user_optional(
    context: Annotated[RequestContext, Depends(get_request_context)],
) -> Optional[User]:
    return context.user


async def get_current_user(
    context: Annotated[RequestContext, Depends(get_request_context)],
) -> User:
    if context.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHED_ERR_MSG,
        )
    return context.user


async def get_admin_user(
    context: Annotated[RequestContext, Depends(get_request_context)],
) -> User:
    if context.user is None or context.user.role != UserRole.admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=NOT_ADMIN_ERR_MSG,
        )
    return context.user


# Type aliases for dependency injection
CurrentContext = Annotated[RequestContext, Depends(get_request_context)]
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentUserOptional = Annotated[Optional[User], Depends(get_current_user_optional)]
AdminUser = Annotated[User, Depends(get_admin_user)]
