import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from starlette.requests import HTTPConnection

from visitrack.models.user import User
from visitrack.schemas.user import UserUpsert
from visitrack.services.identity_provider import (
    IdentityProviderClient,
    IdentityProviderResponseError,
)
from visitrack.services.user_service import UserService
from visitrack.utils.cookies import COOKIE_NAME
from visitrack.utils.session_token import verify_session

logger = logging.getLogger(__name__)


class AuthErrorKind(enum.StrEnum):
    no_session = "NoSession"
    invalid_session = "InvalidSession"
    sync_failed = "SyncFailed"
    user_not_found = "UserNotFound"
    store_unavailable = "StoreUnavailable"


@dataclass(frozen=True)
class AuthResult:
    user: Optional[User] = None
    error: Optional[AuthErrorKind] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.user is not None

    @classmethod
    def failure(cls, error: AuthErrorKind, detail: Optional[str] = None) -> "AuthResult":
        return cls(error=error, detail=detail)


class SessionAuthenticator:
    """
    Resolve the user behind a request's session cookie.

    Users already in the store are served without contacting the identity
    provider. A valid token for an unknown user is reconciled by asking the
    provider who the token belongs to and creating the local record.
    """

    def __init__(self, user_service: UserService, identity_client: IdentityProviderClient):
        self.user_service = user_service
        self.identity_client = identity_client

    async def authenticate(self, request: HTTPConnection) -> AuthResult:
        session_cookie = request.cookies.get(COOKIE_NAME)
        if session_cookie is None:
            return AuthResult.failure(AuthErrorKind.no_session)

        session = verify_session(session_cookie)
        if session is None:
            return AuthResult.failure(AuthErrorKind.invalid_session, "Invalid session cookie")

        if not self.user_service.available:
            return AuthResult.failure(AuthErrorKind.store_unavailable, "Database not available")

        signed_in_at = datetime.now(timezone.utc)
        user = await self.user_service.get_by_open_id(session.open_id)

        if user is None:
            try:
                user = await self._sync_user(session_cookie, signed_in_at)
            except (
                httpx.HTTPError,
                IdentityProviderResponseError,
                SQLAlchemyError,
                ValueError,
            ) as e:
                logger.error("Failed to sync user from OAuth: %s", e)
                return AuthResult.failure(AuthErrorKind.sync_failed, "Failed to sync user info")

        if user is None:
            return AuthResult.failure(AuthErrorKind.user_not_found, "User not found")

        await self.user_service.upsert(UserUpsert(open_id=user.open_id, last_signed_in=signed_in_at))
        return AuthResult(user=user)

    async def _sync_user(self, session_cookie: str, signed_in_at: datetime) -> Optional[User]:
        identity = await self.identity_client.get_user_info_by_jwt(session_cookie)
        if not identity.open_id:
            raise IdentityProviderResponseError("openId missing from user info")

        await self.user_service.upsert(
            UserUpsert(
                open_id=identity.open_id,
                name=identity.name or None,
                email=identity.email,
                login_method=identity.login_method or identity.platform,
                last_signed_in=signed_in_at,
            )
        )
        return await self.user_service.get_by_open_id(identity.open_id)
