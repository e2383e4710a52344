import base64
import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from visitrack.config import Settings, get_settings
from visitrack.schemas.auth import Identity, TokenResponse

logger = logging.getLogger(__name__)

EXCHANGE_TOKEN_PATH = "/webdev.v1.WebDevAuthPublicService/ExchangeToken"
GET_USER_INFO_PATH = "/webdev.v1.WebDevAuthPublicService/GetUserInfo"
GET_USER_INFO_WITH_JWT_PATH = "/webdev.v1.WebDevAuthPublicService/GetUserInfoWithJwt"

# Checked in order; the first tag present wins
LOGIN_METHOD_PRIORITY = [
    ("email", {"REGISTERED_PLATFORM_EMAIL"}),
    ("google", {"REGISTERED_PLATFORM_GOOGLE"}),
    ("apple", {"REGISTERED_PLATFORM_APPLE"}),
    ("microsoft", {"REGISTERED_PLATFORM_MICROSOFT", "REGISTERED_PLATFORM_AZURE"}),
    ("github", {"REGISTERED_PLATFORM_GITHUB"}),
]


class IdentityProviderResponseError(Exception):
    """The provider answered, but not with the shape we expect."""


def derive_login_method(platforms: Optional[list[str]], fallback: Optional[str]) -> Optional[str]:
    if fallback:
        return fallback
    if not platforms:
        return None

    tags = set(platforms)
    for method, markers in LOGIN_METHOD_PRIORITY:
        if tags & markers:
            return method
    return platforms[0].lower()


def decode_state(state: str) -> str:
    """The OAuth state is the base64 encoded redirect URI used at login."""
    padded = state + "=" * (-len(state) % 4)
    return base64.b64decode(padded, validate=True).decode("utf-8")


class IdentityProviderClient:
    """Client for the OAuth server's token exchange and user info endpoints."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.base_url = settings.oauth_server_url.rstrip("/")
        self.app_id = settings.app_id
        self.timeout = settings.http_timeout

        logger.info("OAuth client initialized with base URL: %s", self.base_url)
        if not self.base_url:
            logger.error(
                "OAUTH_SERVER_URL is not configured! Set the OAUTH_SERVER_URL environment variable."
            )

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
            response = await client.post(path, json=payload)
            response.raise_for_status()
            data = response.json()

        if not isinstance(data, dict):
            raise IdentityProviderResponseError(f"Expected a JSON object from {path}")
        return data

    def _parse_identity(self, data: dict[str, Any]) -> Identity:
        try:
            identity = Identity.model_validate(data)
        except ValidationError as e:
            raise IdentityProviderResponseError(f"Invalid user info: {e}") from None

        login_method = derive_login_method(identity.platforms, identity.platform)
        return identity.model_copy(update={"platform": login_method, "login_method": login_method})

    async def exchange_code(self, code: str, state: str) -> TokenResponse:
        payload = {
            "clientId": self.app_id,
            "grantType": "authorization_code",
            "code": code,
            "redirectUri": decode_state(state),
        }
        data = await self._post(EXCHANGE_TOKEN_PATH, payload)
        try:
            return TokenResponse.model_validate(data)
        except ValidationError as e:
            raise IdentityProviderResponseError(f"Invalid token response: {e}") from None

    async def get_user_info(self, access_token: str) -> Identity:
        data = await self._post(GET_USER_INFO_PATH, {"accessToken": access_token})
        return self._parse_identity(data)

    async def get_user_info_by_jwt(self, jwt_token: str) -> Identity:
        """Look up the user behind an existing session token."""
        data = await self._post(
            GET_USER_INFO_WITH_JWT_PATH,
            {"jwtToken": jwt_token, "projectId": self.app_id},
        )
        return self._parse_identity(data)


_identity_client: Optional[IdentityProviderClient] = None


def get_identity_client() -> IdentityProviderClient:
    global _identity_client
    if _identity_client is None:
        _identity_client = IdentityProviderClient()
    return _identity_client
