"""Helper functions and fakes for tests."""

from typing import Optional

from starlette.requests import Request

from visitrack.schemas.auth import Identity
from visitrack.utils.cookies import COOKIE_NAME


def cookie_header(token: str) -> dict[str, str]:
    return {"Cookie": f"{COOKIE_NAME}={token}"}


def make_request(cookie: Optional[str] = None, scheme: str = "http") -> Request:
    """Build a bare Starlette request, optionally carrying a session cookie."""
    headers = []
    if cookie is not None:
        headers.append((b"cookie", f"{COOKIE_NAME}={cookie}".encode()))
    return Request(
        {
            "type": "http",
            "method": "GET",
            "scheme": scheme,
            "path": "/",
            "query_string": b"",
            "headers": headers,
            "server": ("test", 80),
        }
    )


class FakeIdentityProvider:
    """Stand-in for IdentityProviderClient that records lookups."""

    def __init__(self, identity: Optional[Identity] = None, error: Optional[Exception] = None):
        self.identity = identity
        self.error = error
        self.jwt_calls: list[str] = []

    async def get_user_info_by_jwt(self, jwt_token: str) -> Identity:
        self.jwt_calls.append(jwt_token)
        if self.error is not None:
            raise self.error
        return self.identity
