import json

import httpx
import pytest
from httpx import AsyncClient

from visitrack.services.identity_provider import GET_USER_INFO_WITH_JWT_PATH
from visitrack.utils.session_token import create_session_token

from tests.helpers import cookie_header


class TestCurrentUser:
    """Tests for the current user endpoint."""

    @pytest.mark.asyncio
    async def test_me_without_cookie(self, client: AsyncClient):
        """Test that anonymous requests get null rather than an error."""
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 200
        assert response.json() is None

    @pytest.mark.asyncio
    async def test_me_with_garbage_cookie(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me", headers=cookie_header("garbage"))
        assert response.status_code == 200
        assert response.json() is None

    @pytest.mark.asyncio
    async def test_me_with_expired_cookie(self, client: AsyncClient, test_user):
        from datetime import timedelta

        token = create_session_token(test_user.open_id, ttl=timedelta(seconds=-1))
        response = await client.get("/api/v1/auth/me", headers=cookie_header(token))
        assert response.json() is None

    @pytest.mark.asyncio
    async def test_me_with_valid_cookie(self, client: AsyncClient, test_user, auth_headers):
        """Test that a valid session returns the stored user."""
        response = await client.get("/api/v1/auth/me", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["open_id"] == test_user.open_id
        assert data["name"] == "Test User"
        assert data["role"] == "user"

    @pytest.mark.asyncio
    async def test_me_syncs_unknown_user(self, client: AsyncClient, oauth_api):
        """Test that a valid token for an unknown user is resolved through the provider."""
        token = create_session_token("ghost", name="Ghost")
        route = oauth_api.post(GET_USER_INFO_WITH_JWT_PATH).mock(
            return_value=httpx.Response(
                200,
                json={
                    "openId": "ghost",
                    "name": "Ghost",
                    "platforms": ["REGISTERED_PLATFORM_EMAIL"],
                },
            )
        )

        response = await client.get("/api/v1/auth/me", headers=cookie_header(token))

        assert response.status_code == 200
        data = response.json()
        assert data["open_id"] == "ghost"
        assert data["login_method"] == "email"
        assert json.loads(route.calls.last.request.content)["jwtToken"] == token

    @pytest.mark.asyncio
    async def test_me_when_provider_fails(self, client: AsyncClient, oauth_api):
        """Test that a failed sync leaves the request anonymous."""
        token = create_session_token("ghost")
        route = oauth_api.post(GET_USER_INFO_WITH_JWT_PATH).mock(
            return_value=httpx.Response(500)
        )

        response = await client.get("/api/v1/auth/me", headers=cookie_header(token))

        assert response.status_code == 200
        assert response.json() is None
        assert route.called

    @pytest.mark.asyncio
    async def test_me_without_database(self, client_without_db: AsyncClient):
        token = create_session_token("u1")
        response = await client_without_db.get("/api/v1/auth/me", headers=cookie_header(token))
        assert response.status_code == 200
        assert response.json() is None


class TestLogout:
    """Tests for logout."""

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client: AsyncClient, auth_headers):
        """Test that logout expires the session cookie."""
        response = await client.post("/api/v1/auth/logout", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        set_cookie = response.headers["set-cookie"].lower()
        assert set_cookie.startswith('app_session_id="";') or set_cookie.startswith(
            "app_session_id=;"
        )
        assert "max-age=-1" in set_cookie
        assert "httponly" in set_cookie
        assert "path=/" in set_cookie

    @pytest.mark.asyncio
    async def test_logout_anonymous(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/logout")
        assert response.status_code == 200
        assert "max-age=-1" in response.headers["set-cookie"].lower()


class TestAuthorization:
    """Tests for the admin guard."""

    @pytest.mark.asyncio
    async def test_anonymous_is_forbidden(self, client: AsyncClient):
        response = await client.get("/api/v1/analytics/summary")
        assert response.status_code == 403
        assert response.json()["detail"] == "You do not have required permission (10002)"

    @pytest.mark.asyncio
    async def test_regular_user_is_forbidden(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/v1/analytics/summary", headers=auth_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_is_allowed(self, client: AsyncClient, admin_headers):
        response = await client.get("/api/v1/analytics/summary", headers=admin_headers)
        assert response.status_code == 200
