import time
from datetime import timedelta

from jose import jwt

from visitrack.schemas.auth import SessionPayload
from visitrack.utils.session_token import (
    create_session_token,
    sign_session,
    verify_session,
)

SECRET = "test-session-secret"


def _claims(**overrides) -> dict:
    claims = {
        "openId": "user-1",
        "appId": "test-app",
        "name": "Ann",
        "exp": int(time.time()) + 3600,
    }
    claims.update(overrides)
    return {key: value for key, value in claims.items() if value is not None}


class TestSignAndVerify:
    """Tests for session token round trips."""

    def test_round_trip(self):
        """Test that a signed payload verifies to the same claims."""
        token = sign_session(SessionPayload(openId="user-1", appId="test-app", name="Ann"))
        session = verify_session(token)
        assert session is not None
        assert session.open_id == "user-1"
        assert session.app_id == "test-app"
        assert session.name == "Ann"

    def test_round_trip_with_empty_name(self):
        """Test that an empty display name is still a valid session."""
        session = verify_session(create_session_token("user-1"))
        assert session is not None
        assert session.name == ""

    def test_create_session_token_uses_app_id(self):
        """Test that the configured app id is embedded in the token."""
        claims = jwt.get_unverified_claims(create_session_token("user-1", name="Ann"))
        assert claims["appId"] == "test-app"
        assert claims["openId"] == "user-1"

    def test_expiry_is_whole_seconds_in_the_future(self):
        """Test that exp is an integer roughly one year ahead."""
        claims = jwt.get_unverified_claims(create_session_token("user-1"))
        assert isinstance(claims["exp"], int)
        assert claims["exp"] > time.time() + timedelta(days=364).total_seconds()

    def test_header_is_hs256_jwt(self):
        """Test the token header declares HS256."""
        header = jwt.get_unverified_header(create_session_token("user-1"))
        assert header["alg"] == "HS256"
        assert header["typ"] == "JWT"


class TestRejectedTokens:
    """Tests that bad tokens verify to None instead of raising."""

    def test_expired_token(self):
        """Test that an expired token is rejected."""
        token = create_session_token("user-1", ttl=timedelta(seconds=-1))
        assert verify_session(token) is None

    def test_tampered_signature(self):
        """Test that changing the signature invalidates the token."""
        token = create_session_token("user-1")
        header, payload, signature = token.split(".")
        flipped = ("B" if signature[0] == "A" else "A") + signature[1:]
        assert verify_session(f"{header}.{payload}.{flipped}") is None

    def test_wrong_secret(self):
        """Test that a token signed with another key is rejected."""
        token = jwt.encode(_claims(), "another-secret", algorithm="HS256")
        assert verify_session(token) is None

    def test_other_algorithm(self):
        """Test that only HS256 signatures are accepted."""
        token = jwt.encode(_claims(), SECRET, algorithm="HS512")
        assert verify_session(token) is None

    def test_missing_open_id(self):
        token = jwt.encode(_claims(openId=None), SECRET, algorithm="HS256")
        assert verify_session(token) is None

    def test_empty_app_id(self):
        token = jwt.encode(_claims(appId=""), SECRET, algorithm="HS256")
        assert verify_session(token) is None

    def test_non_string_name(self):
        """Test that name must be a string even though it may be empty."""
        token = jwt.encode(_claims(name=123), SECRET, algorithm="HS256")
        assert verify_session(token) is None

    def test_snake_case_claims(self):
        """Test that only the camelCase claim names are accepted."""
        claims = {
            "open_id": "user-1",
            "app_id": "test-app",
            "name": "",
            "exp": int(time.time()) + 3600,
        }
        token = jwt.encode(claims, SECRET, algorithm="HS256")
        assert verify_session(token) is None

    def test_missing_name(self):
        token = jwt.encode(_claims(name=None), SECRET, algorithm="HS256")
        assert verify_session(token) is None

    def test_missing_expiry(self):
        """Test that tokens without exp never verify."""
        token = jwt.encode(_claims(exp=None), SECRET, algorithm="HS256")
        assert verify_session(token) is None

    def test_garbage(self):
        assert verify_session("not-a-jwt") is None
        assert verify_session("a.b.c") is None

    def test_missing_token(self):
        assert verify_session(None) is None
        assert verify_session("") is None
