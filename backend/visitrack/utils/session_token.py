import logging
import math
import time
from datetime import timedelta
from typing import Optional

from jose import JWTError, jwt
from pydantic import ValidationError

from visitrack.config import get_settings
from visitrack.schemas.auth import SessionPayload

logger = logging.getLogger(__name__)
settings = get_settings()

SESSION_ALGORITHM = "HS256"
ONE_YEAR = timedelta(days=365)


def _session_secret() -> str:
    return settings.jwt_secret


def sign_session(payload: SessionPayload, ttl: timedelta = ONE_YEAR) -> str:
    """Sign a session payload into a compact JWT that expires after ``ttl``."""
    expires_at = math.floor(time.time() + ttl.total_seconds())
    claims = {
        "openId": payload.open_id,
        "appId": payload.app_id,
        "name": payload.name,
        "exp": expires_at,
    }
    return jwt.encode(
        claims,
        _session_secret(),
        algorithm=SESSION_ALGORITHM,
        headers={"typ": "JWT"},
    )


def create_session_token(open_id: str, name: str = "", ttl: timedelta = ONE_YEAR) -> str:
    return sign_session(
        SessionPayload.model_validate(
            {"openId": open_id, "appId": settings.app_id, "name": name or ""}
        ),
        ttl=ttl,
    )


def verify_session(token: Optional[str]) -> Optional[SessionPayload]:
    """
    Verify a session cookie value.

    Returns None for any token that is missing, malformed, expired, signed
    with another key or algorithm, or missing required claims.
    """
    if not token:
        logger.warning("Missing session cookie")
        return None

    try:
        claims = jwt.decode(
            token,
            _session_secret(),
            algorithms=[SESSION_ALGORITHM],
            options={"verify_exp": True, "require_exp": True},
        )
    except JWTError as e:
        logger.warning("Session verification failed: %s", e)
        return None

    try:
        return SessionPayload.model_validate(claims)
    except ValidationError:
        logger.warning("Session payload missing required fields")
        return None
