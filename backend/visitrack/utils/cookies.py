from starlette.requests import HTTPConnection
from starlette.responses import Response

from visitrack.utils.session_token import ONE_YEAR

COOKIE_NAME = "app_session_id"
SESSION_MAX_AGE = int(ONE_YEAR.total_seconds())


def is_secure_request(request: HTTPConnection) -> bool:
    if request.url.scheme == "https":
        return True

    forwarded_proto = request.headers.get("x-forwarded-proto")
    if not forwarded_proto:
        return False
    return any(proto.strip().lower() == "https" for proto in forwarded_proto.split(","))


def set_session_cookie(
    response: Response, request: HTTPConnection, token: str, max_age: int = SESSION_MAX_AGE
) -> None:
    response.set_cookie(
        COOKIE_NAME,
        token,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="none",
        secure=is_secure_request(request),
    )


def clear_session_cookie(response: Response, request: HTTPConnection) -> None:
    response.set_cookie(
        COOKIE_NAME,
        "",
        max_age=-1,
        path="/",
        httponly=True,
        samesite="none",
        secure=is_secure_request(request),
    )
