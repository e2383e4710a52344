from typing import Optional

from fastapi import APIRouter, Request, Response

from visitrack.schemas.user import LogoutResponse, UserResponse
from visitrack.utils.auth import CurrentUserOptional
from visitrack.utils.cookies import clear_session_cookie

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=Optional[UserResponse])
async def get_me(current_user: CurrentUserOptional) -> Optional[UserResponse]:
    if current_user is None:
        return None
    return UserResponse.model_validate(current_user)


@router.post("/logout", response_model=LogoutResponse)
async def logout(request: Request, response: Response) -> LogoutResponse:
    # Tokens stay valid until they expire; logging out only drops the cookie
    clear_session_cookie(response, request)
    return LogoutResponse(success=True)
