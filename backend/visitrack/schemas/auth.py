from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


class SessionPayload(BaseModel):
    """Claims carried by the session cookie."""

    model_config = ConfigDict(strict=True)

    open_id: str = Field(..., alias="openId", min_length=1)
    app_id: str = Field(..., alias="appId", min_length=1)
    name: str  # may be empty, but must be a string


class TokenResponse(BaseModel):
    """Body returned by the provider's code exchange endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: StrictStr = Field(..., alias="accessToken", min_length=1)
    token_type: Optional[str] = Field(None, alias="tokenType")
    expires_in: Optional[int] = Field(None, alias="expiresIn")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")
    scope: Optional[str] = None
    id_token: Optional[str] = Field(None, alias="idToken")


class Identity(BaseModel):
    """Validated user info from the identity provider."""

    model_config = ConfigDict(populate_by_name=True)

    open_id: Optional[StrictStr] = Field(None, alias="openId")
    name: Optional[StrictStr] = None
    email: Optional[StrictStr] = None
    platforms: list[str] = Field(default_factory=list)
    platform: Optional[StrictStr] = None
    login_method: Optional[str] = Field(None, alias="loginMethod")

    @field_validator("platforms", mode="before")
    @classmethod
    def keep_string_platforms(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("platforms must be a list")
        return [p for p in value if isinstance(p, str)]
