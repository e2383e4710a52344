from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from visitrack.models.user import UserRole


class UserUpsert(BaseModel):
    """
    Partial user for insert-or-update.

    Only fields that were explicitly set are written; an explicit None clears
    the column.
    """

    open_id: str = Field(..., min_length=1, max_length=64)
    name: Optional[str] = None
    email: Optional[str] = Field(None, max_length=320)
    login_method: Optional[str] = Field(None, max_length=64)
    role: Optional[UserRole] = None
    last_signed_in: Optional[datetime] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    open_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    login_method: Optional[str] = None
    role: UserRole
    created_at: datetime
    updated_at: datetime
    last_signed_in: datetime


class LogoutResponse(BaseModel):
    success: bool
