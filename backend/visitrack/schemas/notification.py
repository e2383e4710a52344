from pydantic import BaseModel, Field


class NotifyOwnerRequest(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class NotifyOwnerResponse(BaseModel):
    success: bool
