"""Pydantic schemas used across the project."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    account_id: str
    username: str


class SkinResponse(BaseModel):
    id: str
    display_name: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    download_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SkinListResponse(BaseModel):
    total: int
    limit: int
    skins: list[SkinResponse]


class ErrorResponse(BaseModel):
    error: str
    detail: str
