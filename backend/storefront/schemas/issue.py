"""Pydantic schemas for support issues."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.enums import IssueStatus


class IssueCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    order_id: str = Field(..., min_length=1)


class IssueUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    status: IssueStatus | None = None


class IssueRead(BaseModel):
    id: str
    title: str
    description: str
    order_id: str
    user_id: str
    status: IssueStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
