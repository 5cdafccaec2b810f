"""Remediation action schemas."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class ActionCreate(BaseModel):
    description: str = Field(min_length=1)
    due_date: date | None = None
    status_code: str | None = None


class ActionStatusUpdate(BaseModel):
    status_code: str


class ActionOut(BaseModel):
    id: int
    report_id: int
    description: str
    status_code: str
    due_date: date | None
    created_by_user_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}
