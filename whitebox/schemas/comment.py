"""Report comment schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    comment_text: str = Field(min_length=1)
    is_note: bool = False


class CommentOut(BaseModel):
    id: int
    report_id: int
    author_user_id: int | None
    comment_text: str
    is_note: bool
    created_at: datetime

    model_config = {"from_attributes": True}
