"""Status catalog schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class StatusOut(BaseModel):
    status_id: int
    code: str
    label: str
    display_order: int

    model_config = {"from_attributes": True}


class TransitionRuleOut(BaseModel):
    from_status: str
    to_status: str
    requires_comment: bool
    requires_action: bool


class TransitionRuleUpsert(BaseModel):
    from_status: str
    to_status: str
    requires_comment: bool = False
    requires_action: bool = False


class StatusChangeRequest(BaseModel):
    status_code: str
    comment: str | None = None
    expected_status_code: str | None = None


class StatusHistoryOut(BaseModel):
    id: int
    report_id: int
    status_code: str
    status_label: str
    comment_text: str | None
    changed_by_user_id: int | None
    changed_at: datetime
