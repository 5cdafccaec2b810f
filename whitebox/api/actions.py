"""Remediation action API."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from whitebox.core.deps import get_current_actor
from whitebox.db.session import get_db
from whitebox.schemas.action import ActionOut, ActionStatusUpdate
from whitebox.services.access_control import Actor
from whitebox.services.action_service import ACTION_STATUS_CODES, update_action_status

router = APIRouter(prefix="/actions", tags=["actions"])


@router.get("/statuses", response_model=list[str])
def action_statuses():
    """Action status vocabulary, in workflow order."""
    return list(ACTION_STATUS_CODES)


@router.patch("/{action_id}", response_model=ActionOut)
def change_action_status(
    action_id: int,
    data: ActionStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return update_action_status(db, action_id, actor, data.status_code)
