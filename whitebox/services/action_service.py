"""Remediation actions linked to reports."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from whitebox.core.errors import NotFoundError, ValidationError
from whitebox.models.action import ReportAction
from whitebox.models.report import Report
from whitebox.services.access_control import Actor, Operation, authorize

logger = logging.getLogger(__name__)

ACTION_STATUS_CODES = (
    "suggested",
    "action_formulation",
    "action_implemented",
    "failed",
    "extended_due",
    "successful",
    "feedback_requested",
    "resolved",
)
DEFAULT_ACTION_STATUS = "action_formulation"


def _check_status_code(status_code: str) -> None:
    if status_code not in ACTION_STATUS_CODES:
        raise ValidationError(f"Unknown action status: {status_code}")


def _get_report(db: Session, report_id: int) -> Report:
    report = db.get(Report, report_id)
    if not report:
        raise NotFoundError(f"Report {report_id} not found")
    return report


def count_actions(db: Session, report_id: int) -> int:
    """Number of actions linked to a report. Used by the transition gate."""
    return db.execute(
        select(func.count()).select_from(ReportAction).where(ReportAction.report_id == report_id)
    ).scalar_one()


def create_action(
    db: Session,
    report_id: int,
    actor: Actor,
    description: str,
    due_date: date | None = None,
    status_code: str | None = None,
) -> ReportAction:
    """Link a remediation action to a report."""
    report = _get_report(db, report_id)
    authorize(actor, Operation.MANAGE_ACTIONS, report)
    if not description or not description.strip():
        raise ValidationError("Action description is required")
    status_code = status_code or DEFAULT_ACTION_STATUS
    _check_status_code(status_code)

    action = ReportAction(
        report_id=report.id,
        description=description.strip(),
        status_code=status_code,
        due_date=due_date,
        created_by_user_id=actor.user_id,
    )
    db.add(action)
    db.commit()
    db.refresh(action)
    logger.info("Action %s created on report %s (%s)", action.id, report.id, status_code)
    return action


def list_actions(db: Session, report_id: int, actor: Actor) -> list[ReportAction]:
    """Actions for a report, oldest first."""
    report = _get_report(db, report_id)
    authorize(actor, Operation.READ_REPORT, report)
    result = db.execute(
        select(ReportAction)
        .where(ReportAction.report_id == report.id)
        .order_by(ReportAction.created_at.asc(), ReportAction.id.asc())
    )
    return list(result.scalars().all())


def update_action_status(db: Session, action_id: int, actor: Actor, status_code: str) -> ReportAction:
    action = db.get(ReportAction, action_id)
    if not action:
        raise NotFoundError(f"Action {action_id} not found")
    authorize(actor, Operation.MANAGE_ACTIONS, _get_report(db, action.report_id))
    _check_status_code(status_code)

    action.status_code = status_code
    db.commit()
    db.refresh(action)
    return action
