"""Report comment thread shared by reporters and the handling organisation."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from whitebox.core.errors import NotFoundError, ValidationError
from whitebox.models.comment import ReportComment
from whitebox.models.report import Report
from whitebox.services.access_control import Actor, Operation, Role, authorize

logger = logging.getLogger(__name__)


def _get_report(db: Session, report_id: int) -> Report:
    report = db.get(Report, report_id)
    if not report:
        raise NotFoundError(f"Report {report_id} not found")
    return report


def add_comment(
    db: Session,
    report_id: int,
    actor: Actor,
    comment_text: str,
    is_note: bool = False,
) -> ReportComment:
    """Post to a report's thread. Notes are for organisation staff only."""
    report = _get_report(db, report_id)
    authorize(actor, Operation.WRITE_NOTE if is_note else Operation.COMMENT, report)
    text = comment_text.strip() if comment_text else ""
    if not text:
        raise ValidationError("Comment text is required")

    comment = ReportComment(
        report_id=report.id,
        author_user_id=actor.user_id,
        comment_text=text,
        is_note=is_note,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    logger.info(
        "%s %s added to report %s by user=%s",
        "Note" if is_note else "Comment",
        comment.id,
        report.id,
        actor.user_id,
    )
    return comment


def list_comments(db: Session, report_id: int, actor: Actor) -> list[ReportComment]:
    """Thread for a report, newest first. Reporters do not see notes."""
    report = _get_report(db, report_id)
    authorize(actor, Operation.READ_REPORT, report)
    stmt = select(ReportComment).where(ReportComment.report_id == report.id)
    if actor.role is Role.REPORTER:
        stmt = stmt.where(ReportComment.is_note.is_(False))
    return list(db.execute(stmt.order_by(ReportComment.id.desc())).scalars().all())
