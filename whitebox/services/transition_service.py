"""Status transition engine.

A transition is one atomic read-modify-write: the report row is re-read (and
locked where the database supports it), the move is checked against the
transition table and its gates, then the status is swapped only if it still
holds the value that was checked. The history row is written in the same
transaction, so a failed call leaves neither a status change nor a history row.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from whitebox.core.errors import ConflictError, InvalidTransition, MissingAction, MissingComment, NotFoundError
from whitebox.models.report import Report
from whitebox.models.status_history import StatusHistoryEntry
from whitebox.services.access_control import Actor, Operation, authorize
from whitebox.services.action_service import count_actions
from whitebox.services.status_catalog import StatusDefinition, TransitionRule, get_catalog

logger = logging.getLogger(__name__)


def load_report_for_update(db: Session, report_id: int) -> Report:
    """Fetch the current row state, bypassing anything cached in the session."""
    report = db.execute(
        select(Report)
        .where(Report.id == report_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if report is None:
        raise NotFoundError(f"Report {report_id} not found")
    return report


def stage_transition(
    db: Session,
    report: Report,
    target: StatusDefinition,
    actor: Actor,
    comment: str | None = None,
    expected_status_id: int | None = None,
    extra_values: dict[str, Any] | None = None,
) -> StatusHistoryEntry:
    """Validate and write a transition without committing.

    ``extra_values`` are written to the report in the same guarded UPDATE.
    """
    catalog = get_catalog()
    current = catalog.status_by_id(report.status_id)
    if expected_status_id is not None and expected_status_id != current.status_id:
        raise ConflictError(
            f"Report {report.report_code} is now '{current.code}'; re-read it before changing status"
        )

    rule = catalog.rule(current.status_id, target.status_id)
    if rule is None:
        raise InvalidTransition(f"Cannot move report from '{current.code}' to '{target.code}'")

    comment_text = comment.strip() if comment else None
    if rule.requires_comment and not comment_text:
        raise MissingComment(f"Moving to '{target.code}' requires a comment")
    if rule.requires_action and count_actions(db, report.id) == 0:
        raise MissingAction(f"Moving to '{target.code}' requires at least one action on the report")

    result = db.execute(
        update(Report)
        .where(Report.id == report.id, Report.status_id == current.status_id)
        .values(status_id=target.status_id, **(extra_values or {}))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(
            "Lost update on report %s: %s -> %s by user=%s",
            report.id,
            current.code,
            target.code,
            actor.user_id,
        )
        raise ConflictError(f"Report {report.report_code} was changed concurrently; re-read and retry")

    entry = StatusHistoryEntry(
        report_id=report.id,
        status_id=target.status_id,
        comment_text=comment_text or None,
        changed_by_user_id=actor.user_id,
    )
    db.add(entry)
    db.flush()
    logger.info(
        "Report %s moved %s -> %s by user=%s",
        report.id,
        current.code,
        target.code,
        actor.user_id,
    )
    return entry


def apply_transition(
    db: Session,
    report_id: int,
    target_status_code: str,
    actor: Actor,
    comment: str | None = None,
    expected_status_code: str | None = None,
) -> Report:
    """Move a report to ``target_status_code`` and append to its history.

    Pass ``expected_status_code`` (the status the caller last saw) to fail with
    ConflictError instead of acting on a stale view.
    """
    catalog = get_catalog()
    try:
        report = load_report_for_update(db, report_id)
        authorize(actor, Operation.SET_STATUS, report)
        target = catalog.status_by_code(target_status_code)
        expected_id = catalog.status_by_code(expected_status_code).status_id if expected_status_code else None
        stage_transition(db, report, target, actor, comment=comment, expected_status_id=expected_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(report)
    return report


def list_status_history(db: Session, report_id: int, actor: Actor) -> list[StatusHistoryEntry]:
    """History rows for a report, most recent first.

    Ordered by insertion: ``changed_at`` is the transaction start time on
    PostgreSQL, which can predate a write that waited on the row lock.
    """
    report = db.get(Report, report_id)
    if not report:
        raise NotFoundError(f"Report {report_id} not found")
    authorize(actor, Operation.READ_REPORT, report)
    result = db.execute(
        select(StatusHistoryEntry)
        .where(StatusHistoryEntry.report_id == report_id)
        .order_by(StatusHistoryEntry.id.desc())
    )
    return list(result.scalars().all())


def allowed_transitions(db: Session, report_id: int, actor: Actor) -> list[tuple[TransitionRule, StatusDefinition]]:
    """Rules leaving the report's current status, with their target statuses."""
    report = db.get(Report, report_id)
    if not report:
        raise NotFoundError(f"Report {report_id} not found")
    authorize(actor, Operation.READ_REPORT, report)
    catalog = get_catalog()
    return [(rule, catalog.status_by_id(rule.to_status_id)) for rule in catalog.rules_from(report.status_id)]
