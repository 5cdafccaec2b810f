"""Filter decision: the first triage step on a new report."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from whitebox.core.errors import AlreadyDecided, ConflictError
from whitebox.models.filter_decision import FilterDecision
from whitebox.models.report import Report
from whitebox.services.access_control import Actor, Operation, authorize
from whitebox.services.status_catalog import FILTER_TARGETS, get_catalog
from whitebox.services.transition_service import load_report_for_update, stage_transition

logger = logging.getLogger(__name__)


def apply_filter_decision(
    db: Session,
    report_id: int,
    result_code: str,
    actor: Actor,
    reasoning: str | None = None,
    is_auto: bool = False,
    needs_super_review: bool = False,
) -> Report:
    """Classify a report still in pre-evaluation and move it accordingly.

    The filter result, spam flag, status change, history row and decision
    record commit together. A report can be decided once.
    """
    catalog = get_catalog()
    try:
        report = load_report_for_update(db, report_id)
        authorize(actor, Operation.APPLY_FILTER, report)
        result = catalog.filter_result(result_code)
        if report.current_filter_result_id is not None or report.status_id != catalog.initial.status_id:
            raise AlreadyDecided(f"Report {report.report_code} already has a filter decision")

        extra = {"current_filter_result_id": result.filter_result_id}
        if result.code == "spam":
            extra["is_spam"] = True
        target = catalog.status_by_code(FILTER_TARGETS[result.code])
        stage_transition(
            db,
            report,
            target,
            actor,
            comment=reasoning,
            expected_status_id=catalog.initial.status_id,
            extra_values=extra,
        )
        db.add(
            FilterDecision(
                report_id=report.id,
                filter_result_id=result.filter_result_id,
                reasoning=reasoning,
                is_auto=is_auto,
                needs_super_review=needs_super_review,
                decided_by_user_id=actor.user_id,
            )
        )
        db.commit()
    except IntegrityError as e:
        # unique decision per report; another request won the race
        db.rollback()
        raise ConflictError(f"Report {report_id} was decided concurrently") from e
    except Exception:
        db.rollback()
        raise

    db.refresh(report)
    logger.info(
        "Filter decision on report %s: %s (auto=%s, super_review=%s)",
        report.id,
        result.code,
        is_auto,
        needs_super_review,
    )
    return report
