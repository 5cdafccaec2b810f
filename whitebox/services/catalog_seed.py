"""Default status catalog rows."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from whitebox.models.status import FilterResult, ReportStatus, StatusTransition

logger = logging.getLogger(__name__)

# (code, label, display_order)
DEFAULT_STATUSES = [
    ("pre_evaluation", "Pre-evaluation", 10),
    ("waiting_admitted", "Admitted, waiting", 20),
    ("open_in_progress", "Open / in progress", 30),
    ("investigation", "Investigation", 40),
    ("remediation", "Remediation", 50),
    ("archived", "Archived", 60),
]

# (from, to, requires_comment, requires_action)
DEFAULT_TRANSITIONS = [
    ("pre_evaluation", "waiting_admitted", False, False),
    ("pre_evaluation", "archived", False, False),
    ("waiting_admitted", "open_in_progress", False, False),
    ("waiting_admitted", "archived", True, False),
    ("open_in_progress", "investigation", False, False),
    ("open_in_progress", "archived", True, False),
    ("investigation", "remediation", False, True),
    ("investigation", "archived", True, False),
    ("remediation", "investigation", True, False),
    ("remediation", "archived", True, False),
]

DEFAULT_FILTER_RESULTS = [
    ("admitted", "Admitted"),
    ("out_of_scope", "Out of scope"),
    ("unfounded", "Unfounded"),
    ("spam", "Spam"),
]


def seed_catalog(db: Session) -> bool:
    """Insert the default catalog when the status table is empty. Returns True if seeded."""
    existing = db.execute(select(func.count()).select_from(ReportStatus)).scalar_one()
    if existing:
        return False

    by_code: dict[str, ReportStatus] = {}
    for code, label, order in DEFAULT_STATUSES:
        status = ReportStatus(code=code, label=label, display_order=order)
        db.add(status)
        by_code[code] = status
    db.flush()

    for from_code, to_code, requires_comment, requires_action in DEFAULT_TRANSITIONS:
        db.add(
            StatusTransition(
                from_status_id=by_code[from_code].id,
                to_status_id=by_code[to_code].id,
                requires_comment=requires_comment,
                requires_action=requires_action,
            )
        )

    known_results = set(db.execute(select(FilterResult.code)).scalars())
    for code, label in DEFAULT_FILTER_RESULTS:
        if code not in known_results:
            db.add(FilterResult(code=code, label=label))

    db.commit()
    logger.info(
        "Seeded default catalog: %d statuses, %d transitions",
        len(DEFAULT_STATUSES),
        len(DEFAULT_TRANSITIONS),
    )
    return True
