"""Administrator dashboard counts."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from whitebox.core.errors import NotFoundError
from whitebox.models.report import Report
from whitebox.schemas.admin import DashboardCounts
from whitebox.services.access_control import Actor, Operation, authorize
from whitebox.services.status_catalog import get_catalog


def _count(db: Session, *conditions) -> int:
    stmt = select(func.count()).select_from(Report)
    if conditions:
        stmt = stmt.where(*conditions)
    return db.execute(stmt).scalar_one()


def dashboard_counts(db: Session, actor: Actor) -> DashboardCounts:
    authorize(actor, Operation.VIEW_DASHBOARD)
    catalog = get_catalog()

    def in_status(code: str) -> int:
        # custom catalogs may drop the optional middle statuses
        try:
            status_id = catalog.status_by_code(code).status_id
        except NotFoundError:
            return 0
        return _count(db, Report.status_id == status_id)

    return DashboardCounts(
        total_reports=_count(db),
        spam_reports=_count(db, Report.is_spam.is_(True)),
        archived_reports=in_status("archived"),
        waiting_filter=in_status("pre_evaluation"),
        investigating=in_status("investigation"),
        remediation=in_status("remediation"),
    )
