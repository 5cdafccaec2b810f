"""Role-scoped access control for the triage workflow.

Roles form a closed set. What a role may do is read from ``CAPABILITIES``;
which reports it may do it to is decided by ``can_access_report``. Both checks
run before any workflow service touches the database.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

from sqlalchemy import Select, false

from whitebox.core.errors import AuthorizationError
from whitebox.models.report import Report
from whitebox.models.user import User

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    REPORTER = "reporter"
    ORGANISATION_MEMBER = "organisation_member"
    ADMINISTRATOR = "administrator"


class Operation(str, enum.Enum):
    READ_REPORT = "read_report"
    SET_STATUS = "set_status"
    APPLY_FILTER = "apply_filter"
    MANAGE_ACTIONS = "manage_actions"
    ROUTE_REPORT = "route_report"
    ASSIGN_DEPARTMENT = "assign_department"
    MANAGE_DEPARTMENTS = "manage_departments"
    EDIT_CATALOG = "edit_catalog"
    VIEW_DASHBOARD = "view_dashboard"
    PROVISION_ACCOUNTS = "provision_accounts"
    COMMENT = "comment"
    WRITE_NOTE = "write_note"


CAPABILITIES: dict[Role, frozenset[Operation]] = {
    Role.REPORTER: frozenset({Operation.READ_REPORT, Operation.COMMENT}),
    Role.ORGANISATION_MEMBER: frozenset(
        {
            Operation.READ_REPORT,
            Operation.SET_STATUS,
            Operation.APPLY_FILTER,
            Operation.MANAGE_ACTIONS,
            Operation.ROUTE_REPORT,
            Operation.MANAGE_DEPARTMENTS,
            Operation.COMMENT,
            Operation.WRITE_NOTE,
        }
    ),
    Role.ADMINISTRATOR: frozenset(Operation),
}


@dataclass(frozen=True)
class Actor:
    """The identity every workflow call is made on behalf of."""

    role: Role
    user_id: int | None = None
    organization_id: int | None = None
    department_ids: frozenset[int] = field(default_factory=frozenset)
    department_scoped: bool = False

    @classmethod
    def from_user(cls, user: User, department_ids: set[int] | frozenset[int] = frozenset()) -> "Actor":
        return cls(
            role=Role(user.role),
            user_id=user.id,
            organization_id=user.organization_id,
            department_ids=frozenset(department_ids),
            department_scoped=bool(user.department_scoped),
        )

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMINISTRATOR


def can_access_report(actor: Actor, report: Report) -> bool:
    if actor.role is Role.ADMINISTRATOR:
        return True
    if actor.role is Role.REPORTER:
        return actor.user_id is not None and report.reporter_user_id == actor.user_id
    if actor.organization_id is None or report.reported_org_id != actor.organization_id:
        return False
    if actor.department_scoped:
        return report.assigned_department_id in actor.department_ids
    return True


def _deny(actor: Actor, operation: Operation, reason: str) -> AuthorizationError:
    logger.warning(
        "Denied %s for user=%s role=%s: %s",
        operation.value,
        actor.user_id,
        actor.role.value,
        reason,
    )
    return AuthorizationError(reason)


def authorize(
    actor: Actor,
    operation: Operation,
    report: Report | None = None,
    organization_id: int | None = None,
) -> None:
    """Raise AuthorizationError unless ``actor`` may perform ``operation``.

    Pass ``report`` for report-scoped operations and ``organization_id`` for
    organisation-scoped ones (departments).
    """
    if operation not in CAPABILITIES[actor.role]:
        raise _deny(actor, operation, f"Role '{actor.role.value}' may not {operation.value.replace('_', ' ')}")
    if report is not None and not can_access_report(actor, report):
        raise _deny(actor, operation, "Report is outside your scope")
    if organization_id is not None and not actor.is_admin and actor.organization_id != organization_id:
        raise _deny(actor, operation, "Organisation is outside your scope")


def scope_report_query(stmt: Select, actor: Actor) -> Select:
    """Restrict a ``select(Report)`` statement to the reports ``actor`` may read."""
    if actor.role is Role.ADMINISTRATOR:
        return stmt
    if actor.role is Role.REPORTER:
        if actor.user_id is None:
            return stmt.where(false())
        return stmt.where(Report.reporter_user_id == actor.user_id)
    if actor.organization_id is None:
        return stmt.where(false())
    stmt = stmt.where(Report.reported_org_id == actor.organization_id)
    if actor.department_scoped:
        stmt = stmt.where(Report.assigned_department_id.in_(sorted(actor.department_ids)))
    return stmt
