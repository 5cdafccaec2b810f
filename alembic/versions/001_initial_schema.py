"""Initial schema and default status catalog.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SCOPE_TYPE = sa.JSON(none_as_null=True).with_variant(postgresql.JSONB(none_as_null=True), "postgresql")

STATUSES = [
    ("pre_evaluation", "Pre-evaluation", 10),
    ("waiting_admitted", "Admitted, waiting", 20),
    ("open_in_progress", "Open / in progress", 30),
    ("investigation", "Investigation", 40),
    ("remediation", "Remediation", 50),
    ("archived", "Archived", 60),
]

TRANSITIONS = [
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

FILTER_RESULTS = [
    ("admitted", "Admitted"),
    ("out_of_scope", "Out of scope"),
    ("unfounded", "Unfounded"),
    ("spam", "Spam"),
]


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    op.create_table(
        "organisations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=True),
        sa.Column("department_scoped", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.ForeignKeyConstraint(["organization_id"], ["organisations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "report_statuses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("label", sa.String(100), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_table(
        "report_status_transitions",
        sa.Column("from_status_id", sa.Integer(), nullable=False),
        sa.Column("to_status_id", sa.Integer(), nullable=False),
        sa.Column("requires_comment", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("requires_action", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["from_status_id"], ["report_statuses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["to_status_id"], ["report_statuses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("from_status_id", "to_status_id"),
    )
    op.create_table(
        "report_filter_results",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("label", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "organization_departments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("scope_risk_category_ids", SCOPE_TYPE, nullable=True),
        sa.Column("scope_risk_subcategory_ids", SCOPE_TYPE, nullable=True),
        sa.Column("scope_country_codes", SCOPE_TYPE, nullable=True),
        sa.Column("scope_supplier_org_ids", SCOPE_TYPE, nullable=True),
        sa.Column("scope_worksite_ids", SCOPE_TYPE, nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["organization_id"], ["organisations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_organization_departments_organization_id"),
        "organization_departments",
        ["organization_id"],
        unique=False,
    )
    op.create_table(
        "organization_department_members",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("department_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["department_id"], ["organization_departments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("department_id", "user_id", name="uq_department_member"),
    )
    op.create_index(
        op.f("ix_organization_department_members_user_id"),
        "organization_department_members",
        ["user_id"],
        unique=False,
    )

    op.create_table(
        "reports",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("report_code", sa.String(40), nullable=False),
        sa.Column("reported_org_id", sa.Integer(), nullable=False),
        sa.Column("reporter_user_id", sa.Integer(), nullable=True),
        sa.Column("reporter_email", sa.String(255), nullable=True),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("incident_date", sa.String(32), nullable=True),
        sa.Column("incident_location", sa.String(255), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("event_country", sa.String(100), nullable=True),
        sa.Column("supplier_org_id", sa.Integer(), nullable=True),
        sa.Column("worksite_id", sa.Integer(), nullable=True),
        sa.Column("status_id", sa.Integer(), nullable=False),
        sa.Column("current_filter_result_id", sa.Integer(), nullable=True),
        sa.Column("is_spam", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("assigned_department_id", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["reported_org_id"], ["organisations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["reporter_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["supplier_org_id"], ["organisations.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["status_id"], ["report_statuses.id"]),
        sa.ForeignKeyConstraint(["current_filter_result_id"], ["report_filter_results.id"]),
        sa.ForeignKeyConstraint(["assigned_department_id"], ["organization_departments.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_reports_report_code"), "reports", ["report_code"], unique=True)
    op.create_index(op.f("ix_reports_reported_org_id"), "reports", ["reported_org_id"], unique=False)

    op.create_table(
        "report_risk_categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("report_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("sub_category_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["report_id"], ["reports.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_report_risk_categories_report_id"), "report_risk_categories", ["report_id"], unique=False)

    op.create_table(
        "report_status_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("report_id", sa.Integer(), nullable=False),
        sa.Column("status_id", sa.Integer(), nullable=False),
        sa.Column("comment_text", sa.Text(), nullable=True),
        sa.Column("changed_by_user_id", sa.Integer(), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["report_id"], ["reports.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["status_id"], ["report_statuses.id"]),
        sa.ForeignKeyConstraint(["changed_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_report_status_history_report_id"), "report_status_history", ["report_id"], unique=False)

    op.create_table(
        "report_filter_decisions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("report_id", sa.Integer(), nullable=False),
        sa.Column("filter_result_id", sa.Integer(), nullable=False),
        sa.Column("reasoning", sa.Text(), nullable=True),
        sa.Column("is_auto", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("needs_super_review", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("decided_by_user_id", sa.Integer(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["report_id"], ["reports.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["filter_result_id"], ["report_filter_results.id"]),
        sa.UniqueConstraint("report_id"),
        sa.ForeignKeyConstraint(["decided_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "report_actions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("report_id", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status_code", sa.String(50), nullable=False, server_default="action_formulation"),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["report_id"], ["reports.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_report_actions_report_id"), "report_actions", ["report_id"], unique=False)

    statuses = sa.table(
        "report_statuses",
        sa.column("code", sa.String),
        sa.column("label", sa.String),
        sa.column("display_order", sa.Integer),
    )
    op.bulk_insert(statuses, [{"code": c, "label": l, "display_order": o} for c, l, o in STATUSES])

    filter_results = sa.table("report_filter_results", sa.column("code", sa.String), sa.column("label", sa.String))
    op.bulk_insert(filter_results, [{"code": c, "label": l} for c, l in FILTER_RESULTS])

    for from_code, to_code, requires_comment, requires_action in TRANSITIONS:
        op.execute(
            sa.text(
                "INSERT INTO report_status_transitions "
                "(from_status_id, to_status_id, requires_comment, requires_action) "
                "SELECT f.id, t.id, :requires_comment, :requires_action "
                "FROM report_statuses f, report_statuses t "
                "WHERE f.code = :from_code AND t.code = :to_code"
            ).bindparams(
                from_code=from_code,
                to_code=to_code,
                requires_comment=requires_comment,
                requires_action=requires_action,
            )
        )


def downgrade() -> None:
    op.drop_index(op.f("ix_report_actions_report_id"), table_name="report_actions")
    op.drop_table("report_actions")
    op.drop_table("report_filter_decisions")
    op.drop_index(op.f("ix_report_status_history_report_id"), table_name="report_status_history")
    op.drop_table("report_status_history")
    op.drop_index(op.f("ix_report_risk_categories_report_id"), table_name="report_risk_categories")
    op.drop_table("report_risk_categories")
    op.drop_index(op.f("ix_reports_reported_org_id"), table_name="reports")
    op.drop_index(op.f("ix_reports_report_code"), table_name="reports")
    op.drop_table("reports")
    op.drop_index(op.f("ix_organization_department_members_user_id"), table_name="organization_department_members")
    op.drop_table("organization_department_members")
    op.drop_index(op.f("ix_organization_departments_organization_id"), table_name="organization_departments")
    op.drop_table("organization_departments")
    op.drop_table("report_filter_results")
    op.drop_table("report_status_transitions")
    op.drop_table("report_statuses")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
    op.drop_table("organisations")
