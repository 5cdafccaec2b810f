"""Department and department membership models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from whitebox.db.base import Base

ScopeColumn = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class Department(Base):
    """A routing team inside an organisation.

    Scope columns are NULL or an empty list for "any value", otherwise the set of
    values a report must match.
    """

    __tablename__ = "organization_departments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organisations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    scope_risk_category_ids: Mapped[list[int] | None] = mapped_column(ScopeColumn, nullable=True)
    scope_risk_subcategory_ids: Mapped[list[int] | None] = mapped_column(ScopeColumn, nullable=True)
    scope_country_codes: Mapped[list[str] | None] = mapped_column(ScopeColumn, nullable=True)
    scope_supplier_org_ids: Mapped[list[int] | None] = mapped_column(ScopeColumn, nullable=True)
    scope_worksite_ids: Mapped[list[int] | None] = mapped_column(ScopeColumn, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class DepartmentMember(Base):
    __tablename__ = "organization_department_members"
    __table_args__ = (
        UniqueConstraint("department_id", "user_id", name="uq_department_member"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    department_id: Mapped[int] = mapped_column(
        ForeignKey("organization_departments.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
