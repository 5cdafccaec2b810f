"""Report and report risk category models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from whitebox.db.base import Base


class Report(Base):
    """A grievance filed against an organisation.

    ``status_id``, ``current_filter_result_id``, ``is_spam`` and
    ``assigned_department_id`` are only written by the workflow services.
    """

    __tablename__ = "reports"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_code: Mapped[str] = mapped_column(String(40), unique=True, index=True, nullable=False)
    reported_org_id: Mapped[int] = mapped_column(
        ForeignKey("organisations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    reporter_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reporter_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    incident_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    incident_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    event_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    supplier_org_id: Mapped[int | None] = mapped_column(
        ForeignKey("organisations.id", ondelete="SET NULL"),
        nullable=True,
    )
    worksite_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status_id: Mapped[int] = mapped_column(ForeignKey("report_statuses.id"), nullable=False)
    current_filter_result_id: Mapped[int | None] = mapped_column(
        ForeignKey("report_filter_results.id"),
        nullable=True,
    )
    is_spam: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    assigned_department_id: Mapped[int | None] = mapped_column(
        ForeignKey("organization_departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class ReportRiskCategory(Base):
    __tablename__ = "report_risk_categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_id: Mapped[int] = mapped_column(
        ForeignKey("reports.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    category_id: Mapped[int] = mapped_column(Integer, nullable=False)
    sub_category_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
