"""Status catalog, transition table and filter result models."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from whitebox.db.base import Base


class ReportStatus(Base):
    """A report status. Rows referenced by history are never edited."""

    __tablename__ = "report_statuses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class StatusTransition(Base):
    """An allowed from -> to move. Missing rows mean the move is forbidden."""

    __tablename__ = "report_status_transitions"

    from_status_id: Mapped[int] = mapped_column(
        ForeignKey("report_statuses.id", ondelete="CASCADE"),
        primary_key=True,
    )
    to_status_id: Mapped[int] = mapped_column(
        ForeignKey("report_statuses.id", ondelete="CASCADE"),
        primary_key=True,
    )
    requires_comment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    requires_action: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class FilterResult(Base):
    __tablename__ = "report_filter_results"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)  # admitted | out_of_scope | unfounded | spam
    label: Mapped[str] = mapped_column(String(100), nullable=False)
