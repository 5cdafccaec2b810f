"""Status catalog revision counter."""

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from whitebox.db.base import Base


class CatalogRevision(Base):
    """Single row (id 1) bumped on every transition table edit."""

    __tablename__ = "report_catalog_revision"

    id: Mapped[int] = mapped_column(primary_key=True)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
