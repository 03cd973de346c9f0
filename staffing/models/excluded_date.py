"""Modèle Date exclue / Excluded date model."""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staffing.database import Base


class ExcludedDate(Base):
    """Date du projet où la personne ne travaille pas / In-range date the assignee does not work.

    Convention : bloque la création de jours à cette date pour l'affectation.
    Convention: blocks day creation on that date for the assignment.
    """
    __tablename__ = "assignment_excluded_dates"
    __table_args__ = (UniqueConstraint("assignment_id", "excluded_date", name="uq_excluded_date"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    assignment_id: Mapped[int] = mapped_column(
        ForeignKey("project_assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    excluded_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Relations
    assignment: Mapped["Assignment"] = relationship(back_populates="excluded_dates")

    def __repr__(self) -> str:
        return f"<ExcludedDate assignment={self.assignment_id} date={self.excluded_date}>"
