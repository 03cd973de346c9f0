"""Modèle Jour d'affectation / Assignment day model."""

from datetime import date, datetime, time

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Time, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staffing.database import Base


class AssignmentDay(Base):
    """Jour travaillé avec horaires / Worked day with times.

    Une seule ligne par (affectation, date) ; fin strictement après début.
    One row per (assignment, date); end strictly after start.
    """
    __tablename__ = "assignment_days"
    __table_args__ = (
        UniqueConstraint("assignment_id", "work_date", name="uq_assignment_day_date"),
        CheckConstraint("end_time > start_time", name="chk_time_order"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    assignment_id: Mapped[int] = mapped_column(
        ForeignKey("project_assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relations
    assignment: Mapped["Assignment"] = relationship(back_populates="days")

    def __repr__(self) -> str:
        return f"<AssignmentDay assignment={self.assignment_id} {self.work_date} {self.start_time}-{self.end_time}>"
