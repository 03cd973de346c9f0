"""Modèle Projet / Project model."""

from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staffing.database import Base


class Project(Base):
    """Projet client planifiable / Schedulable client project.

    Les dates sont des dates calendaires sans heure ni fuseau.
    Dates are plain calendar dates, no time component, no timezone.
    """
    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint(
            "end_date IS NULL OR start_date IS NULL OR end_date >= start_date",
            name="chk_project_dates",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    client_name: Mapped[str] = mapped_column(String(200), nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    # Statut planning du projet (texte libre) / Project-level schedule status (free text)
    schedule_status: Mapped[str | None] = mapped_column(String(30))
    # Contact client / Customer point of contact
    poc_name: Mapped[str | None] = mapped_column(String(150))
    poc_email: Mapped[str | None] = mapped_column(String(150))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Relations
    assignments: Mapped[list["Assignment"]] = relationship(
        back_populates="project", cascade="all, delete-orphan", order_by="Assignment.id"
    )

    def __repr__(self) -> str:
        return f"<Project {self.client_name} {self.start_date}..{self.end_date}>"
