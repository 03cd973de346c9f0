"""Modèle Affectation / Assignment model."""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staffing.database import Base


class BookingStatus(str, enum.Enum):
    """Niveau de confiance de la réservation / Booking confidence level."""
    DRAFT = "draft"
    TENTATIVE = "tentative"
    PENDING_CONFIRM = "pending_confirm"
    CONFIRMED = "confirmed"
    COMPLETE = "complete"


class Assignment(Base):
    """Une personne planifiée sur un projet / A person scheduled on a project."""
    __tablename__ = "project_assignments"
    # Une seule affectation active par (projet, personne) / One active assignment per (project, user)
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_assignment_project_user"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    booking_status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), default=BookingStatus.DRAFT, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relations
    project: Mapped["Project"] = relationship(back_populates="assignments")
    user: Mapped["User"] = relationship(foreign_keys=[user_id])
    days: Mapped[list["AssignmentDay"]] = relationship(
        back_populates="assignment", cascade="all, delete-orphan", order_by="AssignmentDay.work_date"
    )
    excluded_dates: Mapped[list["ExcludedDate"]] = relationship(
        back_populates="assignment", cascade="all, delete-orphan", order_by="ExcludedDate.excluded_date"
    )
    status_history: Mapped[list["BookingStatusHistory"]] = relationship(
        back_populates="assignment", cascade="all, delete-orphan", order_by="BookingStatusHistory.id"
    )

    def __repr__(self) -> str:
        return f"<Assignment project={self.project_id} user={self.user_id} {self.booking_status.value}>"
