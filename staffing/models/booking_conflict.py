"""Modèle Conflit de réservation / Booking conflict model."""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from staffing.database import Base


class BookingConflict(Base):
    """Double réservation d'une personne à une date / Double booking of a person on a date.

    assignment_id_1 = affectation nouvellement écrite / newly written assignment
    assignment_id_2 = affectation pré-existante / pre-existing assignment
    Jamais supprimé, seulement résolu / Never deleted, only resolved.
    """
    __tablename__ = "booking_conflicts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    conflict_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    assignment_id_1: Mapped[int | None] = mapped_column(
        ForeignKey("project_assignments.id", ondelete="SET NULL")
    )
    assignment_id_2: Mapped[int | None] = mapped_column(
        ForeignKey("project_assignments.id", ondelete="SET NULL")
    )
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    override_reason: Mapped[str | None] = mapped_column(Text)
    overridden_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    overridden_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    def __repr__(self) -> str:
        return (
            f"<BookingConflict user={self.user_id} date={self.conflict_date} "
            f"{self.assignment_id_1}<->{self.assignment_id_2}>"
        )
