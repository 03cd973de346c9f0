"""Modèle Demande de confirmation client / Customer confirmation request model."""

import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staffing.database import Base

# Table de jonction Demande <-> Affectation / Junction table Request <-> Assignment
confirmation_request_assignments = Table(
    "confirmation_request_assignments",
    Base.metadata,
    Column(
        "confirmation_request_id",
        ForeignKey("confirmation_requests.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("assignment_id", ForeignKey("project_assignments.id", ondelete="CASCADE"), primary_key=True),
)


class ConfirmationStatus(str, enum.Enum):
    """Statut de la demande / Request status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    EXPIRED = "expired"


class ConfirmationRequest(Base):
    __tablename__ = "confirmation_requests"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    sent_to_email: Mapped[str] = mapped_column(String(150), nullable=False)
    sent_to_name: Mapped[str | None] = mapped_column(String(150))
    status: Mapped[ConfirmationStatus] = mapped_column(
        Enum(ConfirmationStatus), default=ConfirmationStatus.PENDING, nullable=False
    )
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    sent_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)  # sent_at + 7 jours / days
    responded_at: Mapped[datetime | None] = mapped_column(DateTime)
    decline_reason: Mapped[str | None] = mapped_column(Text)

    # Relations
    project: Mapped["Project"] = relationship()
    assignments: Mapped[list["Assignment"]] = relationship(
        secondary=confirmation_request_assignments, lazy="selectin", order_by="Assignment.id"
    )

    def __repr__(self) -> str:
        return f"<ConfirmationRequest project={self.project_id} {self.status.value}>"
