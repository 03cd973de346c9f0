"""
Schémas Demande de confirmation / Confirmation request schemas.
Vue interne (planificateur) et vue publique (client, par token).
Internal view (scheduler) and public view (customer, by token).
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from staffing.models.assignment import BookingStatus
from staffing.models.confirmation_request import ConfirmationStatus


class ConfirmationCreate(BaseModel):
    project_id: int
    assignment_ids: list[int] = Field(min_length=1)
    # Validé par le service (email-validator) / Validated by the service (email-validator)
    email: str
    name: str | None = None


class ConfirmationAssignment(BaseModel):
    assignment_id: int
    user_name: str
    booking_status: BookingStatus


class ConfirmationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    project_id: int
    token: str
    sent_to_email: str
    sent_to_name: str | None
    status: ConfirmationStatus
    sent_at: datetime
    expires_at: datetime
    responded_at: datetime | None
    decline_reason: str | None
    assignment_ids: list[int]
    confirm_url: str
    is_expired: bool


class ConfirmationPublicView(BaseModel):
    """Ce que voit le client / What the customer sees."""
    project_name: str
    start_date: date | None
    end_date: date | None
    sent_to_name: str | None
    status: ConfirmationStatus
    expires_at: datetime
    is_expired: bool
    assignments: list[ConfirmationAssignment]


class ConfirmationAnswer(BaseModel):
    accept: bool
    decline_reason: str | None = Field(default=None, max_length=2000)


class CancelConfirmationResponse(BaseModel):
    reverted_assignment_ids: list[int]
