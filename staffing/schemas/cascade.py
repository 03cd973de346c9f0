"""Schémas Cascade de statut projet / Project status cascade schemas."""

from pydantic import BaseModel, ConfigDict, Field

from staffing.models.assignment import BookingStatus


class CascadeCandidateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    assignment_id: int
    user_id: int
    user_name: str
    current_status: BookingStatus
    selected: bool


class CascadeApplyRequest(BaseModel):
    schedule_status: str | None = Field(default=None, max_length=30)
    target_status: BookingStatus
    # None = toutes, [] = aucune / None = all, [] = none
    selected_ids: list[int] | None = None


class CascadeItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    assignment_id: int
    success: bool
    old_status: BookingStatus | None = None
    new_status: BookingStatus | None = None
    error: str | None = None


class CascadeResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    project_id: int
    schedule_status: str | None
    target_status: BookingStatus
    updated: int
    items: list[CascadeItemRead]
