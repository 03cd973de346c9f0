"""Schémas Conflit / Conflict schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class ConflictRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    user_id: int
    conflict_date: date
    assignment_id_1: int | None  # None si l'affectation a été annulée / None once cancelled
    assignment_id_2: int | None
    is_resolved: bool
    override_reason: str | None = None
    overridden_by: int | None = None
    overridden_at: datetime | None = None


class ConflictOverride(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)
