"""
Schémas Affectation / Assignment schemas.
Affectations, jours, dates exclues et résultats par élément.
Assignments, days, excluded dates and per-item results.
"""

from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field

from staffing.models.assignment import BookingStatus
from staffing.schemas.conflict import ConflictRead
from staffing.schemas.user import UserBrief


# --- Jours / Days ---
class DayInput(BaseModel):
    date: date
    start_time: time | None = None  # défaut / default DEFAULT_START_TIME
    end_time: time | None = None


class AddDaysRequest(BaseModel):
    days: list[DayInput] = Field(min_length=1)


class DayRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    assignment_id: int
    work_date: date
    start_time: time
    end_time: time


class DayWriteResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    date: date
    success: bool
    day_id: int | None = None
    error: str | None = None
    message: str | None = None
    conflict_ids: list[int] = []


class AddDaysResponse(BaseModel):
    written: int
    rejected: int
    results: list[DayWriteResultRead]
    conflicts: list[ConflictRead]


class DayTimeUpdate(BaseModel):
    start_time: time
    end_time: time


class DayMoveRequest(BaseModel):
    new_date: date


class MoveDayResponse(BaseModel):
    day: DayRead
    conflicts: list[ConflictRead]


class IdsRequest(BaseModel):
    ids: list[int]


class RemovedResponse(BaseModel):
    removed: list[int]


# --- Dates exclues / Excluded dates ---
class ExcludeDatesRequest(BaseModel):
    dates: list[date] = Field(min_length=1)
    reason: str | None = None


class ExcludedDateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    excluded_date: date
    reason: str | None


class ExclusionResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    date: date
    success: bool
    excluded_date_id: int | None = None
    already_excluded: bool = False
    day_exists: bool = False
    error: str | None = None


# --- Affectations / Assignments ---
class AssignmentCreate(BaseModel):
    project_id: int
    user_id: int
    initial_status: BookingStatus = BookingStatus.DRAFT
    notes: str | None = None


class AssignmentBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    project_id: int
    user_id: int
    booking_status: BookingStatus
    user: UserBrief


class AssignmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    project_id: int
    user_id: int
    booking_status: BookingStatus
    notes: str | None
    created_at: datetime
    updated_at: datetime
    user: UserBrief
    days: list[DayRead]
    excluded_dates: list[ExcludedDateRead]


class CreateAssignmentResponse(BaseModel):
    assignment: AssignmentRead
    conflicts: list[ConflictRead]


class StatusChangeRequest(BaseModel):
    note: str | None = None


class StatusHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    old_status: str | None
    new_status: str
    changed_by: int | None
    note: str | None
    changed_at: datetime


class ReminderRequest(BaseModel):
    work_date: date


class ReminderResponse(BaseModel):
    work_date: date
    sent: int
