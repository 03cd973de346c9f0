"""
Schémas Utilisateur / User schemas.
Comptes, profil connecté et planning personnel.
Accounts, current profile and personal schedule.
"""

from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from staffing.models.assignment import BookingStatus


class RoleBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    email: EmailStr
    full_name: str | None = None
    password: str = Field(min_length=8, max_length=200)
    is_active: bool = True
    is_assignable: bool = True
    role_ids: list[int] = []


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    username: str
    email: str
    full_name: str | None
    display_name: str
    is_active: bool
    is_superadmin: bool
    is_assignable: bool
    roles: list[RoleBrief]
    created_at: datetime


class UserBrief(BaseModel):
    """Personne affectable (sélecteur) / Assignable person (picker)."""
    model_config = ConfigDict(from_attributes=True)
    id: int
    username: str
    display_name: str
    email: str


class UserMe(BaseModel):
    """Profil avec permissions aplaties / Profile with flat permissions."""
    id: int
    username: str
    email: str
    display_name: str
    is_superadmin: bool
    roles: list[RoleBrief]
    permissions: list[str]  # ["assignments:read", "conflicts:update", ...]


class ScheduleEntry(BaseModel):
    """Un jour du planning personnel / One day of a personal schedule."""
    day_id: int
    work_date: date
    start_time: time
    end_time: time
    assignment_id: int
    project_id: int
    project_name: str
    booking_status: BookingStatus
