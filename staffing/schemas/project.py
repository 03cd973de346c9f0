"""Schémas Projet / Project schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class ProjectBase(BaseModel):
    client_name: str = Field(min_length=1, max_length=200)
    start_date: date | None = None
    end_date: date | None = None
    schedule_status: str | None = Field(default=None, max_length=30)
    poc_name: str | None = None
    poc_email: EmailStr | None = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    client_name: str | None = Field(default=None, min_length=1, max_length=200)
    start_date: date | None = None
    end_date: date | None = None
    poc_name: str | None = None
    poc_email: EmailStr | None = None


class ProjectRead(ProjectBase):
    model_config = ConfigDict(from_attributes=True)
    id: int
    poc_email: str | None = None
    created_at: datetime


class ProjectDays(BaseModel):
    """Jours planifiables de la plage du projet / Schedulable days in the project range."""
    project_id: int
    duration_days: int  # jours calendaires de la plage / calendar days in the range
    count: int
    days: list[date]
