from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, constr

from app.schemas.doctor import EmailStrLite

AppointmentStatusName = Literal["scheduled", "confirmed", "completed", "cancelled", "no-show"]


class CalendarDayOut(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    date: date
    day: int
    is_past: bool
    is_today: bool
    is_selected: bool
    is_weekend: bool
    is_available: bool


class MonthCalendarResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    doctor_id: UUID
    year: int
    month: int
    week_days: list[str] = Field(default_factory=lambda: ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"])
    # None cells pad the first week so the grid starts on Sunday.
    days: list[CalendarDayOut | None]


class TimeSlotOut(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    time: str
    available: bool


class DayAvailabilityResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    doctor_id: UUID
    date: date
    slot_minutes: int
    slots: list[TimeSlotOut]


class AppointmentCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    doctor_id: UUID = Field(strict=False)
    patient_id: constr(min_length=1, max_length=64)
    patient_email: EmailStrLite | None = None
    # Local clinic time; any timezone offset is ignored.
    scheduled_at: datetime = Field(strict=False)
    notes: constr(max_length=1000) | None = None


class AppointmentStatusUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    status: AppointmentStatusName


class AppointmentOut(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    id: UUID
    doctor_id: UUID
    patient_id: str
    patient_email: str | None
    scheduled_at: datetime
    time: str
    duration_minutes: int
    status: AppointmentStatusName
    notes: str | None
    created_at: datetime
