from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, confloat, conint, constr

EmailStrLite = constr(min_length=5, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
NameStr = constr(min_length=1, max_length=120)
SlotTimeStr = constr(pattern=r"^([01][0-9]|2[0-3]):[0-5][0-9]$")
VerificationStatusName = Literal["pending", "approved", "rejected"]


class DayAvailability(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    available: bool = False
    slots: list[SlotTimeStr] = Field(default_factory=list)


class WeeklyAvailability(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    monday: DayAvailability = Field(default_factory=DayAvailability)
    tuesday: DayAvailability = Field(default_factory=DayAvailability)
    wednesday: DayAvailability = Field(default_factory=DayAvailability)
    thursday: DayAvailability = Field(default_factory=DayAvailability)
    friday: DayAvailability = Field(default_factory=DayAvailability)
    saturday: DayAvailability = Field(default_factory=DayAvailability)
    sunday: DayAvailability = Field(default_factory=DayAvailability)


class DoctorCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    name: NameStr
    email: EmailStrLite
    specialty: constr(min_length=2, max_length=120)
    license_number: constr(min_length=3, max_length=64)
    experience_years: conint(ge=0, le=70) = 0
    consultation_fee: confloat(ge=0) = 0
    languages: list[constr(min_length=1, max_length=40)] = Field(default_factory=list)
    bio: constr(max_length=2000) = ""
    availability: WeeklyAvailability


class DoctorVerificationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    status: Literal["approved", "rejected"]
    note: constr(max_length=1000) | None = None


class DoctorOut(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    id: UUID
    name: str
    email: str
    specialty: str
    license_number: str
    experience_years: int
    consultation_fee: float
    languages: list[str]
    bio: str
    availability: WeeklyAvailability
    verification_status: VerificationStatusName
    review_note: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
