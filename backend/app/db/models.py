import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    Uuid,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base


class AssessmentType(str, enum.Enum):
    INTAKE = "intake"
    FOLLOWUP = "followup"
    CRISIS = "crisis"
    ROUTINE = "routine"


class VerificationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


def _json_column():
    return JSON().with_variant(JSONB, "postgresql")


_ACTIVE_SLOT_CLAUSE = "status IN ('scheduled', 'confirmed', 'completed')"


class AssessmentRecord(Base):
    """One point of a patient's longitudinal history. Rows are never updated."""

    __tablename__ = "assessment_record"
    __table_args__ = (
        CheckConstraint("overall_score >= 0 AND overall_score <= 100", name="ck_assessment_record_overall_0_100"),
        Index("ix_assessment_record_patient_assessed", "patient_id", "assessed_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    patient_id: Mapped[str] = mapped_column(String(64), nullable=False)
    assessed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    overall_score: Mapped[float] = mapped_column(Float, nullable=False)
    categories: Mapped[dict[str, float]] = mapped_column(_json_column(), nullable=False)
    assessment_type: Mapped[AssessmentType] = mapped_column(
        SQLEnum(AssessmentType, name="assessment_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    treatment_changes: Mapped[list[str]] = mapped_column(_json_column(), nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Doctor(Base):
    __tablename__ = "doctor"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    specialty: Mapped[str] = mapped_column(String(120), nullable=False)
    license_number: Mapped[str] = mapped_column(String(64), nullable=False)
    experience_years: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    consultation_fee: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    languages: Mapped[list[str]] = mapped_column(_json_column(), nullable=False, default=list)
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    availability: Mapped[dict[str, dict]] = mapped_column(_json_column(), nullable=False)
    verification_status: Mapped[VerificationStatus] = mapped_column(
        SQLEnum(VerificationStatus, name="verification_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=VerificationStatus.PENDING,
    )
    review_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    appointments: Mapped[list["Appointment"]] = relationship(back_populates="doctor", cascade="all, delete-orphan")


class Appointment(Base):
    __tablename__ = "appointment"
    __table_args__ = (
        Index("ix_appointment_doctor_scheduled", "doctor_id", "scheduled_at"),
        # One active booking per slot; cancelled and no-show rows release it.
        Index(
            "uq_appointment_doctor_active_slot",
            "doctor_id",
            "scheduled_at",
            unique=True,
            postgresql_where=text(_ACTIVE_SLOT_CLAUSE),
            sqlite_where=text(_ACTIVE_SLOT_CLAUSE),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("doctor.id", ondelete="CASCADE"),
        nullable=False,
    )
    patient_id: Mapped[str] = mapped_column(String(64), nullable=False)
    patient_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    # Naive local clinic time; slot strings ("HH:MM") are derived from it.
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        SQLEnum(AppointmentStatus, name="appointment_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    doctor: Mapped["Doctor"] = relationship(back_populates="appointments")
