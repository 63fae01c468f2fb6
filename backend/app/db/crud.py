import uuid
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import Select, asc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import (
    Appointment,
    AppointmentStatus,
    AssessmentRecord,
    AssessmentType,
    Doctor,
    VerificationStatus,
)
from app.services.appointments import ACTIVE_STATUSES


async def create_assessment_record(
    db: AsyncSession,
    *,
    patient_id: str,
    assessed_at: datetime,
    overall_score: float,
    categories: dict[str, float],
    assessment_type: AssessmentType,
    notes: str | None,
    treatment_changes: list[str],
) -> AssessmentRecord:
    row = AssessmentRecord(
        patient_id=patient_id,
        assessed_at=assessed_at,
        overall_score=overall_score,
        categories=categories,
        assessment_type=assessment_type,
        notes=notes,
        treatment_changes=treatment_changes,
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


async def list_assessment_records(db: AsyncSession, patient_id: str) -> list[AssessmentRecord]:
    stmt: Select[tuple[AssessmentRecord]] = (
        select(AssessmentRecord)
        .where(AssessmentRecord.patient_id == patient_id)
        .order_by(asc(AssessmentRecord.assessed_at), asc(AssessmentRecord.created_at))
    )
    return list((await db.execute(stmt)).scalars().all())


async def get_assessment_record(db: AsyncSession, patient_id: str, record_id: uuid.UUID) -> AssessmentRecord | None:
    stmt: Select[tuple[AssessmentRecord]] = select(AssessmentRecord).where(
        AssessmentRecord.id == record_id,
        AssessmentRecord.patient_id == patient_id,
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_doctor_by_email(db: AsyncSession, email: str) -> Doctor | None:
    stmt: Select[tuple[Doctor]] = select(Doctor).where(Doctor.email == email)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_doctor_by_id(db: AsyncSession, doctor_id: uuid.UUID) -> Doctor | None:
    stmt: Select[tuple[Doctor]] = select(Doctor).where(Doctor.id == doctor_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def create_doctor(db: AsyncSession, **fields) -> Doctor:
    row = Doctor(verification_status=VerificationStatus.PENDING, **fields)
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


async def list_doctors(db: AsyncSession, status: VerificationStatus | None = None) -> list[Doctor]:
    stmt: Select[tuple[Doctor]] = select(Doctor).order_by(asc(Doctor.created_at), asc(Doctor.name))
    if status is not None:
        stmt = stmt.where(Doctor.verification_status == status)
    return list((await db.execute(stmt)).scalars().all())


async def review_doctor(db: AsyncSession, doctor: Doctor, status: VerificationStatus, note: str | None) -> Doctor:
    doctor.verification_status = status
    doctor.review_note = note
    doctor.reviewed_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(doctor)
    return doctor


async def list_doctor_appointments_on(
    db: AsyncSession,
    doctor_id: uuid.UUID,
    day: date,
    *,
    active_only: bool = False,
) -> list[Appointment]:
    start = datetime.combine(day, time.min)
    stmt: Select[tuple[Appointment]] = (
        select(Appointment)
        .where(
            Appointment.doctor_id == doctor_id,
            Appointment.scheduled_at >= start,
            Appointment.scheduled_at < start + timedelta(days=1),
        )
        .order_by(asc(Appointment.scheduled_at))
    )
    if active_only:
        stmt = stmt.where(Appointment.status.in_(ACTIVE_STATUSES))
    return list((await db.execute(stmt)).scalars().all())


async def create_appointment(
    db: AsyncSession,
    *,
    doctor_id: uuid.UUID,
    patient_id: str,
    patient_email: str | None,
    scheduled_at: datetime,
    duration_minutes: int,
    notes: str | None,
) -> Appointment:
    row = Appointment(
        doctor_id=doctor_id,
        patient_id=patient_id,
        patient_email=patient_email,
        scheduled_at=scheduled_at,
        duration_minutes=duration_minutes,
        status=AppointmentStatus.SCHEDULED,
        notes=notes,
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


async def get_appointment_by_id(db: AsyncSession, appointment_id: uuid.UUID) -> Appointment | None:
    stmt: Select[tuple[Appointment]] = select(Appointment).where(Appointment.id == appointment_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def update_appointment_status(db: AsyncSession, appointment: Appointment, status: AppointmentStatus) -> Appointment:
    appointment.status = status
    await db.commit()
    await db.refresh(appointment)
    return appointment
