import logging
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.db import crud
from app.db.models import Doctor, VerificationStatus
from app.db.session import get_db
from app.schemas.doctor import DoctorCreateRequest, DoctorOut, DoctorVerificationRequest, WeeklyAvailability
from app.services.availability import has_any_available_day, off_grid_slots
from app.services.email_sender import EmailSenderError, send_verification_decision_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["doctor"])
admin_router = APIRouter(prefix="/admin/doctors", tags=["admin"])


def to_doctor_out(doctor: Doctor) -> DoctorOut:
    return DoctorOut(
        id=doctor.id,
        name=doctor.name,
        email=doctor.email,
        specialty=doctor.specialty,
        license_number=doctor.license_number,
        experience_years=doctor.experience_years,
        consultation_fee=float(doctor.consultation_fee),
        languages=list(doctor.languages or []),
        bio=doctor.bio,
        availability=WeeklyAvailability.model_validate(doctor.availability),
        verification_status=doctor.verification_status.value,
        review_note=doctor.review_note,
        reviewed_at=doctor.reviewed_at,
        created_at=doctor.created_at,
    )


async def get_doctor_or_404(doctor_id: UUID, db: AsyncSession) -> Doctor:
    doctor = await crud.get_doctor_by_id(db, doctor_id)
    if not doctor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Doctor not found")
    return doctor


@router.post("", response_model=DoctorOut, status_code=status.HTTP_201_CREATED)
async def register_doctor(payload: DoctorCreateRequest, db: AsyncSession = Depends(get_db)) -> DoctorOut:
    # Request Example:
    # POST /doctors
    # {"name":"Dr. Ana Ruiz","email":"ana@example.com","specialty":"Clinical Psychology","license_number":"LIC-2291",
    #  "availability":{"monday":{"available":true,"slots":["09:00","09:30"]}}}
    #
    # Response Example:
    # 201
    # {"id":"...","name":"Dr. Ana Ruiz","verification_status":"pending",...}
    availability = payload.availability.model_dump()
    if not has_any_available_day(availability):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Please select at least one available day",
        )
    invalid_slots = off_grid_slots(availability)
    if invalid_slots:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Slot times outside the clinic schedule: {', '.join(invalid_slots)}",
        )

    email = payload.email.lower()
    if await crud.get_doctor_by_email(db, email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A doctor with this email is already registered.")

    doctor = await crud.create_doctor(
        db,
        name=payload.name,
        email=email,
        specialty=payload.specialty,
        license_number=payload.license_number,
        experience_years=payload.experience_years,
        consultation_fee=payload.consultation_fee,
        languages=list(payload.languages),
        bio=payload.bio,
        availability=availability,
    )
    logger.info("doctor application %s received", doctor.id)
    return to_doctor_out(doctor)


@router.get("", response_model=list[DoctorOut])
async def list_doctors(
    verification_status: Literal["pending", "approved", "rejected"] | None = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> list[DoctorOut]:
    status_filter = VerificationStatus(verification_status) if verification_status else None
    return [to_doctor_out(row) for row in await crud.list_doctors(db, status_filter)]


@router.get("/{doctor_id}", response_model=DoctorOut)
async def get_doctor(doctor_id: UUID, db: AsyncSession = Depends(get_db)) -> DoctorOut:
    return to_doctor_out(await get_doctor_or_404(doctor_id, db))


@admin_router.patch("/{doctor_id}/verification", response_model=DoctorOut)
async def review_doctor_application(
    doctor_id: UUID,
    payload: DoctorVerificationRequest,
    db: AsyncSession = Depends(get_db),
) -> DoctorOut:
    # Request Example:
    # PATCH /admin/doctors/<id>/verification
    # {"status":"approved","note":"License verified"}
    doctor = await get_doctor_or_404(doctor_id, db)
    if doctor.verification_status != VerificationStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Application already {doctor.verification_status.value}.",
        )

    decision = VerificationStatus(payload.status)
    doctor = await crud.review_doctor(db, doctor, decision, payload.note)
    logger.info("doctor %s application %s", doctor.id, decision.value)

    try:
        await run_in_threadpool(
            send_verification_decision_email,
            to_email=doctor.email,
            doctor_name=doctor.name,
            approved=decision == VerificationStatus.APPROVED,
            note=payload.note,
        )
    except EmailSenderError:
        logger.exception("verification decision email failed for doctor %s", doctor.id)

    return to_doctor_out(doctor)
