import logging
from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.api.routes_doctor import get_doctor_or_404
from app.core.config import settings
from app.db import crud
from app.db.models import Appointment, AppointmentStatus, VerificationStatus
from app.db.session import get_db
from app.schemas.booking import (
    AppointmentCreateRequest,
    AppointmentOut,
    AppointmentStatusUpdateRequest,
    CalendarDayOut,
    DayAvailabilityResponse,
    MonthCalendarResponse,
    TimeSlotOut,
)
from app.services.appointments import InvalidStatusTransitionError, check_transition
from app.services.availability import (
    SlotUnavailableError,
    build_month_calendar,
    ensure_slot_bookable,
    generate_day_slots,
)
from app.services.email_sender import EmailSenderError, send_appointment_confirmation_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/booking", tags=["booking"])


def _to_appointment_out(row: Appointment) -> AppointmentOut:
    return AppointmentOut(
        id=row.id,
        doctor_id=row.doctor_id,
        patient_id=row.patient_id,
        patient_email=row.patient_email,
        scheduled_at=row.scheduled_at,
        time=row.scheduled_at.strftime("%H:%M"),
        duration_minutes=row.duration_minutes,
        status=row.status.value,
        notes=row.notes,
        created_at=row.created_at,
    )


async def _booked_times(db: AsyncSession, doctor_id: UUID, day: date) -> list[str]:
    rows = await crud.list_doctor_appointments_on(db, doctor_id, day, active_only=True)
    return [row.scheduled_at.strftime("%H:%M") for row in rows]


@router.get("/doctors/{doctor_id}/calendar", response_model=MonthCalendarResponse)
async def get_month_calendar(
    doctor_id: UUID,
    year: int = Query(ge=2000, le=2100),
    month: int = Query(ge=1, le=12),
    selected: date | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> MonthCalendarResponse:
    # Request Example:
    # GET /booking/doctors/<id>/calendar?year=2030&month=1
    #
    # Response Example:
    # 200
    # {"doctor_id":"...","year":2030,"month":1,"week_days":["Sun",...],"days":[null,null,{"date":"2030-01-01",...}]}
    doctor = await get_doctor_or_404(doctor_id, db)
    cells = build_month_calendar(year, month, doctor.availability, date.today(), selected)
    return MonthCalendarResponse(
        doctor_id=doctor.id,
        year=year,
        month=month,
        days=[CalendarDayOut(**cell) if cell else None for cell in cells],
    )


@router.get("/availability", response_model=DayAvailabilityResponse)
async def get_day_availability(
    doctor_id: UUID = Query(...),
    day: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
) -> DayAvailabilityResponse:
    # Request Example:
    # GET /booking/availability?doctor_id=<id>&date=2030-01-07
    #
    # Response Example:
    # 200
    # {"doctor_id":"...","date":"2030-01-07","slot_minutes":30,"slots":[{"time":"09:00","available":true},...]}
    doctor = await get_doctor_or_404(doctor_id, db)
    booked = await _booked_times(db, doctor.id, day)
    slots = generate_day_slots(day, doctor.availability, booked, datetime.now())
    return DayAvailabilityResponse(
        doctor_id=doctor.id,
        date=day,
        slot_minutes=settings.slot_minutes,
        slots=[TimeSlotOut(**slot) for slot in slots],
    )


@router.post("/appointments", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
async def book_appointment(payload: AppointmentCreateRequest, db: AsyncSession = Depends(get_db)) -> AppointmentOut:
    # Request Example:
    # POST /booking/appointments
    # {"doctor_id":"...","patient_id":"p-001","patient_email":"pat@example.com","scheduled_at":"2030-01-07T10:00:00"}
    doctor = await get_doctor_or_404(payload.doctor_id, db)
    if doctor.verification_status != VerificationStatus.APPROVED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Doctor is not accepting bookings.")

    starts_at = payload.scheduled_at.replace(tzinfo=None)
    booked = await _booked_times(db, doctor.id, starts_at.date())
    try:
        ensure_slot_bookable(starts_at, doctor.availability, booked, datetime.now())
    except SlotUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    try:
        row = await crud.create_appointment(
            db,
            doctor_id=doctor.id,
            patient_id=payload.patient_id,
            patient_email=payload.patient_email,
            scheduled_at=starts_at,
            duration_minutes=settings.slot_minutes,
            notes=payload.notes,
        )
    except IntegrityError as exc:
        # A concurrent booking took the slot between the check and the insert.
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slot unavailable.") from exc

    logger.info("appointment %s booked with doctor %s at %s", row.id, doctor.id, starts_at.isoformat())

    if row.patient_email:
        try:
            await run_in_threadpool(
                send_appointment_confirmation_email,
                to_email=row.patient_email,
                doctor_name=doctor.name,
                starts_at=starts_at,
                duration_minutes=row.duration_minutes,
            )
        except EmailSenderError:
            logger.exception("confirmation email failed for appointment %s", row.id)

    return _to_appointment_out(row)


@router.get("/doctors/{doctor_id}/appointments", response_model=list[AppointmentOut])
async def list_doctor_schedule(
    doctor_id: UUID,
    day: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
) -> list[AppointmentOut]:
    doctor = await get_doctor_or_404(doctor_id, db)
    rows = await crud.list_doctor_appointments_on(db, doctor.id, day)
    return [_to_appointment_out(row) for row in rows]


@router.patch("/appointments/{appointment_id}", response_model=AppointmentOut)
async def update_appointment_status(
    appointment_id: UUID,
    payload: AppointmentStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> AppointmentOut:
    row = await crud.get_appointment_by_id(db, appointment_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")

    target = AppointmentStatus(payload.status)
    try:
        check_transition(row.status, target)
    except InvalidStatusTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    row = await crud.update_appointment_status(db, row, target)
    logger.info("appointment %s is now %s", row.id, target.value)
    return _to_appointment_out(row)
