import asyncio
import os
import sys
from datetime import date, datetime, time, timedelta
from pathlib import Path
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_neurona.db"

from app.db import crud  # noqa: E402
from app.db.models import AppointmentStatus  # noqa: E402
from app.db.session import Base, SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402

DOCTOR_PAYLOAD = {
    "name": "Dr. Ana Ruiz",
    "email": "ana.ruiz@example.com",
    "specialty": "Clinical Psychology",
    "license_number": "LIC-2291",
    "experience_years": 8,
    "consultation_fee": 120,
    "languages": ["English", "Spanish"],
    "availability": {
        "monday": {"available": True, "slots": []},
        "tuesday": {"available": True, "slots": ["09:00", "09:30"]},
    },
}


def _next_monday() -> date:
    start = date.today() + timedelta(days=7)
    return start + timedelta(days=(7 - start.weekday()) % 7)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
async def setup_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


async def _approved_doctor(client: AsyncClient) -> dict:
    created = await client.post("/doctors", json=DOCTOR_PAYLOAD)
    assert created.status_code == 201
    doctor = created.json()
    reviewed = await client.patch(f"/admin/doctors/{doctor['id']}/verification", json={"status": "approved"})
    assert reviewed.status_code == 200
    return reviewed.json()


@pytest.mark.anyio
async def test_doctor_registration_and_review() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        created = await client.post("/doctors", json=DOCTOR_PAYLOAD)
        assert created.status_code == 201
        doctor = created.json()
        assert doctor["verification_status"] == "pending"
        assert doctor["availability"]["monday"]["available"] is True
        assert doctor["availability"]["sunday"] == {"available": False, "slots": []}

        duplicate = await client.post("/doctors", json={**DOCTOR_PAYLOAD, "email": "ANA.RUIZ@example.com"})
        assert duplicate.status_code == 409

        pending = await client.get("/doctors", params={"status": "pending"})
        assert [item["id"] for item in pending.json()] == [doctor["id"]]

        rejected = await client.patch(
            f"/admin/doctors/{doctor['id']}/verification",
            json={"status": "rejected", "note": "License could not be verified"},
        )
        assert rejected.status_code == 200
        assert rejected.json()["verification_status"] == "rejected"
        assert rejected.json()["review_note"] == "License could not be verified"
        assert rejected.json()["reviewed_at"] is not None

        again = await client.patch(f"/admin/doctors/{doctor['id']}/verification", json={"status": "approved"})
        assert again.status_code == 409

        assert (await client.get("/doctors", params={"status": "pending"})).json() == []


@pytest.mark.anyio
async def test_doctor_registration_requires_an_available_day() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        res = await client.post("/doctors", json={**DOCTOR_PAYLOAD, "availability": {}})
        assert res.status_code == 422
        assert res.json()["detail"] == "Please select at least one available day"

        bad_slot = await client.post(
            "/doctors",
            json={**DOCTOR_PAYLOAD, "availability": {"monday": {"available": True, "slots": ["9am"]}}},
        )
        assert bad_slot.status_code == 422


@pytest.mark.anyio
async def test_doctor_registration_rejects_slots_off_the_clinic_grid() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        res = await client.post(
            "/doctors",
            json={**DOCTOR_PAYLOAD, "availability": {"monday": {"available": True, "slots": ["09:00", "09:15", "19:00"]}}},
        )
        assert res.status_code == 422
        assert res.json()["detail"] == "Slot times outside the clinic schedule: 09:15, 19:00"
        assert (await client.get("/doctors")).json() == []


@pytest.mark.anyio
async def test_unknown_doctor_returns_404() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        missing = "00000000-0000-0000-0000-000000000000"
        assert (await client.get(f"/doctors/{missing}")).status_code == 404
        res = await client.get("/booking/availability", params={"doctor_id": missing, "date": "2030-01-07"})
        assert res.status_code == 404


@pytest.mark.anyio
async def test_month_calendar_endpoint() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        doctor = await _approved_doctor(client)
        monday = _next_monday()

        res = await client.get(
            f"/booking/doctors/{doctor['id']}/calendar",
            params={"year": monday.year, "month": monday.month, "selected": monday.isoformat()},
        )
        assert res.status_code == 200
        data = res.json()
        assert data["week_days"][0] == "Sun"

        days = [cell for cell in data["days"] if cell is not None]
        leading = len(data["days"]) - len(days)
        assert leading == (date(monday.year, monday.month, 1).weekday() + 1) % 7
        by_date = {cell["date"]: cell for cell in days}
        assert by_date[monday.isoformat()]["is_available"] is True
        assert by_date[monday.isoformat()]["is_selected"] is True

        bad_month = await client.get(f"/booking/doctors/{doctor['id']}/calendar", params={"year": 2030, "month": 13})
        assert bad_month.status_code == 422


@pytest.mark.anyio
async def test_booking_flow_marks_slot_taken() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        doctor = await _approved_doctor(client)
        monday = _next_monday()
        starts_at = datetime.combine(monday, time(10, 0))

        before = await client.get("/booking/availability", params={"doctor_id": doctor["id"], "date": monday.isoformat()})
        assert before.status_code == 200
        slots = {slot["time"]: slot["available"] for slot in before.json()["slots"]}
        assert len(slots) == 18
        assert slots["10:00"] is True

        booked = await client.post(
            "/booking/appointments",
            json={
                "doctor_id": doctor["id"],
                "patient_id": "p-001",
                "patient_email": "patient@example.com",
                "scheduled_at": starts_at.isoformat(),
            },
        )
        assert booked.status_code == 201
        appointment = booked.json()
        assert appointment["status"] == "scheduled"
        assert appointment["time"] == "10:00"
        assert appointment["duration_minutes"] == 30

        after = await client.get("/booking/availability", params={"doctor_id": doctor["id"], "date": monday.isoformat()})
        slots = {slot["time"]: slot["available"] for slot in after.json()["slots"]}
        assert slots["10:00"] is False
        assert slots["10:30"] is True

        double = await client.post(
            "/booking/appointments",
            json={"doctor_id": doctor["id"], "patient_id": "p-002", "scheduled_at": starts_at.isoformat()},
        )
        assert double.status_code == 409

        schedule = await client.get(f"/booking/doctors/{doctor['id']}/appointments", params={"date": monday.isoformat()})
        assert [item["patient_id"] for item in schedule.json()] == ["p-001"]


@pytest.mark.anyio
async def test_booking_rejects_unverified_doctor_and_closed_slots() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        pending = (await client.post("/doctors", json=DOCTOR_PAYLOAD)).json()
        monday = _next_monday()
        at_ten = datetime.combine(monday, time(10, 0)).isoformat()

        res = await client.post("/booking/appointments", json={"doctor_id": pending["id"], "patient_id": "p-1", "scheduled_at": at_ten})
        assert res.status_code == 409

        await client.patch(f"/admin/doctors/{pending['id']}/verification", json={"status": "approved"})

        tuesday_unlisted = datetime.combine(monday + timedelta(days=1), time(11, 0)).isoformat()
        res = await client.post(
            "/booking/appointments",
            json={"doctor_id": pending["id"], "patient_id": "p-1", "scheduled_at": tuesday_unlisted},
        )
        assert res.status_code == 409

        sunday = datetime.combine(monday - timedelta(days=1), time(10, 0)).isoformat()
        res = await client.post("/booking/appointments", json={"doctor_id": pending["id"], "patient_id": "p-1", "scheduled_at": sunday})
        assert res.status_code == 409

        past = datetime.combine(date(2020, 1, 6), time(10, 0)).isoformat()
        res = await client.post("/booking/appointments", json={"doctor_id": pending["id"], "patient_id": "p-1", "scheduled_at": past})
        assert res.status_code == 409


@pytest.mark.anyio
async def test_appointment_status_transitions_free_the_slot() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        doctor = await _approved_doctor(client)
        monday = _next_monday()
        at_nine = datetime.combine(monday, time(9, 0)).isoformat()

        appointment = (
            await client.post("/booking/appointments", json={"doctor_id": doctor["id"], "patient_id": "p-1", "scheduled_at": at_nine})
        ).json()

        skip = await client.patch(f"/booking/appointments/{appointment['id']}", json={"status": "completed"})
        assert skip.status_code == 409

        cancelled = await client.patch(f"/booking/appointments/{appointment['id']}", json={"status": "cancelled"})
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"

        rebooked = await client.post(
            "/booking/appointments",
            json={"doctor_id": doctor["id"], "patient_id": "p-2", "scheduled_at": at_nine},
        )
        assert rebooked.status_code == 201

        confirmed = await client.patch(f"/booking/appointments/{rebooked.json()['id']}", json={"status": "confirmed"})
        assert confirmed.json()["status"] == "confirmed"
        done = await client.patch(f"/booking/appointments/{rebooked.json()['id']}", json={"status": "completed"})
        assert done.json()["status"] == "completed"

        missing = await client.patch("/booking/appointments/00000000-0000-0000-0000-000000000000", json={"status": "cancelled"})
        assert missing.status_code == 404


@pytest.mark.anyio
async def test_simultaneous_bookings_for_one_slot_admit_only_one() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        doctor = await _approved_doctor(client)
        monday = _next_monday()
        at_ten = datetime.combine(monday, time(10, 0)).isoformat()

        first, second = await asyncio.gather(
            client.post("/booking/appointments", json={"doctor_id": doctor["id"], "patient_id": "p-a", "scheduled_at": at_ten}),
            client.post("/booking/appointments", json={"doctor_id": doctor["id"], "patient_id": "p-b", "scheduled_at": at_ten}),
        )
        assert sorted([first.status_code, second.status_code]) == [201, 409]

        schedule = await client.get(f"/booking/doctors/{doctor['id']}/appointments", params={"date": monday.isoformat()})
        assert len(schedule.json()) == 1


@pytest.mark.anyio
async def test_database_allows_one_active_appointment_per_slot() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        doctor = await _approved_doctor(client)
    starts_at = datetime.combine(_next_monday(), time(11, 0))
    doctor_id = UUID(doctor["id"])
    fields = {"scheduled_at": starts_at, "duration_minutes": 30, "patient_email": None, "notes": None}

    async with SessionLocal() as db:
        first_id = (await crud.create_appointment(db, doctor_id=doctor_id, patient_id="p-1", **fields)).id
        with pytest.raises(IntegrityError):
            await crud.create_appointment(db, doctor_id=doctor_id, patient_id="p-2", **fields)
        await db.rollback()

        first = await crud.get_appointment_by_id(db, first_id)
        await crud.update_appointment_status(db, first, AppointmentStatus.CANCELLED)
        rebooked = await crud.create_appointment(db, doctor_id=doctor_id, patient_id="p-3", **fields)
        assert rebooked.status == AppointmentStatus.SCHEDULED
