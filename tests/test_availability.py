from datetime import time, timedelta

from app.models.appointment import Appointment, AppointmentStatus
from app.models.patient import Patient
from app.services.availability_service import resolve_availability

MORNING_SLOTS = [
    "09:00:00", "09:30:00", "10:00:00", "10:30:00",
    "11:00:00", "11:30:00", "12:00:00", "12:30:00",
]


def _availability(client, doctor_id, day):
    return client.get(
        "/api/v1/appointments/availability",
        params={"doctorId": doctor_id, "date": day.isoformat()},
    )


def _book(client, headers, doctor_id, day, at):
    return client.post(
        "/api/v1/appointments/book",
        json={"doctorId": doctor_id, "date": day.isoformat(), "time": at},
        headers=headers,
    )


class TestAvailability:

    def test_open_day_lists_every_slot(self, client, doctor_id, monday_schedule, next_monday):
        response = _availability(client, doctor_id, next_monday)
        assert response.status_code == 200

        data = response.json()
        assert data["dayOfWeek"] == "Monday"
        assert data["availableSlots"] == MORNING_SLOTS
        assert data["bookedSlots"] == []
        assert data["scheduleStart"] == "09:00"
        assert data["scheduleEnd"] == "13:00"
        assert data["date"] == next_monday.isoformat()

    def test_booked_slot_is_excluded(self, client, doctor_id, monday_schedule, next_monday, patient_headers):
        assert _book(client, patient_headers, doctor_id, next_monday, "10:00:00").status_code == 201

        data = _availability(client, doctor_id, next_monday).json()
        assert "10:00:00" not in data["availableSlots"]
        assert len(data["availableSlots"]) == 7
        assert data["bookedSlots"] == ["10:00:00"]

    def test_cancelled_appointments_free_the_slot(
        self, client, db_session, doctor_id, monday_schedule, next_monday, patient_headers
    ):
        patient = db_session.query(Patient).first()
        db_session.add(Appointment(
            doctor_id=doctor_id,
            patient_id=patient.id,
            appointment_date=next_monday,
            appointment_time=time(11, 0),
            status=AppointmentStatus.CANCELLED,
        ))
        db_session.commit()

        data = _availability(client, doctor_id, next_monday).json()
        assert data["availableSlots"] == MORNING_SLOTS
        assert data["bookedSlots"] == []

    def test_day_without_schedule_is_rejected_with_empty_payload(self, client, doctor_id, monday_schedule, next_monday):
        tuesday = next_monday + timedelta(days=1)

        response = _availability(client, doctor_id, tuesday)
        assert response.status_code == 400

        data = response.json()
        assert data["detail"] == "Doctor is not available on Tuesdays"
        assert data["availableSlots"] == []
        assert data["bookedSlots"] == []
        assert data["dayOfWeek"] == "Tuesday"

    def test_disabled_window_counts_as_unavailable(self, client, doctor_headers, doctor_id, monday_schedule, next_monday):
        response = client.put(
            f"/api/v1/doctors/{doctor_id}/schedule/{monday_schedule['id']}",
            json={"isAvailable": False},
            headers=doctor_headers,
        )
        assert response.status_code == 200

        response = _availability(client, doctor_id, next_monday)
        assert response.status_code == 400
        assert response.json()["detail"] == "Doctor is not available on Mondays"

    def test_missing_params(self, client):
        response = client.get("/api/v1/appointments/availability", params={"doctorId": 1})
        assert response.status_code == 400
        assert response.json()["availableSlots"] == []

    def test_malformed_params(self, client, next_monday):
        response = client.get(
            "/api/v1/appointments/availability",
            params={"doctorId": "abc", "date": next_monday.isoformat()},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Validation error"

    def test_unknown_doctor(self, client, next_monday):
        response = _availability(client, 999, next_monday)
        assert response.status_code == 404
        assert response.json()["detail"] == "Doctor not found"

    def test_repeated_reads_are_identical(self, client, doctor_id, monday_schedule, next_monday, patient_headers):
        _book(client, patient_headers, doctor_id, next_monday, "09:30:00")

        first = _availability(client, doctor_id, next_monday).json()
        second = _availability(client, doctor_id, next_monday).json()
        assert first == second

    def test_multiple_windows_are_merged(self, client, doctor_headers, doctor_id, monday_schedule, next_monday):
        response = client.post(
            f"/api/v1/doctors/{doctor_id}/schedule",
            json={"dayOfWeek": "Monday", "startTime": "14:00:00", "endTime": "15:00:00"},
            headers=doctor_headers,
        )
        assert response.status_code == 201

        data = _availability(client, doctor_id, next_monday).json()
        assert data["availableSlots"] == MORNING_SLOTS + ["14:00:00", "14:30:00"]
        assert data["scheduleStart"] == "09:00"
        assert data["scheduleEnd"] == "15:00"


def test_resolve_availability_service(db_session, client, doctor_id, monday_schedule, next_monday):
    result = resolve_availability(db_session, doctor_id, next_monday)

    assert result.day_of_week == "Monday"
    assert result.available_slots[0] == time(9, 0)
    assert result.available_slots[-1] == time(12, 30)
    assert result.booked_slots == []
