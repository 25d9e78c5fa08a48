import random
from datetime import date, time, timedelta
from typing import Any, Dict, List, Optional

import pytest

from clinic.application.identity import Identity, Role
from clinic.application.ports.appointments_repo import AppointmentDto, AppointmentsRepository, BookedSlot, NewAppointment
from clinic.application.services.appointments_service import AppointmentsService, slots_overlap
from clinic.core.clock import utc_now
from clinic.exceptions import (
    Forbidden,
    InvalidTransition,
    NotFound,
    PersistenceError,
    SlotConflict,
    Unauthenticated,
    ValidationError,
)

DAY = date(2024, 3, 4)
RECEPTION = Identity(user_id="staff-1", role=Role.RECEPTIONIST)
ADMIN = Identity(user_id="admin-1", role=Role.ADMIN)


class FakeApptRepo(AppointmentsRepository):
    def __init__(self):
        self._id = 1
        self.appts: Dict[str, AppointmentDto] = {}
        self.fail_insert: Optional[Exception] = None

    def query_appointments(self, doctor_id: str, appointment_date: date, exclude_id: Optional[str] = None) -> List[BookedSlot]:
        return [
            BookedSlot(a.id, a.start_time, a.end_time, a.status)
            for a in self.appts.values()
            if a.doctor_id == doctor_id and a.appointment_date == appointment_date
            and a.status != "cancelled" and a.id != exclude_id
        ]

    def insert(self, row: NewAppointment) -> AppointmentDto:
        if self.fail_insert:
            raise self.fail_insert
        now = utc_now()
        a = AppointmentDto(
            id=f"a{self._id}",
            patient_id=row.patient_id,
            doctor_id=row.doctor_id,
            appointment_date=row.appointment_date,
            start_time=row.start_time,
            end_time=row.end_time,
            status=row.status,
            appointment_type=row.appointment_type,
            reason=row.reason,
            location=row.location,
            notes_encrypted=row.notes_encrypted,
            created_by=row.created_by,
            created_at=now,
            updated_at=now,
        )
        self.appts[a.id] = a
        self._id += 1
        return a

    def update(self, appointment_id: str, patch: Dict[str, Any]) -> Optional[AppointmentDto]:
        a = self.appts.get(appointment_id)
        if not a:
            return None
        for k, v in patch.items():
            setattr(a, k, v)
        return a

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        return self.appts.get(appointment_id)

    def delete(self, appointment_id: str) -> bool:
        return self.appts.pop(appointment_id, None) is not None

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        return [a for a in self.appts.values() if a.patient_id == patient_id]

    def list_for_doctor(self, doctor_id: str) -> List[AppointmentDto]:
        return [a for a in self.appts.values() if a.doctor_id == doctor_id]

    def list_upcoming(self, today: date, limit: int = 10) -> List[AppointmentDto]:
        return [a for a in self.appts.values() if a.appointment_date >= today][:limit]

    def list_between(self, start: date, end: date) -> List[AppointmentDto]:
        return [a for a in self.appts.values() if start <= a.appointment_date <= end]

    def count(self, statuses=None, from_date=None) -> int:
        return len(self.appts)


class FakeAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, table_name, record_id=None, user_id=None, old_values=None, new_values=None, ip_address=None, user_agent=None):
        self.entries.append((action, table_name, record_id, user_id))

    def list_recent(self, limit=50):
        return []


class FakeCodec:
    def encrypt(self, plain_text: str) -> str:
        return "enc:" + plain_text

    def decrypt(self, encrypted_text: str) -> str:
        return encrypted_text[len("enc:"):]


def make_service(codec=None):
    repo = FakeApptRepo()
    audit = FakeAudit()
    return AppointmentsService(repo=repo, audit=audit, codec=codec), repo, audit


def book(svc, start, end, doctor="d1", identity=RECEPTION, **kwargs):
    return svc.book(identity, "p1", doctor, DAY, start, end, "consultation", **kwargs)


def test_book_success():
    svc, repo, audit = make_service()
    out = book(svc, "10:30", "11:00")
    assert out.id == "a1"
    assert out.status == "scheduled"
    assert out.start_time == time(10, 30)
    assert out.created_by == "staff-1"
    assert audit.entries == [("create", "appointments", "a1", "staff-1")]


def test_overlapping_booking_is_rejected_and_not_stored():
    svc, repo, _ = make_service()
    book(svc, "09:00", "09:30")
    with pytest.raises(SlotConflict):
        book(svc, "09:15", "09:45")
    assert len(repo.appts) == 1


def test_adjacent_slots_do_not_conflict():
    svc, repo, _ = make_service()
    book(svc, "09:00", "09:30")
    book(svc, "09:30", "10:00")
    assert len(repo.appts) == 2


def test_same_slot_other_doctor_is_fine():
    svc, repo, _ = make_service()
    book(svc, "09:00", "09:30", doctor="d1")
    book(svc, "09:00", "09:30", doctor="d2")
    assert len(repo.appts) == 2


def test_cancelled_appointment_frees_the_slot():
    svc, repo, _ = make_service()
    first = book(svc, "09:00", "09:30")
    svc.transition_status(RECEPTION, first.id, "cancelled")
    assert svc.check_conflict("d1", DAY, "09:00", "09:30") is False
    book(svc, "09:00", "09:30")


def test_check_conflict_excludes_the_given_appointment():
    svc, _, _ = make_service()
    a = book(svc, "09:00", "09:30")
    assert svc.check_conflict("d1", DAY, "09:10", "09:20") is True
    assert svc.check_conflict("d1", DAY, "09:10", "09:20", exclude_appointment_id=a.id) is False


def test_check_conflict_is_idempotent():
    svc, repo, _ = make_service()
    book(svc, "09:00", "09:30")
    results = [svc.check_conflict("d1", DAY, "09:15", "09:45") for _ in range(3)]
    assert results == [True, True, True]
    assert len(repo.appts) == 1


def test_book_requires_identity():
    svc, repo, _ = make_service()
    with pytest.raises(Unauthenticated):
        book(svc, "09:00", "09:30", identity=None)
    assert repo.appts == {}


@pytest.mark.parametrize("start,end", [("10:00", "10:00"), ("11:00", "10:00"), ("25:00", "26:00"), ("nine", "ten")])
def test_book_rejects_bad_ranges(start, end):
    svc, repo, _ = make_service()
    with pytest.raises(ValidationError):
        book(svc, start, end)
    assert repo.appts == {}


def test_book_rejects_terminal_initial_status():
    svc, _, _ = make_service()
    with pytest.raises(ValidationError):
        book(svc, "09:00", "09:30", status="completed")


def test_store_rejection_surfaces_as_slot_conflict():
    svc, repo, audit = make_service()
    repo.fail_insert = SlotConflict()
    with pytest.raises(SlotConflict):
        book(svc, "09:00", "09:30")
    assert audit.entries == []


def test_persistence_error_propagates():
    svc, repo, _ = make_service()
    repo.fail_insert = PersistenceError()
    with pytest.raises(PersistenceError):
        book(svc, "09:00", "09:30")


def test_notes_need_a_codec():
    svc, _, _ = make_service()
    with pytest.raises(ValidationError):
        book(svc, "09:00", "09:30", notes="bring x-rays")

    svc, _, _ = make_service(codec=FakeCodec())
    out = book(svc, "09:00", "09:30", notes="bring x-rays")
    assert out.notes_encrypted == "enc:bring x-rays"


def test_status_transitions():
    svc, _, audit = make_service()
    a = book(svc, "09:00", "09:30")
    assert svc.transition_status(RECEPTION, a.id, "confirmed").status == "confirmed"
    assert svc.transition_status(RECEPTION, a.id, "in_progress").status == "in_progress"
    assert svc.transition_status(RECEPTION, a.id, "completed").status == "completed"
    with pytest.raises(InvalidTransition):
        svc.transition_status(RECEPTION, a.id, "scheduled")
    assert len(audit.entries) == 4


def test_same_status_is_a_no_op():
    svc, _, audit = make_service()
    a = book(svc, "09:00", "09:30")
    svc.transition_status(RECEPTION, a.id, "scheduled")
    assert len(audit.entries) == 1


def test_cancelled_is_final():
    svc, _, _ = make_service()
    a = book(svc, "09:00", "09:30")
    svc.transition_status(RECEPTION, a.id, "cancelled")
    with pytest.raises(InvalidTransition):
        svc.transition_status(RECEPTION, a.id, "no_show")


def test_patients_can_only_cancel():
    svc, repo, _ = make_service()
    a = book(svc, "09:00", "09:30")
    patient = Identity(user_id="pat-user-1", role=Role.PATIENT)
    for status in ("confirmed", "in_progress", "completed", "no_show"):
        with pytest.raises(Forbidden):
            svc.transition_status(patient, a.id, status)
    assert repo.appts[a.id].status == "scheduled"
    assert svc.transition_status(patient, a.id, "cancelled").status == "cancelled"


def test_unknown_status_is_rejected():
    svc, _, _ = make_service()
    a = book(svc, "09:00", "09:30")
    with pytest.raises(ValidationError):
        svc.transition_status(RECEPTION, a.id, "postponed")


def test_reschedule_ignores_own_slot_but_not_others():
    svc, _, _ = make_service()
    a = book(svc, "09:00", "09:30")
    book(svc, "10:00", "10:30")
    moved = svc.reschedule(RECEPTION, a.id, DAY, "09:15", "09:45")
    assert moved.start_time == time(9, 15)
    with pytest.raises(SlotConflict):
        svc.reschedule(RECEPTION, a.id, DAY, "09:45", "10:15")


def test_reschedule_terminal_appointment_fails():
    svc, _, _ = make_service()
    a = book(svc, "09:00", "09:30")
    svc.transition_status(RECEPTION, a.id, "completed")
    with pytest.raises(InvalidTransition):
        svc.reschedule(RECEPTION, a.id, DAY + timedelta(days=1), "09:00", "09:30")


def test_update_details_audits_changed_fields():
    svc, _, audit = make_service()
    a = book(svc, "09:00", "09:30")
    out = svc.update_details(RECEPTION, a.id, reason="follow-up", location="Room 2")
    assert out.reason == "follow-up"
    assert out.location == "Room 2"
    assert audit.entries[-1][0] == "update"


def test_delete_is_admin_only():
    svc, repo, _ = make_service()
    a = book(svc, "09:00", "09:30")
    with pytest.raises(Forbidden):
        svc.delete(RECEPTION, a.id)
    svc.delete(ADMIN, a.id)
    assert repo.appts == {}
    with pytest.raises(NotFound):
        svc.get(a.id)


def test_get_unknown_appointment():
    svc, _, _ = make_service()
    with pytest.raises(NotFound):
        svc.get("missing")


def _random_slot(rng):
    start = rng.randrange(8 * 60, 17 * 60, 5)
    length = rng.choice([5, 10, 15, 20, 30, 45, 60])
    return time(start // 60, start % 60), time((start + length) // 60, (start + length) % 60)


def test_no_two_booked_appointments_overlap():
    rng = random.Random(20240304)
    svc, repo, _ = make_service()
    for _ in range(300):
        start, end = _random_slot(rng)
        try:
            book(svc, start, end)
        except SlotConflict:
            pass
    booked = sorted(repo.appts.values(), key=lambda a: a.start_time)
    assert booked
    for earlier, later in zip(booked, booked[1:]):
        assert earlier.end_time <= later.start_time


def test_slots_overlap_is_symmetric_and_half_open():
    rng = random.Random(7)
    for _ in range(500):
        a = _random_slot(rng)
        b = _random_slot(rng)
        assert slots_overlap(*a, *b) == slots_overlap(*b, *a)
    assert slots_overlap(time(9), time(10), time(10), time(11)) is False
    assert slots_overlap(time(9), time(10), time(9, 59), time(11)) is True


def test_booking_sequence_for_one_doctor_and_day():
    svc, repo, _ = make_service()
    day = "2024-06-01"
    svc.book(RECEPTION, "p1", "D", day, "09:00", "09:30", "consultation")
    with pytest.raises(SlotConflict):
        svc.book(RECEPTION, "p2", "D", day, "09:15", "09:45", "consultation")
    svc.book(RECEPTION, "p2", "D", day, "09:30", "10:00", "consultation")
    assert [a.start_time for a in repo.appts.values()] == [time(9, 0), time(9, 30)]


def test_check_conflict_against_a_booked_half_hour():
    svc, _, _ = make_service()
    book(svc, "10:00", "10:30")
    assert svc.check_conflict("d1", DAY, "10:15", "10:45") is True
    assert svc.check_conflict("d1", DAY, "10:30", "11:00") is False
