from datetime import date, time, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from clinic.application.identity import Identity, Role
from clinic.application.ports.appointments_repo import NewAppointment
from clinic.application.ports.billing_repo import NewBilling
from clinic.application.ports.patient_repo import NewPatient
from clinic.application.services.analytics_service import AnalyticsService
from clinic.application.services.appointments_service import AppointmentsService
from clinic.core.clock import utc_now
from clinic.database import build_engine, create_db_and_tables
from clinic.db.models import Appointment, AuditLog
from clinic.exceptions import PersistenceError, SlotConflict
from clinic.infrastructure.audit.sql_audit_logger import SqlAuditLogger
from clinic.infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from clinic.infrastructure.persistence.sqlalchemy.repositories.billing_repository_sql import SqlBillingRepository
from clinic.infrastructure.persistence.sqlalchemy.repositories.patient_repository_sql import SqlPatientRepository

DAY = date(2024, 6, 1)
STAFF = Identity("staff-1", Role.RECEPTIONIST)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


def new_appt(start, end, doctor="D", status="scheduled"):
    return NewAppointment(
        patient_id="p1",
        doctor_id=doctor,
        appointment_date=DAY,
        start_time=start,
        end_time=end,
        appointment_type="consultation",
        created_by="staff-1",
        status=status,
    )


def test_store_guard_rejects_overlapping_insert(session):
    repo = SqlAppointmentsRepository(session)
    repo.insert(new_appt(time(9, 0), time(9, 30)))
    session.commit()
    with pytest.raises(SlotConflict):
        repo.insert(new_appt(time(9, 15), time(9, 45)))
    repo.insert(new_appt(time(9, 30), time(10, 0)))
    repo.insert(new_appt(time(9, 15), time(9, 45), doctor="E"))
    assert len(repo.list_for_doctor("D")) == 2


def test_store_guard_ignores_cancelled_rows(session):
    repo = SqlAppointmentsRepository(session)
    first = repo.insert(new_appt(time(9, 0), time(9, 30)))
    repo.update(first.id, {"status": "cancelled"})
    second = repo.insert(new_appt(time(9, 0), time(9, 30)))
    assert second.status == "scheduled"
    assert [s.id for s in repo.query_appointments("D", DAY)] == [second.id]


def test_store_guard_on_update(session):
    repo = SqlAppointmentsRepository(session)
    a = repo.insert(new_appt(time(9, 0), time(9, 30)))
    repo.insert(new_appt(time(10, 0), time(10, 30)))
    moved = repo.update(a.id, {"start_time": time(9, 10), "end_time": time(9, 40)})
    assert moved.start_time == time(9, 10)
    session.commit()
    with pytest.raises(SlotConflict):
        repo.update(a.id, {"end_time": time(10, 15)})
    assert repo.get_by_id(a.id).end_time == time(9, 40)


def test_service_books_and_audits_against_sqlite(session):
    repo = SqlAppointmentsRepository(session)
    audit = SqlAuditLogger(session)
    svc = AppointmentsService(repo=repo, audit=audit)
    a = svc.book(STAFF, "p1", "D", "2024-06-01", "09:00", "09:30", "consultation")
    with pytest.raises(SlotConflict):
        svc.book(STAFF, "p2", "D", "2024-06-01", "09:15", "09:45", "consultation")
    svc.book(STAFF, "p2", "D", "2024-06-01", "09:30", "10:00", "consultation")
    assert svc.check_conflict("D", DAY, "09:29", "09:31") is True

    logs = audit.list_recent()
    assert len(logs) == 2
    assert {entry.record_id for entry in logs} >= {a.id}
    assert repo.count() == 2
    assert repo.count(statuses=("scheduled",), from_date=DAY) == 2
    assert [x.start_time for x in repo.list_upcoming(DAY)] == [time(9, 0), time(9, 30)]


def test_billing_and_patients_feed_analytics(session):
    billing = SqlBillingRepository(session)
    patients = SqlPatientRepository(session)
    for n, (status, total) in enumerate([("paid", "100.50"), ("paid", "49.50"), ("pending", "500")], start=1):
        billing.insert(NewBilling(
            patient_id="p1",
            invoice_number=f"INV-{utc_now():%Y%m}-{n:05d}",
            amount=Decimal(total),
            tax_amount=Decimal("0"),
            total_amount=Decimal(total),
            due_date=DAY,
        ))
    paid = [b for b in billing.list_all() if b.total_amount != Decimal("500")]
    for b in paid:
        billing.update(b.id, {"status": "paid"})
    patients.insert(NewPatient(profile_id="u1", patient_number="PAT000001", chronic_conditions=["diabetes", "hypertension"]))
    patients.insert(NewPatient(profile_id="u2", patient_number="PAT000002", chronic_conditions=["diabetes"]))

    now = utc_now()
    assert billing.count_created_in_month(now.year, now.month) == 3
    assert [b.status for b in billing.list_pending()] == ["pending"]

    svc = AnalyticsService(SqlAppointmentsRepository(session), billing, patients, SqlAuditLogger(session))
    revenue = svc.revenue_by_month(now.date(), months=1)
    assert [total for _, total in revenue] == [Decimal("150.00")]
    assert svc.patients_by_condition() == [("diabetes", 2), ("hypertension", 1)]
    stats = svc.dashboard_stats(now.date())
    assert stats.total_patients == 2
    assert stats.pending_bills == Decimal("500.00")


def test_rows_carry_utc_timestamps(session):
    assert utc_now().utcoffset() == timedelta(0)
    row = Appointment(**new_appt(time(9, 0), time(9, 30)).__dict__)
    assert row.created_at.utcoffset() == timedelta(0)

    svc = AppointmentsService(repo=SqlAppointmentsRepository(session), audit=SqlAuditLogger(session))
    booked = svc.book(STAFF, "p1", "D", "2024-06-01", "09:00", "09:30", "consultation")
    moved = svc.reschedule(STAFF, booked.id, "2024-06-01", "09:30", "10:00")
    assert moved.start_time == time(9, 30)


def test_failed_audit_write_discards_the_booking(engine, session):
    repo = SqlAppointmentsRepository(session)
    svc = AppointmentsService(repo=repo, audit=SqlAuditLogger(session))
    AuditLog.__table__.drop(engine)
    with pytest.raises(PersistenceError):
        svc.book(STAFF, "p1", "D", "2024-06-01", "09:00", "09:30", "consultation")
    assert repo.query_appointments("D", DAY) == []

    AuditLog.__table__.create(engine)
    booked = svc.book(STAFF, "p1", "D", "2024-06-01", "09:00", "09:30", "consultation")
    assert [s.id for s in repo.query_appointments("D", DAY)] == [booked.id]
    assert [e.record_id for e in svc.audit.list_recent()] == [booked.id]
