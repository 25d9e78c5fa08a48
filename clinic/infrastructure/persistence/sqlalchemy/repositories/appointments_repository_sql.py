from typing import Any, Dict, List, Optional, Sequence
from datetime import date
from sqlmodel import Session, select, func

from .....db.models import Appointment
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    BookedSlot,
    NewAppointment,
    UPCOMING_STATUSES,
)
from ._base import apply_patch, remove, save, storage_call


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            patient_id=a.patient_id,
            doctor_id=a.doctor_id,
            appointment_date=a.appointment_date,
            start_time=a.start_time,
            end_time=a.end_time,
            status=a.status,
            appointment_type=a.appointment_type,
            reason=a.reason,
            location=a.location,
            notes_encrypted=a.notes_encrypted,
            created_by=a.created_by,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )

    def _ordered(self, query):
        return query.order_by(Appointment.appointment_date.asc(), Appointment.start_time.asc())

    def query_appointments(self, doctor_id: str, appointment_date: date, exclude_id: Optional[str] = None) -> List[BookedSlot]:
        query = (
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_date == appointment_date)
            .where(Appointment.status != "cancelled")
        )
        if exclude_id:
            query = query.where(Appointment.id != exclude_id)
        with storage_call(self.session, "query appointments"):
            rows = self.session.exec(query).all()
        return [BookedSlot(id=r.id, start_time=r.start_time, end_time=r.end_time, status=r.status) for r in rows]

    def insert(self, row: NewAppointment) -> AppointmentDto:
        appt = Appointment(
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
        )
        return self._to_dto(save(self.session, appt, "book appointment"))

    def _get(self, appointment_id: str) -> Optional[Appointment]:
        with storage_call(self.session, "load appointment"):
            return self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()

    def update(self, appointment_id: str, patch: Dict[str, Any]) -> Optional[AppointmentDto]:
        a = self._get(appointment_id)
        if not a:
            return None
        apply_patch(a, patch)
        return self._to_dto(save(self.session, a, "update appointment"))

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        a = self._get(appointment_id)
        return self._to_dto(a) if a else None

    def delete(self, appointment_id: str) -> bool:
        a = self._get(appointment_id)
        if not a:
            return False
        remove(self.session, a, "delete appointment")
        return True

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        with storage_call(self.session, "list appointments"):
            rows = self.session.exec(self._ordered(select(Appointment).where(Appointment.patient_id == patient_id))).all()
        return [self._to_dto(r) for r in rows]

    def list_for_doctor(self, doctor_id: str) -> List[AppointmentDto]:
        with storage_call(self.session, "list appointments"):
            rows = self.session.exec(self._ordered(select(Appointment).where(Appointment.doctor_id == doctor_id))).all()
        return [self._to_dto(r) for r in rows]

    def list_upcoming(self, today: date, limit: int = 10) -> List[AppointmentDto]:
        query = self._ordered(
            select(Appointment)
            .where(Appointment.appointment_date >= today)
            .where(Appointment.status.in_(UPCOMING_STATUSES))
        ).limit(limit)
        with storage_call(self.session, "list upcoming appointments"):
            rows = self.session.exec(query).all()
        return [self._to_dto(r) for r in rows]

    def list_between(self, start: date, end: date) -> List[AppointmentDto]:
        query = self._ordered(
            select(Appointment)
            .where(Appointment.appointment_date >= start)
            .where(Appointment.appointment_date <= end)
        )
        with storage_call(self.session, "list appointments"):
            rows = self.session.exec(query).all()
        return [self._to_dto(r) for r in rows]

    def count(self, statuses: Optional[Sequence[str]] = None, from_date: Optional[date] = None) -> int:
        query = select(func.count(Appointment.id))
        if statuses:
            query = query.where(Appointment.status.in_(list(statuses)))
        if from_date:
            query = query.where(Appointment.appointment_date >= from_date)
        with storage_call(self.session, "count appointments"):
            return self.session.exec(query).one() or 0
