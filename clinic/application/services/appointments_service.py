import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
from datetime import date, time

from ..identity import Identity, Role, require_identity, require_role
from ..ports.appointments_repo import (
    APPOINTMENT_STATUSES,
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    AppointmentDto,
    AppointmentsRepository,
    NewAppointment,
)
from ..ports.audit_logger import AuditLogger
from ..ports.field_codec import FieldCodec
from ...exceptions import Forbidden, InvalidTransition, NotFound, SlotConflict, ValidationError

logger = logging.getLogger(__name__)

DateLike = Union[date, str]
TimeLike = Union[time, str]


def slots_overlap(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    """Half-open overlap test: [a_start, a_end) and [b_start, b_end) share an instant."""
    return a_start < b_end and a_end > b_start


def parse_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid appointment date format. Use YYYY-MM-DD")


def parse_time(value: TimeLike) -> time:
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid time format. Use HH:MM")


def validate_range(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        raise ValidationError("start_time must be before end_time")


def _snapshot(appt: AppointmentDto) -> Dict[str, Any]:
    return {
        "patient_id": appt.patient_id,
        "doctor_id": appt.doctor_id,
        "appointment_date": appt.appointment_date.isoformat(),
        "start_time": appt.start_time.isoformat(),
        "end_time": appt.end_time.isoformat(),
        "status": appt.status,
    }


@dataclass
class AppointmentsService:
    repo: AppointmentsRepository
    audit: AuditLogger
    codec: Optional[FieldCodec] = None

    def check_conflict(self, doctor_id: str, appointment_date: DateLike, start_time: TimeLike, end_time: TimeLike, exclude_appointment_id: Optional[str] = None) -> bool:
        """True when any non-cancelled appointment of the doctor on that date overlaps the slot.

        The range itself is not validated here; booking and rescheduling do that
        before calling in. The store's exclusion constraint stays the authority
        for concurrent writers.
        """
        day = parse_date(appointment_date)
        start = parse_time(start_time)
        end = parse_time(end_time)
        existing = self.repo.query_appointments(doctor_id, day, exclude_id=exclude_appointment_id)
        return any(
            slots_overlap(slot.start_time, slot.end_time, start, end)
            for slot in existing
            if slot.status != "cancelled"
        )

    def book(
        self,
        identity: Optional[Identity],
        patient_id: str,
        doctor_id: str,
        appointment_date: DateLike,
        start_time: TimeLike,
        end_time: TimeLike,
        appointment_type: str,
        reason: Optional[str] = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        status: str = "scheduled",
    ) -> AppointmentDto:
        identity = require_identity(identity)

        day = parse_date(appointment_date)
        start = parse_time(start_time)
        end = parse_time(end_time)
        validate_range(start, end)
        if status not in ACTIVE_STATUSES:
            raise ValidationError(f"Initial status must be one of: {list(ACTIVE_STATUSES)}")

        if self.check_conflict(doctor_id, day, start, end):
            logger.warning(f"Slot conflict for doctor {doctor_id} on {day} {start}-{end}")
            raise SlotConflict()

        row = NewAppointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=day,
            start_time=start,
            end_time=end,
            appointment_type=appointment_type,
            created_by=identity.user_id,
            status=status,
            reason=reason,
            location=location,
            notes_encrypted=self._encrypt_notes(notes),
        )
        # The insert can still lose a race to a concurrent booking; the store
        # constraint then surfaces as SlotConflict from the repository.
        try:
            appt = self.repo.insert(row)
        except SlotConflict:
            logger.warning(f"Store rejected overlapping booking for doctor {doctor_id} on {day}")
            raise

        self.audit.log("create", "appointments", record_id=appt.id, user_id=identity.user_id, new_values=_snapshot(appt))
        logger.info(f"Booked appointment {appt.id} for doctor {doctor_id} on {day} {start}-{end}")
        return appt

    def get(self, appointment_id: str) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        return appt

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        return self.repo.list_for_patient(patient_id)

    def list_for_doctor(self, doctor_id: str) -> List[AppointmentDto]:
        return self.repo.list_for_doctor(doctor_id)

    def list_upcoming(self, today: Optional[date] = None, limit: int = 10) -> List[AppointmentDto]:
        return self.repo.list_upcoming(today or date.today(), limit=limit)

    def transition_status(self, identity: Optional[Identity], appointment_id: str, new_status: str) -> AppointmentDto:
        identity = require_identity(identity)
        if new_status not in APPOINTMENT_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {list(APPOINTMENT_STATUSES)}")
        if identity.role == Role.PATIENT and new_status != "cancelled":
            raise Forbidden("Patients can only cancel their appointments")

        appt = self.get(appointment_id)
        current = appt.status
        if current == new_status:
            return appt
        if current in TERMINAL_STATUSES and new_status in ACTIVE_STATUSES:
            raise InvalidTransition(f"Cannot move a {current} appointment back to {new_status}; book a new appointment instead")
        if current == "cancelled":
            # A cancelled row no longer holds its slot.
            raise InvalidTransition(f"Cannot move a cancelled appointment to {new_status}")

        updated = self.repo.update(appointment_id, {"status": new_status})
        if not updated:
            raise NotFound("Appointment not found")
        self.audit.log(
            "update",
            "appointments",
            record_id=appointment_id,
            user_id=identity.user_id,
            old_values={"status": current},
            new_values={"status": new_status},
        )
        logger.info(f"Appointment {appointment_id} status {current} -> {new_status}")
        return updated

    def reschedule(self, identity: Optional[Identity], appointment_id: str, appointment_date: DateLike, start_time: TimeLike, end_time: TimeLike) -> AppointmentDto:
        identity = require_identity(identity)
        day = parse_date(appointment_date)
        start = parse_time(start_time)
        end = parse_time(end_time)
        validate_range(start, end)

        appt = self.get(appointment_id)
        if appt.status in TERMINAL_STATUSES:
            raise InvalidTransition(f"Cannot reschedule a {appt.status} appointment")

        if self.check_conflict(appt.doctor_id, day, start, end, exclude_appointment_id=appointment_id):
            logger.warning(f"Reschedule of {appointment_id} conflicts on {day} {start}-{end}")
            raise SlotConflict()

        updated = self.repo.update(appointment_id, {"appointment_date": day, "start_time": start, "end_time": end})
        if not updated:
            raise NotFound("Appointment not found")
        self.audit.log(
            "update",
            "appointments",
            record_id=appointment_id,
            user_id=identity.user_id,
            old_values=_snapshot(appt),
            new_values=_snapshot(updated),
        )
        logger.info(f"Rescheduled appointment {appointment_id} to {day} {start}-{end}")
        return updated

    def update_details(
        self,
        identity: Optional[Identity],
        appointment_id: str,
        appointment_type: Optional[str] = None,
        reason: Optional[str] = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AppointmentDto:
        identity = require_identity(identity)
        self.get(appointment_id)
        patch: Dict[str, Any] = {}
        if appointment_type is not None:
            patch["appointment_type"] = appointment_type
        if reason is not None:
            patch["reason"] = reason
        if location is not None:
            patch["location"] = location
        if notes is not None:
            patch["notes_encrypted"] = self._encrypt_notes(notes)
        if not patch:
            return self.get(appointment_id)

        updated = self.repo.update(appointment_id, patch)
        if not updated:
            raise NotFound("Appointment not found")
        self.audit.log("update", "appointments", record_id=appointment_id, user_id=identity.user_id, new_values={"fields": sorted(patch)})
        return updated

    def delete(self, identity: Optional[Identity], appointment_id: str) -> None:
        """Administrative override. Removes the row outright."""
        identity = require_role(identity, Role.ADMIN)
        appt = self.get(appointment_id)
        if not self.repo.delete(appointment_id):
            raise NotFound("Appointment not found")
        self.audit.log("delete", "appointments", record_id=appointment_id, user_id=identity.user_id, old_values=_snapshot(appt))
        logger.info(f"Deleted appointment {appointment_id}")

    def _encrypt_notes(self, notes: Optional[str]) -> Optional[str]:
        if notes is None:
            return None
        if self.codec is None:
            raise ValidationError("Appointment notes require field encryption to be configured")
        return self.codec.encrypt(notes)
