from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence
from datetime import datetime, date, time


APPOINTMENT_STATUSES = ("scheduled", "confirmed", "in_progress", "completed", "cancelled", "no_show")
TERMINAL_STATUSES = ("completed", "cancelled", "no_show")
ACTIVE_STATUSES = ("scheduled", "confirmed", "in_progress")
UPCOMING_STATUSES = ("scheduled", "confirmed")


@dataclass
class BookedSlot:
    id: str
    start_time: time
    end_time: time
    status: str


@dataclass
class NewAppointment:
    patient_id: str
    doctor_id: str
    appointment_date: date
    start_time: time
    end_time: time
    appointment_type: str
    created_by: str
    status: str = "scheduled"
    reason: Optional[str] = None
    location: Optional[str] = None
    notes_encrypted: Optional[str] = None


@dataclass
class AppointmentDto:
    id: str
    patient_id: str
    doctor_id: str
    appointment_date: date
    start_time: time
    end_time: time
    status: str
    appointment_type: str
    reason: Optional[str]
    location: Optional[str]
    notes_encrypted: Optional[str]
    created_by: str
    created_at: datetime
    updated_at: datetime


class AppointmentsRepository(Protocol):
    def query_appointments(self, doctor_id: str, appointment_date: date, exclude_id: Optional[str] = None) -> List[BookedSlot]:
        """Non-cancelled appointments of one doctor on one date."""
        ...

    def insert(self, row: NewAppointment) -> AppointmentDto:
        ...

    def update(self, appointment_id: str, patch: Dict[str, Any]) -> Optional[AppointmentDto]:
        ...

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        ...

    def delete(self, appointment_id: str) -> bool:
        ...

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        ...

    def list_for_doctor(self, doctor_id: str) -> List[AppointmentDto]:
        ...

    def list_upcoming(self, today: date, limit: int = 10) -> List[AppointmentDto]:
        ...

    def list_between(self, start: date, end: date) -> List[AppointmentDto]:
        ...

    def count(self, statuses: Optional[Sequence[str]] = None, from_date: Optional[date] = None) -> int:
        ...
