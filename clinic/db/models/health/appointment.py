# clinic/db/models/health/appointment.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Index
from datetime import datetime, date, time
import uuid

from ....core.clock import utc_now

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_doctor_date", "doctor_id", "appointment_date"),
    )
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    patient_id: str = Field(foreign_key="patients.id", index=True)
    doctor_id: str = Field(foreign_key="doctors.id")
    appointment_date: date
    start_time: time
    end_time: time
    status: str = Field(default="scheduled", max_length=20)
    appointment_type: str = Field(max_length=100)
    reason: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=255)
    notes_encrypted: Optional[str] = None
    created_by: str = Field(max_length=36)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
