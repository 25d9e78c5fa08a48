# clinic/schemas/appointments/appointment.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime, date, time

class SlotBase(BaseModel):
    appointment_date: date  # YYYY-MM-DD
    start_time: time  # HH:MM
    end_time: time  # HH:MM

class AppointmentCreate(SlotBase):
    patient_id: str
    doctor_id: str
    appointment_type: str = Field(min_length=1, max_length=100)
    reason: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    status: str = "scheduled"

class AppointmentReschedule(SlotBase):
    pass

class ConflictCheckRequest(SlotBase):
    doctor_id: str
    exclude_appointment_id: Optional[str] = None

class ConflictCheckResponse(BaseModel):
    conflict: bool

class AppointmentStatusUpdate(BaseModel):
    status: str

class AppointmentDetailsUpdate(BaseModel):
    appointment_type: Optional[str] = None
    reason: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None

class AppointmentResponse(SlotBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    doctor_id: str
    status: str
    appointment_type: str
    reason: Optional[str] = None
    location: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime
