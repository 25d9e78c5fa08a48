# clinic/db/models/health/prescription.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, date
import uuid

from ....core.clock import utc_now

class Prescription(SQLModel, table=True):
    __tablename__ = "prescriptions"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    patient_id: str = Field(foreign_key="patients.id", index=True)
    doctor_id: str = Field(foreign_key="doctors.id")
    medical_record_id: Optional[str] = Field(default=None, foreign_key="medical_records.id")
    medication_name_encrypted: str
    dosage_encrypted: str
    frequency_encrypted: str
    duration: str = Field(max_length=50)
    instructions_encrypted: Optional[str] = None
    refills_allowed: int = Field(default=0)
    pharmacy_name: Optional[str] = Field(default=None, max_length=100)
    prescribed_date: date = Field(default_factory=date.today)
    valid_until: Optional[date] = None
    status: str = Field(default="active", max_length=20)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
