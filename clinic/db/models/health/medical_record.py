# clinic/db/models/health/medical_record.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, date
import uuid

from ....core.clock import utc_now

class MedicalRecord(SQLModel, table=True):
    __tablename__ = "medical_records"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    patient_id: str = Field(foreign_key="patients.id", index=True)
    doctor_id: str = Field(foreign_key="doctors.id")
    visit_date: date = Field(default_factory=date.today)
    chief_complaint_encrypted: Optional[str] = None
    diagnosis_encrypted: Optional[str] = None
    treatment_plan_encrypted: Optional[str] = None
    vital_signs_encrypted: Optional[str] = None
    notes_encrypted: Optional[str] = None
    follow_up_date: Optional[date] = None
    created_by: str = Field(max_length=36)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
