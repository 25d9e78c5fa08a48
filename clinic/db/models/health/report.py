# clinic/db/models/health/report.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, date
import uuid

from ....core.clock import utc_now

class MedicalReport(SQLModel, table=True):
    __tablename__ = "medical_reports"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    patient_id: str = Field(foreign_key="patients.id", index=True)
    doctor_id: Optional[str] = Field(default=None, foreign_key="doctors.id")
    report_type: str = Field(max_length=50)
    report_date: date
    title: str = Field(max_length=200)
    findings_encrypted: Optional[str] = None
    interpretation_encrypted: Optional[str] = None
    file_path: Optional[str] = Field(default=None, max_length=500)
    file_name: Optional[str] = Field(default=None, max_length=255)
    file_size: Optional[int] = None
    mime_type: Optional[str] = Field(default=None, max_length=100)
    is_reviewed: bool = Field(default=False)
    reviewed_by: Optional[str] = Field(default=None, max_length=36)
    reviewed_at: Optional[datetime] = None
    created_by: str = Field(max_length=36)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
