# clinic/db/models/health/patient.py
from typing import Optional, List
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from datetime import datetime
import uuid

from ....core.clock import utc_now

class Patient(SQLModel, table=True):
    __tablename__ = "patients"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    profile_id: str = Field(max_length=36, unique=True, index=True)
    patient_number: str = Field(max_length=20, unique=True)
    ssn_encrypted: Optional[str] = None
    blood_group: Optional[str] = Field(default=None, max_length=5)
    allergies: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    chronic_conditions: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    emergency_contact_encrypted: Optional[str] = None
    insurance_provider: Optional[str] = Field(default=None, max_length=100)
    insurance_policy_encrypted: Optional[str] = None
    medical_history_encrypted: Optional[str] = None
    primary_doctor_id: Optional[str] = Field(default=None, foreign_key="doctors.id")
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
