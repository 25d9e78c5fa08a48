# clinic/schemas/patients/patient.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

class PatientCreate(BaseModel):
    profile_id: str
    blood_group: Optional[str] = Field(default=None, max_length=5)
    allergies: List[str] = []
    chronic_conditions: List[str] = []
    insurance_provider: Optional[str] = None
    primary_doctor_id: Optional[str] = None
    ssn: Optional[str] = None
    emergency_contact: Optional[str] = None
    insurance_policy: Optional[str] = None
    medical_history: Optional[str] = None

class PatientUpdate(BaseModel):
    blood_group: Optional[str] = Field(default=None, max_length=5)
    allergies: Optional[List[str]] = None
    chronic_conditions: Optional[List[str]] = None
    insurance_provider: Optional[str] = None
    primary_doctor_id: Optional[str] = None
    is_active: Optional[bool] = None
    ssn: Optional[str] = None
    emergency_contact: Optional[str] = None
    insurance_policy: Optional[str] = None
    medical_history: Optional[str] = None

class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    profile_id: str
    patient_number: str
    blood_group: Optional[str] = None
    allergies: List[str]
    chronic_conditions: List[str]
    insurance_provider: Optional[str] = None
    primary_doctor_id: Optional[str] = None
    is_active: bool
    created_at: datetime

class DoctorCreate(BaseModel):
    profile_id: str
    license_number: str = Field(min_length=1, max_length=50)
    specialization: List[str] = []
    department: Optional[str] = None
    consultation_fee: Optional[Decimal] = Field(default=None, ge=0)

class DoctorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    profile_id: str
    license_number: str
    specialization: List[str]
    department: Optional[str] = None
    consultation_fee: Optional[Decimal] = None
    is_active: bool
    created_at: datetime
