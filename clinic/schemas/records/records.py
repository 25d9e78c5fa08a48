# clinic/schemas/records/records.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, date

class MedicalRecordCreate(BaseModel):
    patient_id: str
    doctor_id: str
    visit_date: Optional[date] = None
    chief_complaint: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment_plan: Optional[str] = None
    vital_signs: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None

class MedicalRecordUpdate(BaseModel):
    chief_complaint: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment_plan: Optional[str] = None
    vital_signs: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None

class MedicalRecordResponse(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    visit_date: date
    chief_complaint: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment_plan: Optional[str] = None
    vital_signs: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    created_by: str
    created_at: datetime

class PrescriptionCreate(BaseModel):
    patient_id: str
    doctor_id: str
    medication_name: str = Field(min_length=1)
    dosage: str = Field(min_length=1)
    frequency: str = Field(min_length=1)
    duration: str
    instructions: Optional[str] = None
    refills_allowed: int = Field(default=0, ge=0)
    pharmacy_name: Optional[str] = None
    valid_until: Optional[date] = None
    medical_record_id: Optional[str] = None

class PrescriptionUpdate(BaseModel):
    medication_name: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    instructions: Optional[str] = None
    duration: Optional[str] = None
    refills_allowed: Optional[int] = Field(default=None, ge=0)
    pharmacy_name: Optional[str] = None
    valid_until: Optional[date] = None
    status: Optional[str] = None

class PrescriptionResponse(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    medical_record_id: Optional[str] = None
    medication_name: str
    dosage: str
    frequency: str
    duration: str
    instructions: Optional[str] = None
    refills_allowed: int
    pharmacy_name: Optional[str] = None
    prescribed_date: date
    valid_until: Optional[date] = None
    status: str
