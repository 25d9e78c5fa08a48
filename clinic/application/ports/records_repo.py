from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol
from datetime import datetime, date


@dataclass
class NewMedicalRecord:
    patient_id: str
    doctor_id: str
    created_by: str
    visit_date: date
    chief_complaint_encrypted: Optional[str] = None
    diagnosis_encrypted: Optional[str] = None
    treatment_plan_encrypted: Optional[str] = None
    vital_signs_encrypted: Optional[str] = None
    notes_encrypted: Optional[str] = None
    follow_up_date: Optional[date] = None


@dataclass
class MedicalRecordDto:
    id: str
    patient_id: str
    doctor_id: str
    visit_date: date
    chief_complaint_encrypted: Optional[str]
    diagnosis_encrypted: Optional[str]
    treatment_plan_encrypted: Optional[str]
    vital_signs_encrypted: Optional[str]
    notes_encrypted: Optional[str]
    follow_up_date: Optional[date]
    created_by: str
    created_at: datetime
    updated_at: datetime


@dataclass
class NewPrescription:
    patient_id: str
    doctor_id: str
    medication_name_encrypted: str
    dosage_encrypted: str
    frequency_encrypted: str
    duration: str
    prescribed_date: date
    medical_record_id: Optional[str] = None
    instructions_encrypted: Optional[str] = None
    refills_allowed: int = 0
    pharmacy_name: Optional[str] = None
    valid_until: Optional[date] = None


@dataclass
class PrescriptionDto:
    id: str
    patient_id: str
    doctor_id: str
    medical_record_id: Optional[str]
    medication_name_encrypted: str
    dosage_encrypted: str
    frequency_encrypted: str
    duration: str
    instructions_encrypted: Optional[str]
    refills_allowed: int
    pharmacy_name: Optional[str]
    prescribed_date: date
    valid_until: Optional[date]
    status: str
    created_at: datetime
    updated_at: datetime


class MedicalRecordRepository(Protocol):
    def insert(self, row: NewMedicalRecord) -> MedicalRecordDto:
        ...

    def get_by_id(self, record_id: str) -> Optional[MedicalRecordDto]:
        ...

    def update(self, record_id: str, patch: Dict[str, Any]) -> Optional[MedicalRecordDto]:
        ...

    def list_for_patient(self, patient_id: str) -> List[MedicalRecordDto]:
        ...


class PrescriptionRepository(Protocol):
    def insert(self, row: NewPrescription) -> PrescriptionDto:
        ...

    def update(self, prescription_id: str, patch: Dict[str, Any]) -> Optional[PrescriptionDto]:
        ...

    def list_for_patient(self, patient_id: str, status: Optional[str] = None) -> List[PrescriptionDto]:
        ...
