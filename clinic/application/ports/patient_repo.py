from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol
from datetime import datetime


@dataclass
class NewPatient:
    profile_id: str
    patient_number: str
    blood_group: Optional[str] = None
    allergies: List[str] = field(default_factory=list)
    chronic_conditions: List[str] = field(default_factory=list)
    insurance_provider: Optional[str] = None
    primary_doctor_id: Optional[str] = None
    ssn_encrypted: Optional[str] = None
    emergency_contact_encrypted: Optional[str] = None
    insurance_policy_encrypted: Optional[str] = None
    medical_history_encrypted: Optional[str] = None


@dataclass
class PatientDto:
    id: str
    profile_id: str
    patient_number: str
    blood_group: Optional[str]
    allergies: List[str]
    chronic_conditions: List[str]
    insurance_provider: Optional[str]
    primary_doctor_id: Optional[str]
    ssn_encrypted: Optional[str]
    emergency_contact_encrypted: Optional[str]
    insurance_policy_encrypted: Optional[str]
    medical_history_encrypted: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PatientRepository(Protocol):
    def insert(self, row: NewPatient) -> PatientDto:
        ...

    def get_by_id(self, patient_id: str) -> Optional[PatientDto]:
        ...

    def get_by_profile(self, profile_id: str) -> Optional[PatientDto]:
        ...

    def update(self, patient_id: str, patch: Dict[str, Any]) -> Optional[PatientDto]:
        ...

    def list_active(self) -> List[PatientDto]:
        ...

    def count(self, active_only: bool = False) -> int:
        ...
