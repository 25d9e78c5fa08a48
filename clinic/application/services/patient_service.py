import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..identity import Identity, STAFF_ROLES, require_identity, require_role
from ..ports.audit_logger import AuditLogger
from ..ports.field_codec import FieldCodec
from ..ports.patient_repo import NewPatient, PatientDto, PatientRepository
from ...exceptions import Forbidden, NotFound, ValidationError

logger = logging.getLogger(__name__)

# plain name -> encrypted column
SENSITIVE_FIELDS = {
    "ssn": "ssn_encrypted",
    "emergency_contact": "emergency_contact_encrypted",
    "insurance_policy": "insurance_policy_encrypted",
    "medical_history": "medical_history_encrypted",
}
PLAIN_FIELDS = ("blood_group", "allergies", "chronic_conditions", "insurance_provider", "primary_doctor_id", "is_active")


def format_patient_number(sequence: int) -> str:
    return f"PAT{sequence:06d}"


@dataclass
class PatientService:
    repo: PatientRepository
    audit: AuditLogger
    codec: Optional[FieldCodec] = None

    def _encrypt(self, values: Dict[str, Optional[str]]) -> Dict[str, str]:
        if self.codec is None and any(v is not None for k, v in values.items() if k in SENSITIVE_FIELDS):
            raise ValidationError("Sensitive patient fields require field encryption to be configured")
        return {
            SENSITIVE_FIELDS[name]: self.codec.encrypt(value)
            for name, value in values.items()
            if name in SENSITIVE_FIELDS and value is not None
        }

    def create(
        self,
        identity: Optional[Identity],
        profile_id: str,
        blood_group: Optional[str] = None,
        allergies: Optional[List[str]] = None,
        chronic_conditions: Optional[List[str]] = None,
        insurance_provider: Optional[str] = None,
        primary_doctor_id: Optional[str] = None,
        ssn: Optional[str] = None,
        emergency_contact: Optional[str] = None,
        insurance_policy: Optional[str] = None,
        medical_history: Optional[str] = None,
    ) -> PatientDto:
        identity = require_role(identity, *STAFF_ROLES)
        encrypted = self._encrypt({
            "ssn": ssn,
            "emergency_contact": emergency_contact,
            "insurance_policy": insurance_policy,
            "medical_history": medical_history,
        })
        row = NewPatient(
            profile_id=profile_id,
            patient_number=format_patient_number(self.repo.count() + 1),
            blood_group=blood_group,
            allergies=list(allergies or []),
            chronic_conditions=list(chronic_conditions or []),
            insurance_provider=insurance_provider,
            primary_doctor_id=primary_doctor_id,
            **encrypted,
        )
        patient = self.repo.insert(row)
        self.audit.log("create", "patients", record_id=patient.id, user_id=identity.user_id, new_values={"patient_number": patient.patient_number})
        logger.info(f"Registered patient {patient.patient_number}")
        return patient

    def get(self, patient_id: str) -> PatientDto:
        patient = self.repo.get_by_id(patient_id)
        if not patient:
            raise NotFound("Patient not found")
        return patient

    def get_by_profile(self, profile_id: str) -> PatientDto:
        patient = self.repo.get_by_profile(profile_id)
        if not patient:
            raise NotFound("Patient not found")
        return patient

    def get_for(self, identity: Optional[Identity], patient_id: str) -> PatientDto:
        """Patients may only read themselves; staff may read anyone."""
        identity = require_identity(identity)
        patient = self.get(patient_id)
        if identity.role not in STAFF_ROLES and patient.profile_id != identity.user_id:
            raise Forbidden("Not allowed to view this patient")
        return patient

    def list_active(self) -> List[PatientDto]:
        return self.repo.list_active()

    def update(self, identity: Optional[Identity], patient_id: str, **fields: Any) -> PatientDto:
        identity = require_role(identity, *STAFF_ROLES)
        self.get(patient_id)
        patch: Dict[str, Any] = {k: v for k, v in fields.items() if k in PLAIN_FIELDS and v is not None}
        patch.update(self._encrypt({k: v for k, v in fields.items() if k in SENSITIVE_FIELDS}))
        if not patch:
            return self.get(patient_id)
        updated = self.repo.update(patient_id, patch)
        if not updated:
            raise NotFound("Patient not found")
        self.audit.log("update", "patients", record_id=patient_id, user_id=identity.user_id, new_values={"fields": sorted(patch)})
        return updated
