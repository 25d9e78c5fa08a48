import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional
from datetime import date

from ..identity import Identity, Role, require_role
from ..ports.audit_logger import AuditLogger
from ..ports.field_codec import FieldCodec
from ..ports.records_repo import (
    MedicalRecordDto,
    MedicalRecordRepository,
    NewMedicalRecord,
    NewPrescription,
    PrescriptionDto,
    PrescriptionRepository,
)
from ...exceptions import NotFound, ValidationError

logger = logging.getLogger(__name__)

RECORD_SENSITIVE = ("chief_complaint", "diagnosis", "treatment_plan", "vital_signs", "notes")
PRESCRIPTION_SENSITIVE = ("medication_name", "dosage", "frequency", "instructions")
PRESCRIPTION_PLAIN = ("duration", "refills_allowed", "pharmacy_name", "valid_until", "status")
PRESCRIPTION_STATUSES = ("active", "completed", "cancelled")


def reveal(codec: FieldCodec, dto: Any) -> Dict[str, Any]:
    """Plain dict of a record, with every *_encrypted column decrypted under its plain name."""
    out: Dict[str, Any] = {}
    for key, value in asdict(dto).items():
        if key.endswith("_encrypted"):
            out[key[: -len("_encrypted")]] = codec.decrypt(value) if value else None
        else:
            out[key] = value
    return out


@dataclass
class RecordsService:
    records: MedicalRecordRepository
    prescriptions: PrescriptionRepository
    audit: AuditLogger
    codec: FieldCodec

    def _encrypt(self, values: Dict[str, Optional[str]], allowed) -> Dict[str, str]:
        return {
            f"{name}_encrypted": self.codec.encrypt(value)
            for name, value in values.items()
            if name in allowed and value is not None
        }

    # Medical records

    def create_record(
        self,
        identity: Optional[Identity],
        patient_id: str,
        doctor_id: str,
        visit_date: Optional[date] = None,
        follow_up_date: Optional[date] = None,
        **sensitive: Optional[str],
    ) -> MedicalRecordDto:
        identity = require_role(identity, Role.DOCTOR, Role.NURSE, Role.ADMIN)
        unknown = set(sensitive) - set(RECORD_SENSITIVE)
        if unknown:
            raise ValidationError(f"Unknown record fields: {sorted(unknown)}")
        row = NewMedicalRecord(
            patient_id=patient_id,
            doctor_id=doctor_id,
            created_by=identity.user_id,
            visit_date=visit_date or date.today(),
            follow_up_date=follow_up_date,
            **self._encrypt(sensitive, RECORD_SENSITIVE),
        )
        record = self.records.insert(row)
        self.audit.log("create", "medical_records", record_id=record.id, user_id=identity.user_id, new_values={"patient_id": patient_id})
        logger.info(f"Created medical record {record.id} for patient {patient_id}")
        return record

    def get_record(self, record_id: str) -> MedicalRecordDto:
        record = self.records.get_by_id(record_id)
        if not record:
            raise NotFound("Medical record not found")
        return record

    def list_records(self, patient_id: str) -> List[MedicalRecordDto]:
        return self.records.list_for_patient(patient_id)

    def update_record(self, identity: Optional[Identity], record_id: str, follow_up_date: Optional[date] = None, **sensitive: Optional[str]) -> MedicalRecordDto:
        identity = require_role(identity, Role.DOCTOR, Role.NURSE, Role.ADMIN)
        self.get_record(record_id)
        patch: Dict[str, Any] = self._encrypt(sensitive, RECORD_SENSITIVE)
        if follow_up_date is not None:
            patch["follow_up_date"] = follow_up_date
        if not patch:
            return self.get_record(record_id)
        updated = self.records.update(record_id, patch)
        if not updated:
            raise NotFound("Medical record not found")
        self.audit.log("update", "medical_records", record_id=record_id, user_id=identity.user_id, new_values={"fields": sorted(patch)})
        return updated

    # Prescriptions

    def create_prescription(
        self,
        identity: Optional[Identity],
        patient_id: str,
        doctor_id: str,
        medication_name: str,
        dosage: str,
        frequency: str,
        duration: str,
        instructions: Optional[str] = None,
        refills_allowed: int = 0,
        pharmacy_name: Optional[str] = None,
        valid_until: Optional[date] = None,
        medical_record_id: Optional[str] = None,
        prescribed_date: Optional[date] = None,
    ) -> PrescriptionDto:
        identity = require_role(identity, Role.DOCTOR)
        if refills_allowed < 0:
            raise ValidationError("refills_allowed cannot be negative")
        if not medication_name or not dosage or not frequency:
            raise ValidationError("medication_name, dosage and frequency are required")
        row = NewPrescription(
            patient_id=patient_id,
            doctor_id=doctor_id,
            medication_name_encrypted=self.codec.encrypt(medication_name),
            dosage_encrypted=self.codec.encrypt(dosage),
            frequency_encrypted=self.codec.encrypt(frequency),
            instructions_encrypted=self.codec.encrypt(instructions) if instructions else None,
            duration=duration,
            prescribed_date=prescribed_date or date.today(),
            medical_record_id=medical_record_id,
            refills_allowed=refills_allowed,
            pharmacy_name=pharmacy_name,
            valid_until=valid_until,
        )
        prescription = self.prescriptions.insert(row)
        self.audit.log("create", "prescriptions", record_id=prescription.id, user_id=identity.user_id, new_values={"patient_id": patient_id})
        logger.info(f"Created prescription {prescription.id} for patient {patient_id}")
        return prescription

    def list_prescriptions(self, patient_id: str, active_only: bool = False) -> List[PrescriptionDto]:
        return self.prescriptions.list_for_patient(patient_id, status="active" if active_only else None)

    def update_prescription(self, identity: Optional[Identity], prescription_id: str, **fields: Any) -> PrescriptionDto:
        identity = require_role(identity, Role.DOCTOR, Role.ADMIN)
        status = fields.get("status")
        if status is not None and status not in PRESCRIPTION_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {list(PRESCRIPTION_STATUSES)}")
        patch: Dict[str, Any] = {k: v for k, v in fields.items() if k in PRESCRIPTION_PLAIN and v is not None}
        patch.update(self._encrypt({k: v for k, v in fields.items() if k in PRESCRIPTION_SENSITIVE}, PRESCRIPTION_SENSITIVE))
        if not patch:
            raise ValidationError("Nothing to update")
        updated = self.prescriptions.update(prescription_id, patch)
        if not updated:
            raise NotFound("Prescription not found")
        self.audit.log("update", "prescriptions", record_id=prescription_id, user_id=identity.user_id, new_values={"fields": sorted(patch)})
        return updated
