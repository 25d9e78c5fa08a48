from typing import Any, Dict, List, Optional
from sqlmodel import Session, select, func

from .....db.models import Patient
from .....application.ports.patient_repo import PatientRepository, PatientDto, NewPatient
from ._base import apply_patch, save, storage_call


class SqlPatientRepository(PatientRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, p: Patient) -> PatientDto:
        return PatientDto(
            id=p.id,
            profile_id=p.profile_id,
            patient_number=p.patient_number,
            blood_group=p.blood_group,
            allergies=list(p.allergies or []),
            chronic_conditions=list(p.chronic_conditions or []),
            insurance_provider=p.insurance_provider,
            primary_doctor_id=p.primary_doctor_id,
            ssn_encrypted=p.ssn_encrypted,
            emergency_contact_encrypted=p.emergency_contact_encrypted,
            insurance_policy_encrypted=p.insurance_policy_encrypted,
            medical_history_encrypted=p.medical_history_encrypted,
            is_active=bool(p.is_active),
            created_at=p.created_at,
            updated_at=p.updated_at,
        )

    def _first(self, query) -> Optional[Patient]:
        with storage_call(self.session, "load patient"):
            return self.session.exec(query).first()

    def insert(self, row: NewPatient) -> PatientDto:
        patient = Patient(
            profile_id=row.profile_id,
            patient_number=row.patient_number,
            blood_group=row.blood_group,
            allergies=row.allergies,
            chronic_conditions=row.chronic_conditions,
            insurance_provider=row.insurance_provider,
            primary_doctor_id=row.primary_doctor_id,
            ssn_encrypted=row.ssn_encrypted,
            emergency_contact_encrypted=row.emergency_contact_encrypted,
            insurance_policy_encrypted=row.insurance_policy_encrypted,
            medical_history_encrypted=row.medical_history_encrypted,
        )
        return self._to_dto(save(self.session, patient, "register patient"))

    def get_by_id(self, patient_id: str) -> Optional[PatientDto]:
        p = self._first(select(Patient).where(Patient.id == patient_id))
        return self._to_dto(p) if p else None

    def get_by_profile(self, profile_id: str) -> Optional[PatientDto]:
        p = self._first(select(Patient).where(Patient.profile_id == profile_id))
        return self._to_dto(p) if p else None

    def update(self, patient_id: str, patch: Dict[str, Any]) -> Optional[PatientDto]:
        p = self._first(select(Patient).where(Patient.id == patient_id))
        if not p:
            return None
        apply_patch(p, patch)
        return self._to_dto(save(self.session, p, "update patient"))

    def list_active(self) -> List[PatientDto]:
        query = select(Patient).where(Patient.is_active == True).order_by(Patient.created_at.desc())  # noqa: E712
        with storage_call(self.session, "list patients"):
            rows = self.session.exec(query).all()
        return [self._to_dto(r) for r in rows]

    def count(self, active_only: bool = False) -> int:
        query = select(func.count(Patient.id))
        if active_only:
            query = query.where(Patient.is_active == True)  # noqa: E712
        with storage_call(self.session, "count patients"):
            return self.session.exec(query).one() or 0
