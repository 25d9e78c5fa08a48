from typing import Any, Dict, List, Optional
from sqlmodel import Session, select

from .....db.models import MedicalRecord, Prescription
from .....application.ports.records_repo import (
    MedicalRecordRepository,
    MedicalRecordDto,
    NewMedicalRecord,
    PrescriptionRepository,
    PrescriptionDto,
    NewPrescription,
)
from ._base import apply_patch, save, storage_call


class SqlMedicalRecordRepository(MedicalRecordRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, r: MedicalRecord) -> MedicalRecordDto:
        return MedicalRecordDto(
            id=r.id,
            patient_id=r.patient_id,
            doctor_id=r.doctor_id,
            visit_date=r.visit_date,
            chief_complaint_encrypted=r.chief_complaint_encrypted,
            diagnosis_encrypted=r.diagnosis_encrypted,
            treatment_plan_encrypted=r.treatment_plan_encrypted,
            vital_signs_encrypted=r.vital_signs_encrypted,
            notes_encrypted=r.notes_encrypted,
            follow_up_date=r.follow_up_date,
            created_by=r.created_by,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )

    def _get(self, record_id: str) -> Optional[MedicalRecord]:
        with storage_call(self.session, "load medical record"):
            return self.session.exec(select(MedicalRecord).where(MedicalRecord.id == record_id)).first()

    def insert(self, row: NewMedicalRecord) -> MedicalRecordDto:
        record = MedicalRecord(**row.__dict__)
        return self._to_dto(save(self.session, record, "create medical record"))

    def get_by_id(self, record_id: str) -> Optional[MedicalRecordDto]:
        r = self._get(record_id)
        return self._to_dto(r) if r else None

    def update(self, record_id: str, patch: Dict[str, Any]) -> Optional[MedicalRecordDto]:
        r = self._get(record_id)
        if not r:
            return None
        apply_patch(r, patch)
        return self._to_dto(save(self.session, r, "update medical record"))

    def list_for_patient(self, patient_id: str) -> List[MedicalRecordDto]:
        query = select(MedicalRecord).where(MedicalRecord.patient_id == patient_id).order_by(MedicalRecord.visit_date.desc())
        with storage_call(self.session, "list medical records"):
            rows = self.session.exec(query).all()
        return [self._to_dto(r) for r in rows]


class SqlPrescriptionRepository(PrescriptionRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, p: Prescription) -> PrescriptionDto:
        return PrescriptionDto(
            id=p.id,
            patient_id=p.patient_id,
            doctor_id=p.doctor_id,
            medical_record_id=p.medical_record_id,
            medication_name_encrypted=p.medication_name_encrypted,
            dosage_encrypted=p.dosage_encrypted,
            frequency_encrypted=p.frequency_encrypted,
            duration=p.duration,
            instructions_encrypted=p.instructions_encrypted,
            refills_allowed=p.refills_allowed,
            pharmacy_name=p.pharmacy_name,
            prescribed_date=p.prescribed_date,
            valid_until=p.valid_until,
            status=p.status,
            created_at=p.created_at,
            updated_at=p.updated_at,
        )

    def insert(self, row: NewPrescription) -> PrescriptionDto:
        prescription = Prescription(**row.__dict__)
        return self._to_dto(save(self.session, prescription, "create prescription"))

    def update(self, prescription_id: str, patch: Dict[str, Any]) -> Optional[PrescriptionDto]:
        with storage_call(self.session, "load prescription"):
            p = self.session.exec(select(Prescription).where(Prescription.id == prescription_id)).first()
        if not p:
            return None
        apply_patch(p, patch)
        return self._to_dto(save(self.session, p, "update prescription"))

    def list_for_patient(self, patient_id: str, status: Optional[str] = None) -> List[PrescriptionDto]:
        query = select(Prescription).where(Prescription.patient_id == patient_id)
        if status:
            query = query.where(Prescription.status == status)
        with storage_call(self.session, "list prescriptions"):
            rows = self.session.exec(query.order_by(Prescription.prescribed_date.desc())).all()
        return [self._to_dto(r) for r in rows]
