from typing import Any, Dict, List, Optional
from sqlmodel import Session, select

from .....db.models import MedicalReport
from .....application.ports.report_repo import ReportRepository, MedicalReportDto, NewMedicalReport
from ._base import apply_patch, remove, save, storage_call


class SqlReportRepository(ReportRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, r: MedicalReport) -> MedicalReportDto:
        return MedicalReportDto(
            id=r.id,
            patient_id=r.patient_id,
            doctor_id=r.doctor_id,
            report_type=r.report_type,
            report_date=r.report_date,
            title=r.title,
            findings_encrypted=r.findings_encrypted,
            interpretation_encrypted=r.interpretation_encrypted,
            file_path=r.file_path,
            file_name=r.file_name,
            file_size=r.file_size,
            mime_type=r.mime_type,
            is_reviewed=bool(r.is_reviewed),
            reviewed_by=r.reviewed_by,
            reviewed_at=r.reviewed_at,
            created_by=r.created_by,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )

    def _get(self, report_id: str) -> Optional[MedicalReport]:
        with storage_call(self.session, "load report"):
            return self.session.exec(select(MedicalReport).where(MedicalReport.id == report_id)).first()

    def insert(self, row: NewMedicalReport) -> MedicalReportDto:
        report = MedicalReport(**row.__dict__)
        return self._to_dto(save(self.session, report, "record report"))

    def get_by_id(self, report_id: str) -> Optional[MedicalReportDto]:
        r = self._get(report_id)
        return self._to_dto(r) if r else None

    def update(self, report_id: str, patch: Dict[str, Any]) -> Optional[MedicalReportDto]:
        r = self._get(report_id)
        if not r:
            return None
        apply_patch(r, patch)
        return self._to_dto(save(self.session, r, "update report"))

    def delete(self, report_id: str) -> bool:
        r = self._get(report_id)
        if not r:
            return False
        remove(self.session, r, "delete report")
        return True

    def list_for_patient(self, patient_id: str) -> List[MedicalReportDto]:
        query = select(MedicalReport).where(MedicalReport.patient_id == patient_id).order_by(MedicalReport.report_date.desc())
        with storage_call(self.session, "list reports"):
            rows = self.session.exec(query).all()
        return [self._to_dto(r) for r in rows]
