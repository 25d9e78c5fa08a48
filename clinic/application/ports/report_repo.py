from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol
from datetime import datetime, date


@dataclass
class NewMedicalReport:
    patient_id: str
    report_type: str
    report_date: date
    title: str
    created_by: str
    doctor_id: Optional[str] = None
    findings_encrypted: Optional[str] = None
    interpretation_encrypted: Optional[str] = None
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None


@dataclass
class MedicalReportDto:
    id: str
    patient_id: str
    doctor_id: Optional[str]
    report_type: str
    report_date: date
    title: str
    findings_encrypted: Optional[str]
    interpretation_encrypted: Optional[str]
    file_path: Optional[str]
    file_name: Optional[str]
    file_size: Optional[int]
    mime_type: Optional[str]
    is_reviewed: bool
    reviewed_by: Optional[str]
    reviewed_at: Optional[datetime]
    created_by: str
    created_at: datetime
    updated_at: datetime


class ReportRepository(Protocol):
    def insert(self, row: NewMedicalReport) -> MedicalReportDto:
        ...

    def get_by_id(self, report_id: str) -> Optional[MedicalReportDto]:
        ...

    def update(self, report_id: str, patch: Dict[str, Any]) -> Optional[MedicalReportDto]:
        ...

    def delete(self, report_id: str) -> bool:
        ...

    def list_for_patient(self, patient_id: str) -> List[MedicalReportDto]:
        ...
