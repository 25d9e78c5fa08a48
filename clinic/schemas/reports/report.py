# clinic/schemas/reports/report.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime, date

class ReportUpdate(BaseModel):
    title: Optional[str] = None
    report_type: Optional[str] = None
    report_date: Optional[date] = None
    findings: Optional[str] = None
    interpretation: Optional[str] = None
    is_reviewed: Optional[bool] = None

class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    doctor_id: Optional[str] = None
    report_type: str
    report_date: date
    title: str
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    findings: Optional[str] = None
    interpretation: Optional[str] = None
    is_reviewed: bool
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

class DownloadUrlResponse(BaseModel):
    url: str
    expires_in: int
