from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response
import logging

from ..application.identity import Identity, STAFF_ROLES
from ..application.services.patient_service import PatientService
from ..application.services.records_service import reveal
from ..application.services.report_service import ReportService
from ..schemas.common.common import MessageResponse
from ..schemas.reports.report import DownloadUrlResponse, ReportResponse, ReportUpdate
from .deps import ensure_patient_access, get_current_identity, get_patient_service, get_report_service, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Medical Reports"])


@router.post("/", response_model=ReportResponse)
async def upload_report(
    file: UploadFile = File(...),
    patient_id: str = Form(...),
    report_type: str = Form(...),
    report_date: date = Form(...),
    title: str = Form(...),
    doctor_id: Optional[str] = Form(None),
    findings: Optional[str] = Form(None),
    interpretation: Optional[str] = Form(None),
    identity: Identity = Depends(get_current_identity),
    report_service: ReportService = Depends(get_report_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    try:
        ensure_patient_access(identity, patient_service, patient_id)
        data = await file.read()
        report = report_service.upload(
            identity,
            patient_id=patient_id,
            file_name=file.filename or "report",
            data=data,
            mime_type=file.content_type,
            report_type=report_type,
            report_date=report_date,
            title=title,
            doctor_id=doctor_id,
            findings=findings,
            interpretation=interpretation,
        )
        return reveal(report_service.codec, report)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error uploading report: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to upload report")


@router.get("/download")
def download_report(token: str = Query(...), report_service: ReportService = Depends(get_report_service)):
    """Signed links carry their own authorization."""
    data = report_service.resolve_download(token)
    return Response(content=data, media_type="application/octet-stream")


@router.get("/patient/{patient_id}", response_model=List[ReportResponse])
def patient_reports(
    patient_id: str,
    identity: Identity = Depends(get_current_identity),
    report_service: ReportService = Depends(get_report_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    ensure_patient_access(identity, patient_service, patient_id)
    return [reveal(report_service.codec, r) for r in report_service.list_for_patient(patient_id)]


@router.get("/{report_id}", response_model=ReportResponse)
def get_report(
    report_id: str,
    identity: Identity = Depends(get_current_identity),
    report_service: ReportService = Depends(get_report_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    report = report_service.get(report_id)
    ensure_patient_access(identity, patient_service, report.patient_id)
    return reveal(report_service.codec, report)


@router.get("/{report_id}/download-url", response_model=DownloadUrlResponse)
def report_download_url(
    report_id: str,
    identity: Identity = Depends(get_current_identity),
    report_service: ReportService = Depends(get_report_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    report = report_service.get(report_id)
    ensure_patient_access(identity, patient_service, report.patient_id)
    if not report.file_path:
        raise HTTPException(status_code=404, detail="Report has no attached file")
    token = report_service.download_url(report.file_path)
    return DownloadUrlResponse(url=f"/reports/download?token={token}", expires_in=report_service.url_ttl_seconds)


@router.patch("/{report_id}", response_model=ReportResponse)
def update_report(
    report_id: str,
    update: ReportUpdate,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    report_service: ReportService = Depends(get_report_service),
):
    report = report_service.update(identity, report_id, **update.model_dump(exclude_unset=True))
    return reveal(report_service.codec, report)


@router.delete("/{report_id}", response_model=MessageResponse)
def delete_report(
    report_id: str,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    report_service: ReportService = Depends(get_report_service),
):
    report_service.delete(identity, report_id)
    return MessageResponse(message="Report deleted")
