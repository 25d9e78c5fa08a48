import logging
import os
import secrets
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from ..identity import Identity, STAFF_ROLES, require_identity, require_role
from ...core.clock import utc_now
from ..ports.audit_logger import AuditLogger
from ..ports.field_codec import FieldCodec
from ..ports.report_repo import MedicalReportDto, NewMedicalReport, ReportRepository
from ..ports.storage_repo import LinkSigner, StorageRepository
from ...exceptions import NotFound, ValidationError

logger = logging.getLogger(__name__)


def build_object_path(patient_id: str, file_name: str, now: Optional[datetime] = None) -> str:
    """<patient_id>/<millis>-<random>.<ext>"""
    now = now or utc_now()
    ext = os.path.splitext(file_name)[1].lstrip(".").lower() or "bin"
    return f"{patient_id}/{int(now.timestamp() * 1000)}-{secrets.token_hex(5)}.{ext}"


@dataclass
class ReportService:
    repo: ReportRepository
    storage: StorageRepository
    signer: LinkSigner
    audit: AuditLogger
    codec: FieldCodec
    max_size: int = 20 * 1024 * 1024
    url_ttl_seconds: int = 300

    def upload(
        self,
        identity: Optional[Identity],
        patient_id: str,
        file_name: str,
        data: bytes,
        mime_type: Optional[str],
        report_type: str,
        report_date: date,
        title: str,
        doctor_id: Optional[str] = None,
        findings: Optional[str] = None,
        interpretation: Optional[str] = None,
    ) -> MedicalReportDto:
        identity = require_identity(identity)
        if not data:
            raise ValidationError("Empty file")
        if len(data) > self.max_size:
            raise ValidationError(f"File too large. Maximum size is {self.max_size} bytes")

        path = build_object_path(patient_id, file_name)
        self.storage.save_bytes(path, data)

        row = NewMedicalReport(
            patient_id=patient_id,
            doctor_id=doctor_id,
            report_type=report_type,
            report_date=report_date,
            title=title,
            created_by=identity.user_id,
            findings_encrypted=self.codec.encrypt(findings) if findings else None,
            interpretation_encrypted=self.codec.encrypt(interpretation) if interpretation else None,
            file_path=path,
            file_name=file_name,
            file_size=len(data),
            mime_type=mime_type,
        )
        try:
            report = self.repo.insert(row)
            self.audit.log("create", "medical_reports", record_id=report.id, user_id=identity.user_id, new_values={"file_path": path})
        except Exception:
            # Row was not committed; do not leave an orphaned object behind.
            logger.error(f"Failed to record report for patient {patient_id}, removing {path}")
            self.storage.remove(path)
            raise

        logger.info(f"Uploaded report {report.id} ({len(data)} bytes) for patient {patient_id}")
        return report

    def get(self, report_id: str) -> MedicalReportDto:
        report = self.repo.get_by_id(report_id)
        if not report:
            raise NotFound("Report not found")
        return report

    def list_for_patient(self, patient_id: str) -> List[MedicalReportDto]:
        return self.repo.list_for_patient(patient_id)

    def download_url(self, file_path: str) -> str:
        return self.signer.sign(file_path, self.url_ttl_seconds)

    def resolve_download(self, token: str) -> bytes:
        path = self.signer.verify(token)
        if not path:
            raise ValidationError("Download link is invalid or expired")
        return self.storage.read_bytes(path)

    def update(self, identity: Optional[Identity], report_id: str, **fields: Any) -> MedicalReportDto:
        identity = require_role(identity, *STAFF_ROLES)
        self.get(report_id)
        patch: Dict[str, Any] = {}
        for name in ("title", "report_type", "report_date"):
            if fields.get(name) is not None:
                patch[name] = fields[name]
        for name in ("findings", "interpretation"):
            if fields.get(name) is not None:
                patch[f"{name}_encrypted"] = self.codec.encrypt(fields[name])
        if fields.get("is_reviewed"):
            patch["is_reviewed"] = True
            patch["reviewed_by"] = identity.user_id
            patch["reviewed_at"] = utc_now()
        if not patch:
            return self.get(report_id)
        updated = self.repo.update(report_id, patch)
        if not updated:
            raise NotFound("Report not found")
        self.audit.log("update", "medical_reports", record_id=report_id, user_id=identity.user_id, new_values={"fields": sorted(patch)})
        return updated

    def delete(self, identity: Optional[Identity], report_id: str) -> None:
        identity = require_role(identity, *STAFF_ROLES)
        report = self.get(report_id)
        if not self.repo.delete(report_id):
            raise NotFound("Report not found")
        self.audit.log("delete", "medical_reports", record_id=report_id, user_id=identity.user_id, old_values={"file_path": report.file_path})
        if report.file_path:
            self.storage.remove(report.file_path)
        logger.info(f"Deleted report {report_id}")
