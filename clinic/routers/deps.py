from functools import lru_cache
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from ..core.config import settings
from ..database import get_session
from ..exceptions import Unauthenticated
from ..application.identity import Identity, Role, require_role
from ..application.services.appointments_service import AppointmentsService
from ..application.services.analytics_service import AnalyticsService
from ..application.services.billing_service import BillingService
from ..application.services.doctor_service import DoctorService
from ..application.services.patient_service import PatientService
from ..application.services.records_service import RecordsService
from ..application.services.report_service import ReportService
from ..infrastructure.audit.sql_audit_logger import SqlAuditLogger
from ..infrastructure.crypto.fernet_codec import FernetFieldCodec
from ..infrastructure.storage.link_signer import JwtLinkSigner
from ..infrastructure.storage.local_storage import LocalStorageRepository
from ..infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.billing_repository_sql import SqlBillingRepository
from ..infrastructure.persistence.sqlalchemy.repositories.doctor_repository_sql import SqlDoctorRepository
from ..infrastructure.persistence.sqlalchemy.repositories.patient_repository_sql import SqlPatientRepository
from ..infrastructure.persistence.sqlalchemy.repositories.records_repository_sql import SqlMedicalRecordRepository, SqlPrescriptionRepository
from ..infrastructure.persistence.sqlalchemy.repositories.report_repository_sql import SqlReportRepository
from ..utils import identity_from_token

oauth2_scheme = HTTPBearer(auto_error=False)


def get_current_identity(request: Request, credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme)) -> Identity:
    token = credentials.credentials if credentials and credentials.credentials else request.cookies.get("access_token")
    if not token:
        raise Unauthenticated()
    identity = identity_from_token(token)
    if not identity:
        raise Unauthenticated("Invalid or expired token")
    return identity


def require_roles(*roles: Role):
    def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        return require_role(identity, *roles)
    return dependency


@lru_cache()
def get_field_codec() -> FernetFieldCodec:
    return FernetFieldCodec()


def optional_field_codec() -> Optional[FernetFieldCodec]:
    return get_field_codec() if settings.FIELD_ENCRYPTION_KEY else None


def get_appointments_service(session: Session = Depends(get_session)) -> AppointmentsService:
    return AppointmentsService(repo=SqlAppointmentsRepository(session), audit=SqlAuditLogger(session), codec=optional_field_codec())


def get_analytics_service(session: Session = Depends(get_session)) -> AnalyticsService:
    return AnalyticsService(
        appointments=SqlAppointmentsRepository(session),
        billing=SqlBillingRepository(session),
        patients=SqlPatientRepository(session),
        audit=SqlAuditLogger(session),
    )


def get_billing_service(session: Session = Depends(get_session)) -> BillingService:
    return BillingService(repo=SqlBillingRepository(session), audit=SqlAuditLogger(session), codec=get_field_codec())


def get_patient_service(session: Session = Depends(get_session)) -> PatientService:
    return PatientService(repo=SqlPatientRepository(session), audit=SqlAuditLogger(session), codec=optional_field_codec())


def get_doctor_service(session: Session = Depends(get_session)) -> DoctorService:
    return DoctorService(repo=SqlDoctorRepository(session), audit=SqlAuditLogger(session))


def get_records_service(session: Session = Depends(get_session)) -> RecordsService:
    return RecordsService(
        records=SqlMedicalRecordRepository(session),
        prescriptions=SqlPrescriptionRepository(session),
        audit=SqlAuditLogger(session),
        codec=get_field_codec(),
    )


def get_report_service(session: Session = Depends(get_session)) -> ReportService:
    return ReportService(
        repo=SqlReportRepository(session),
        storage=LocalStorageRepository(),
        signer=JwtLinkSigner(),
        audit=SqlAuditLogger(session),
        codec=get_field_codec(),
        max_size=settings.MAX_REPORT_SIZE,
        url_ttl_seconds=settings.REPORT_URL_TTL_SECONDS,
    )


def ensure_patient_access(identity: Identity, patient_service: PatientService, patient_id: str) -> None:
    """Patients may only reach their own chart."""
    patient_service.get_for(identity, patient_id)
