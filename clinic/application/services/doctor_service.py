import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from ..identity import Identity, Role, require_role
from ..ports.audit_logger import AuditLogger
from ..ports.doctor_repo import DoctorDto, DoctorRepository, NewDoctor
from ...exceptions import NotFound

logger = logging.getLogger(__name__)


@dataclass
class DoctorService:
    repo: DoctorRepository
    audit: AuditLogger

    def create(self, identity: Optional[Identity], profile_id: str, license_number: str, specialization: Optional[List[str]] = None, department: Optional[str] = None, consultation_fee: Optional[Decimal] = None) -> DoctorDto:
        identity = require_role(identity, Role.ADMIN)
        doctor = self.repo.insert(NewDoctor(
            profile_id=profile_id,
            license_number=license_number,
            specialization=list(specialization or []),
            department=department,
            consultation_fee=consultation_fee,
        ))
        self.audit.log("create", "doctors", record_id=doctor.id, user_id=identity.user_id, new_values={"license_number": license_number})
        logger.info(f"Registered doctor {doctor.id}")
        return doctor

    def get(self, doctor_id: str) -> DoctorDto:
        doctor = self.repo.get_by_id(doctor_id)
        if not doctor:
            raise NotFound("Doctor not found")
        return doctor

    def list_active(self) -> List[DoctorDto]:
        return self.repo.list_active()
