from typing import List, Optional
from sqlmodel import Session, select

from .....db.models import Doctor
from .....application.ports.doctor_repo import DoctorRepository, DoctorDto, NewDoctor
from ._base import save, storage_call


class SqlDoctorRepository(DoctorRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, d: Doctor) -> DoctorDto:
        return DoctorDto(
            id=d.id,
            profile_id=d.profile_id,
            license_number=d.license_number,
            specialization=list(d.specialization or []),
            department=d.department,
            consultation_fee=d.consultation_fee,
            is_active=bool(d.is_active),
            created_at=d.created_at,
        )

    def insert(self, row: NewDoctor) -> DoctorDto:
        doctor = Doctor(
            profile_id=row.profile_id,
            license_number=row.license_number,
            specialization=row.specialization,
            department=row.department,
            consultation_fee=row.consultation_fee,
        )
        return self._to_dto(save(self.session, doctor, "register doctor"))

    def get_by_id(self, doctor_id: str) -> Optional[DoctorDto]:
        with storage_call(self.session, "load doctor"):
            d = self.session.exec(select(Doctor).where(Doctor.id == doctor_id)).first()
        return self._to_dto(d) if d else None

    def list_active(self) -> List[DoctorDto]:
        with storage_call(self.session, "list doctors"):
            rows = self.session.exec(select(Doctor).where(Doctor.is_active == True)).all()  # noqa: E712
        return [self._to_dto(r) for r in rows]
