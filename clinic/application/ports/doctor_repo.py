from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Protocol
from datetime import datetime


@dataclass
class NewDoctor:
    profile_id: str
    license_number: str
    specialization: List[str] = field(default_factory=list)
    department: Optional[str] = None
    consultation_fee: Optional[Decimal] = None


@dataclass
class DoctorDto:
    id: str
    profile_id: str
    license_number: str
    specialization: List[str]
    department: Optional[str]
    consultation_fee: Optional[Decimal]
    is_active: bool
    created_at: datetime


class DoctorRepository(Protocol):
    def insert(self, row: NewDoctor) -> DoctorDto:
        ...

    def get_by_id(self, doctor_id: str) -> Optional[DoctorDto]:
        ...

    def list_active(self) -> List[DoctorDto]:
        ...
