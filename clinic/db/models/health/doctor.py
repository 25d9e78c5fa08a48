# clinic/db/models/health/doctor.py
from typing import Optional, List
from decimal import Decimal
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from datetime import datetime
import uuid

from ....core.clock import utc_now

class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    profile_id: str = Field(max_length=36, index=True)
    license_number: str = Field(max_length=50, unique=True)
    specialization: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    department: Optional[str] = Field(default=None, max_length=100)
    consultation_fee: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
