# clinic/db/models/billing/billing.py
from typing import Optional, Dict, Any
from decimal import Decimal
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from datetime import datetime, date
import uuid

from ....core.clock import utc_now

class Billing(SQLModel, table=True):
    __tablename__ = "billing"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    patient_id: str = Field(foreign_key="patients.id", index=True)
    appointment_id: Optional[str] = Field(default=None, foreign_key="appointments.id")
    invoice_number: str = Field(max_length=20, unique=True)
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    total_amount: Decimal = Field(max_digits=12, decimal_places=2)
    status: str = Field(default="pending", max_length=20, index=True)
    services: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    insurance_claim_encrypted: Optional[str] = None
    payment_method: Optional[str] = Field(default=None, max_length=50)
    paid_at: Optional[datetime] = None
    due_date: date
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)
