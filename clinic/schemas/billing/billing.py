# clinic/schemas/billing/billing.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from decimal import Decimal
from datetime import datetime, date

class BillingCreate(BaseModel):
    patient_id: str
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    tax_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    due_date: date
    services: Dict[str, Any] = {}
    appointment_id: Optional[str] = None
    insurance_claim: Optional[str] = None
    notes: Optional[str] = None

class BillingStatusUpdate(BaseModel):
    status: str
    payment_method: Optional[str] = None

class BillingUpdate(BaseModel):
    due_date: Optional[date] = None
    notes: Optional[str] = None
    services: Optional[Dict[str, Any]] = None

class BillingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    appointment_id: Optional[str] = None
    invoice_number: str
    amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: str
    services: Dict[str, Any]
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None
    due_date: date
    notes: Optional[str] = None
    created_at: datetime
