from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol
from datetime import datetime, date


BILLING_STATUSES = ("pending", "paid", "overdue", "cancelled", "insurance_pending")
OUTSTANDING_STATUSES = ("pending", "overdue")


@dataclass
class NewBilling:
    patient_id: str
    invoice_number: str
    amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    due_date: date
    services: Dict[str, Any] = field(default_factory=dict)
    appointment_id: Optional[str] = None
    insurance_claim_encrypted: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class BillingDto:
    id: str
    patient_id: str
    appointment_id: Optional[str]
    invoice_number: str
    amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: str
    services: Dict[str, Any]
    insurance_claim_encrypted: Optional[str]
    payment_method: Optional[str]
    paid_at: Optional[datetime]
    due_date: date
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


class BillingRepository(Protocol):
    def insert(self, row: NewBilling) -> BillingDto:
        ...

    def get_by_id(self, billing_id: str) -> Optional[BillingDto]:
        ...

    def update(self, billing_id: str, patch: Dict[str, Any]) -> Optional[BillingDto]:
        ...

    def list_for_patient(self, patient_id: str) -> List[BillingDto]:
        ...

    def list_pending(self) -> List[BillingDto]:
        ...

    def list_all(self, since: Optional[datetime] = None) -> List[BillingDto]:
        ...

    def count_created_in_month(self, year: int, month: int) -> int:
        ...
