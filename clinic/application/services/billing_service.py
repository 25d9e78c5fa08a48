import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from ..identity import Identity, Role, require_role
from ...core.clock import utc_now
from ..ports.audit_logger import AuditLogger
from ..ports.billing_repo import BILLING_STATUSES, BillingDto, BillingRepository, NewBilling
from ..ports.field_codec import FieldCodec
from ...exceptions import NotFound, ValidationError

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
BILLING_ROLES = (Role.ADMIN, Role.RECEPTIONIST)


def format_invoice_number(year: int, month: int, sequence: int) -> str:
    return f"INV-{year}{month:02d}-{sequence:05d}"


def _money(value: Any, name: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {name}")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"Invalid {name}")
    return amount.quantize(CENTS)


@dataclass
class BillingService:
    repo: BillingRepository
    audit: AuditLogger
    codec: FieldCodec

    def next_invoice_number(self, now: datetime) -> str:
        sequence = self.repo.count_created_in_month(now.year, now.month) + 1
        return format_invoice_number(now.year, now.month, sequence)

    def create(
        self,
        identity: Optional[Identity],
        patient_id: str,
        amount: Any,
        due_date: date,
        services: Optional[Dict[str, Any]] = None,
        tax_amount: Any = None,
        appointment_id: Optional[str] = None,
        insurance_claim: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BillingDto:
        identity = require_role(identity, *BILLING_ROLES)
        amount_d = _money(amount, "amount")
        tax_d = _money(tax_amount or 0, "tax_amount")
        now = now or utc_now()

        row = NewBilling(
            patient_id=patient_id,
            invoice_number=self.next_invoice_number(now),
            amount=amount_d,
            tax_amount=tax_d,
            total_amount=amount_d + tax_d,
            due_date=due_date,
            services=services or {},
            appointment_id=appointment_id,
            insurance_claim_encrypted=self.codec.encrypt(insurance_claim) if insurance_claim else None,
            notes=notes,
        )
        bill = self.repo.insert(row)
        self.audit.log(
            "create",
            "billing",
            record_id=bill.id,
            user_id=identity.user_id,
            new_values={"invoice_number": bill.invoice_number, "total_amount": str(bill.total_amount)},
        )
        logger.info(f"Created invoice {bill.invoice_number} for patient {patient_id}")
        return bill

    def get(self, billing_id: str) -> BillingDto:
        bill = self.repo.get_by_id(billing_id)
        if not bill:
            raise NotFound("Invoice not found")
        return bill

    def list_for_patient(self, patient_id: str) -> List[BillingDto]:
        return self.repo.list_for_patient(patient_id)

    def list_pending(self) -> List[BillingDto]:
        return self.repo.list_pending()

    def update_status(self, identity: Optional[Identity], billing_id: str, status: str, payment_method: Optional[str] = None, now: Optional[datetime] = None) -> BillingDto:
        identity = require_role(identity, *BILLING_ROLES)
        if status not in BILLING_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {list(BILLING_STATUSES)}")
        bill = self.get(billing_id)

        patch: Dict[str, Any] = {"status": status}
        if status == "paid" and bill.status != "paid":
            patch["paid_at"] = now or utc_now()
            if payment_method:
                patch["payment_method"] = payment_method

        updated = self.repo.update(billing_id, patch)
        if not updated:
            raise NotFound("Invoice not found")
        self.audit.log(
            "update",
            "billing",
            record_id=billing_id,
            user_id=identity.user_id,
            old_values={"status": bill.status},
            new_values={"status": status},
        )
        logger.info(f"Invoice {bill.invoice_number} status {bill.status} -> {status}")
        return updated

    def update(
        self,
        identity: Optional[Identity],
        billing_id: str,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        services: Optional[Dict[str, Any]] = None,
    ) -> BillingDto:
        identity = require_role(identity, *BILLING_ROLES)
        self.get(billing_id)
        patch: Dict[str, Any] = {}
        if due_date is not None:
            patch["due_date"] = due_date
        if notes is not None:
            patch["notes"] = notes
        if services is not None:
            patch["services"] = services
        if not patch:
            return self.get(billing_id)
        updated = self.repo.update(billing_id, patch)
        if not updated:
            raise NotFound("Invoice not found")
        self.audit.log("update", "billing", record_id=billing_id, user_id=identity.user_id, new_values={"fields": sorted(patch)})
        return updated
