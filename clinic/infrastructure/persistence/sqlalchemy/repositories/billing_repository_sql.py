from typing import Any, Dict, List, Optional
from datetime import datetime
from sqlmodel import Session, select, func

from .....core.clock import month_start
from .....db.models import Billing
from .....application.ports.billing_repo import BillingRepository, BillingDto, NewBilling, OUTSTANDING_STATUSES
from ._base import apply_patch, save, storage_call


class SqlBillingRepository(BillingRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, b: Billing) -> BillingDto:
        return BillingDto(
            id=b.id,
            patient_id=b.patient_id,
            appointment_id=b.appointment_id,
            invoice_number=b.invoice_number,
            amount=b.amount,
            tax_amount=b.tax_amount,
            total_amount=b.total_amount,
            status=b.status,
            services=dict(b.services or {}),
            insurance_claim_encrypted=b.insurance_claim_encrypted,
            payment_method=b.payment_method,
            paid_at=b.paid_at,
            due_date=b.due_date,
            notes=b.notes,
            created_at=b.created_at,
            updated_at=b.updated_at,
        )

    def _get(self, billing_id: str) -> Optional[Billing]:
        with storage_call(self.session, "load invoice"):
            return self.session.exec(select(Billing).where(Billing.id == billing_id)).first()

    def insert(self, row: NewBilling) -> BillingDto:
        bill = Billing(
            patient_id=row.patient_id,
            appointment_id=row.appointment_id,
            invoice_number=row.invoice_number,
            amount=row.amount,
            tax_amount=row.tax_amount,
            total_amount=row.total_amount,
            services=row.services,
            insurance_claim_encrypted=row.insurance_claim_encrypted,
            due_date=row.due_date,
            notes=row.notes,
        )
        return self._to_dto(save(self.session, bill, "create invoice"))

    def get_by_id(self, billing_id: str) -> Optional[BillingDto]:
        b = self._get(billing_id)
        return self._to_dto(b) if b else None

    def update(self, billing_id: str, patch: Dict[str, Any]) -> Optional[BillingDto]:
        b = self._get(billing_id)
        if not b:
            return None
        apply_patch(b, patch)
        return self._to_dto(save(self.session, b, "update invoice"))

    def list_for_patient(self, patient_id: str) -> List[BillingDto]:
        query = select(Billing).where(Billing.patient_id == patient_id).order_by(Billing.created_at.desc())
        with storage_call(self.session, "list invoices"):
            rows = self.session.exec(query).all()
        return [self._to_dto(r) for r in rows]

    def list_pending(self) -> List[BillingDto]:
        query = select(Billing).where(Billing.status.in_(OUTSTANDING_STATUSES)).order_by(Billing.due_date.asc())
        with storage_call(self.session, "list pending invoices"):
            rows = self.session.exec(query).all()
        return [self._to_dto(r) for r in rows]

    def list_all(self, since: Optional[datetime] = None) -> List[BillingDto]:
        query = select(Billing)
        if since:
            query = query.where(Billing.created_at >= since)
        with storage_call(self.session, "list invoices"):
            rows = self.session.exec(query.order_by(Billing.created_at.asc())).all()
        return [self._to_dto(r) for r in rows]

    def count_created_in_month(self, year: int, month: int) -> int:
        start = month_start(year, month)
        end = month_start(year + 1, 1) if month == 12 else month_start(year, month + 1)
        query = select(func.count(Billing.id)).where(Billing.created_at >= start).where(Billing.created_at < end)
        with storage_call(self.session, "count invoices"):
            return self.session.exec(query).one() or 0
