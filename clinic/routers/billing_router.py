from typing import List
from fastapi import APIRouter, Depends, HTTPException
import logging

from ..application.identity import Identity
from ..application.services.billing_service import BILLING_ROLES, BillingService
from ..application.services.patient_service import PatientService
from ..schemas.billing.billing import BillingCreate, BillingResponse, BillingStatusUpdate, BillingUpdate
from .deps import ensure_patient_access, get_billing_service, get_current_identity, get_patient_service, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])


@router.post("/", response_model=BillingResponse)
def create_invoice(
    billing_data: BillingCreate,
    identity: Identity = Depends(require_roles(*BILLING_ROLES)),
    billing_service: BillingService = Depends(get_billing_service),
):
    try:
        return billing_service.create(identity, **billing_data.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating invoice: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create invoice")


@router.get("/pending", response_model=List[BillingResponse])
def pending_invoices(
    identity: Identity = Depends(require_roles(*BILLING_ROLES)),
    billing_service: BillingService = Depends(get_billing_service),
):
    return billing_service.list_pending()


@router.get("/patient/{patient_id}", response_model=List[BillingResponse])
def patient_invoices(
    patient_id: str,
    identity: Identity = Depends(get_current_identity),
    billing_service: BillingService = Depends(get_billing_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    ensure_patient_access(identity, patient_service, patient_id)
    return billing_service.list_for_patient(patient_id)


@router.get("/{billing_id}", response_model=BillingResponse)
def get_invoice(
    billing_id: str,
    identity: Identity = Depends(get_current_identity),
    billing_service: BillingService = Depends(get_billing_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    bill = billing_service.get(billing_id)
    ensure_patient_access(identity, patient_service, bill.patient_id)
    return bill


@router.patch("/{billing_id}/status", response_model=BillingResponse)
def update_invoice_status(
    billing_id: str,
    update: BillingStatusUpdate,
    identity: Identity = Depends(require_roles(*BILLING_ROLES)),
    billing_service: BillingService = Depends(get_billing_service),
):
    try:
        return billing_service.update_status(identity, billing_id, update.status, payment_method=update.payment_method)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating invoice {billing_id} status: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update invoice status")


@router.patch("/{billing_id}", response_model=BillingResponse)
def update_invoice(
    billing_id: str,
    update: BillingUpdate,
    identity: Identity = Depends(require_roles(*BILLING_ROLES)),
    billing_service: BillingService = Depends(get_billing_service),
):
    return billing_service.update(identity, billing_id, **update.model_dump(exclude_unset=True))
