from typing import List
from fastapi import APIRouter, Depends, HTTPException
import logging

from ..application.identity import Identity, STAFF_ROLES
from ..application.services.patient_service import PatientService
from ..schemas.patients.patient import PatientCreate, PatientResponse, PatientUpdate
from .deps import get_current_identity, get_patient_service, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.post("/", response_model=PatientResponse)
def register_patient(
    patient_data: PatientCreate,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    patient_service: PatientService = Depends(get_patient_service),
):
    try:
        return patient_service.create(identity, **patient_data.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error registering patient: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to register patient")


@router.get("/", response_model=List[PatientResponse])
def list_patients(
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    patient_service: PatientService = Depends(get_patient_service),
):
    return patient_service.list_active()


@router.get("/me", response_model=PatientResponse)
def my_patient_record(
    identity: Identity = Depends(get_current_identity),
    patient_service: PatientService = Depends(get_patient_service),
):
    return patient_service.get_by_profile(identity.user_id)


@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: str,
    identity: Identity = Depends(get_current_identity),
    patient_service: PatientService = Depends(get_patient_service),
):
    return patient_service.get_for(identity, patient_id)


@router.patch("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: str,
    update: PatientUpdate,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    patient_service: PatientService = Depends(get_patient_service),
):
    try:
        return patient_service.update(identity, patient_id, **update.model_dump(exclude_unset=True))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating patient {patient_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update patient")
