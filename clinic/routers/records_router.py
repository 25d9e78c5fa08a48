from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..application.identity import Identity, Role
from ..application.services.patient_service import PatientService
from ..application.services.records_service import RecordsService, reveal
from ..schemas.records.records import (
    MedicalRecordCreate,
    MedicalRecordResponse,
    MedicalRecordUpdate,
    PrescriptionCreate,
    PrescriptionResponse,
    PrescriptionUpdate,
)
from .deps import ensure_patient_access, get_current_identity, get_patient_service, get_records_service, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/records", tags=["Medical Records"])

CLINICAL_ROLES = (Role.DOCTOR, Role.NURSE, Role.ADMIN)


@router.post("/medical", response_model=MedicalRecordResponse)
def create_medical_record(
    record_data: MedicalRecordCreate,
    identity: Identity = Depends(require_roles(*CLINICAL_ROLES)),
    records_service: RecordsService = Depends(get_records_service),
):
    try:
        record = records_service.create_record(identity, **record_data.model_dump())
        return reveal(records_service.codec, record)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating medical record: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create medical record")


@router.get("/medical/patient/{patient_id}", response_model=List[MedicalRecordResponse])
def patient_medical_records(
    patient_id: str,
    identity: Identity = Depends(get_current_identity),
    records_service: RecordsService = Depends(get_records_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    ensure_patient_access(identity, patient_service, patient_id)
    return [reveal(records_service.codec, r) for r in records_service.list_records(patient_id)]


@router.get("/medical/{record_id}", response_model=MedicalRecordResponse)
def get_medical_record(
    record_id: str,
    identity: Identity = Depends(get_current_identity),
    records_service: RecordsService = Depends(get_records_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    record = records_service.get_record(record_id)
    ensure_patient_access(identity, patient_service, record.patient_id)
    return reveal(records_service.codec, record)


@router.patch("/medical/{record_id}", response_model=MedicalRecordResponse)
def update_medical_record(
    record_id: str,
    update: MedicalRecordUpdate,
    identity: Identity = Depends(require_roles(*CLINICAL_ROLES)),
    records_service: RecordsService = Depends(get_records_service),
):
    record = records_service.update_record(identity, record_id, **update.model_dump(exclude_unset=True))
    return reveal(records_service.codec, record)


@router.post("/prescriptions", response_model=PrescriptionResponse)
def create_prescription(
    prescription_data: PrescriptionCreate,
    identity: Identity = Depends(require_roles(Role.DOCTOR)),
    records_service: RecordsService = Depends(get_records_service),
):
    try:
        prescription = records_service.create_prescription(identity, **prescription_data.model_dump())
        return reveal(records_service.codec, prescription)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating prescription: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create prescription")


@router.get("/prescriptions/patient/{patient_id}", response_model=List[PrescriptionResponse])
def patient_prescriptions(
    patient_id: str,
    active_only: bool = Query(False),
    identity: Identity = Depends(get_current_identity),
    records_service: RecordsService = Depends(get_records_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    ensure_patient_access(identity, patient_service, patient_id)
    return [reveal(records_service.codec, p) for p in records_service.list_prescriptions(patient_id, active_only=active_only)]


@router.patch("/prescriptions/{prescription_id}", response_model=PrescriptionResponse)
def update_prescription(
    prescription_id: str,
    update: PrescriptionUpdate,
    identity: Identity = Depends(require_roles(Role.DOCTOR, Role.ADMIN)),
    records_service: RecordsService = Depends(get_records_service),
):
    prescription = records_service.update_prescription(identity, prescription_id, **update.model_dump(exclude_unset=True))
    return reveal(records_service.codec, prescription)
