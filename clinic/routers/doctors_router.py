from typing import List
from fastapi import APIRouter, Depends
import logging

from ..application.identity import Identity, Role
from ..application.services.doctor_service import DoctorService
from ..schemas.patients.patient import DoctorCreate, DoctorResponse
from .deps import get_current_identity, get_doctor_service, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.get("/", response_model=List[DoctorResponse])
def list_doctors(
    identity: Identity = Depends(get_current_identity),
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    return doctor_service.list_active()


@router.get("/{doctor_id}", response_model=DoctorResponse)
def get_doctor(
    doctor_id: str,
    identity: Identity = Depends(get_current_identity),
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    return doctor_service.get(doctor_id)


@router.post("/", response_model=DoctorResponse)
def create_doctor(
    doctor_data: DoctorCreate,
    identity: Identity = Depends(require_roles(Role.ADMIN)),
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    return doctor_service.create(identity, **doctor_data.model_dump())
