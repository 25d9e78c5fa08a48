from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..application.identity import Identity, STAFF_ROLES
from ..application.services.appointments_service import AppointmentsService
from ..application.services.patient_service import PatientService
from ..schemas.appointments.appointment import (
    AppointmentCreate,
    AppointmentDetailsUpdate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusUpdate,
    ConflictCheckRequest,
    ConflictCheckResponse,
)
from ..schemas.common.common import ErrorResponse, MessageResponse
from .deps import (
    ensure_patient_access,
    get_appointments_service,
    get_current_identity,
    get_patient_service,
    require_roles,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.post("/", response_model=AppointmentResponse, responses={409: {"model": ErrorResponse}, 400: {"model": ErrorResponse}})
def book_appointment(
    appointment_data: AppointmentCreate,
    identity: Identity = Depends(get_current_identity),
    appt_service: AppointmentsService = Depends(get_appointments_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    try:
        ensure_patient_access(identity, patient_service, appointment_data.patient_id)
        return appt_service.book(
            identity,
            patient_id=appointment_data.patient_id,
            doctor_id=appointment_data.doctor_id,
            appointment_date=appointment_data.appointment_date,
            start_time=appointment_data.start_time,
            end_time=appointment_data.end_time,
            appointment_type=appointment_data.appointment_type,
            reason=appointment_data.reason,
            location=appointment_data.location,
            notes=appointment_data.notes,
            status=appointment_data.status,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error booking appointment: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to book appointment")


@router.post("/check-conflict", response_model=ConflictCheckResponse)
def check_conflict(
    request: ConflictCheckRequest,
    identity: Identity = Depends(get_current_identity),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        conflict = appt_service.check_conflict(
            request.doctor_id,
            request.appointment_date,
            request.start_time,
            request.end_time,
            exclude_appointment_id=request.exclude_appointment_id,
        )
        return ConflictCheckResponse(conflict=conflict)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error checking appointment conflict: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to check appointment conflict")


@router.get("/upcoming", response_model=List[AppointmentResponse])
def upcoming_appointments(
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return appt_service.list_upcoming(limit=limit)


@router.get("/patient/{patient_id}", response_model=List[AppointmentResponse])
def patient_appointments(
    patient_id: str,
    identity: Identity = Depends(get_current_identity),
    appt_service: AppointmentsService = Depends(get_appointments_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    ensure_patient_access(identity, patient_service, patient_id)
    return appt_service.list_for_patient(patient_id)


@router.get("/doctor/{doctor_id}", response_model=List[AppointmentResponse])
def doctor_appointments(
    doctor_id: str,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return appt_service.list_for_doctor(doctor_id)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    identity: Identity = Depends(get_current_identity),
    appt_service: AppointmentsService = Depends(get_appointments_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    appt = appt_service.get(appointment_id)
    ensure_patient_access(identity, patient_service, appt.patient_id)
    return appt


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
def update_status(
    appointment_id: str,
    update: AppointmentStatusUpdate,
    identity: Identity = Depends(get_current_identity),
    appt_service: AppointmentsService = Depends(get_appointments_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    try:
        appt = appt_service.get(appointment_id)
        ensure_patient_access(identity, patient_service, appt.patient_id)
        return appt_service.transition_status(identity, appointment_id, update.status)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating appointment {appointment_id} status: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update appointment status")


@router.put("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: str,
    slot: AppointmentReschedule,
    identity: Identity = Depends(get_current_identity),
    appt_service: AppointmentsService = Depends(get_appointments_service),
    patient_service: PatientService = Depends(get_patient_service),
):
    try:
        appt = appt_service.get(appointment_id)
        ensure_patient_access(identity, patient_service, appt.patient_id)
        return appt_service.reschedule(identity, appointment_id, slot.appointment_date, slot.start_time, slot.end_time)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error rescheduling appointment {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to reschedule appointment")


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: str,
    details: AppointmentDetailsUpdate,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return appt_service.update_details(identity, appointment_id, **details.model_dump(exclude_unset=True))


@router.delete("/{appointment_id}", response_model=MessageResponse)
def delete_appointment(
    appointment_id: str,
    identity: Identity = Depends(get_current_identity),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt_service.delete(identity, appointment_id)
    return MessageResponse(message="Appointment deleted")
