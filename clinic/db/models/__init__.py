# Models package (re-export feature modules for stable imports)
from .health.doctor import Doctor
from .health.patient import Patient
from .health.appointment import Appointment
from .health.medical_record import MedicalRecord
from .health.prescription import Prescription
from .health.report import MedicalReport
from .billing.billing import Billing
from .audit.audit_log import AuditLog

__all__ = [
    "Doctor",
    "Patient",
    "Appointment",
    "MedicalRecord",
    "Prescription",
    "MedicalReport",
    "Billing",
    "AuditLog",
]
