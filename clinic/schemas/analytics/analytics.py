# clinic/schemas/analytics/analytics.py
from pydantic import BaseModel, ConfigDict
from typing import Optional, Dict, Any
from decimal import Decimal
from datetime import datetime

class DashboardStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_patients: int
    total_appointments: int
    upcoming_appointments: int
    completed_appointments: int
    total_revenue: Decimal
    pending_bills: Decimal

class AppointmentsByDay(BaseModel):
    date: str
    count: int

class RevenueByMonth(BaseModel):
    month: str
    revenue: Decimal

class PatientsByCondition(BaseModel):
    condition: str
    count: int

class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    action: str
    table_name: str
    record_id: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    timestamp: datetime
