from typing import List
from datetime import date
from fastapi import APIRouter, Depends, Query
import logging

from ..application.identity import Identity, Role
from ..application.services.analytics_service import AnalyticsService
from ..core.config import settings
from ..schemas.analytics.analytics import (
    AppointmentsByDay,
    AuditLogResponse,
    DashboardStatsResponse,
    PatientsByCondition,
    RevenueByMonth,
)
from .deps import get_analytics_service, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/analytics", tags=["Admin Analytics"])


@router.get("/stats", response_model=DashboardStatsResponse)
def dashboard_stats(
    identity: Identity = Depends(require_roles(Role.ADMIN)),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    return analytics.dashboard_stats(date.today())


@router.get("/appointments-by-day", response_model=List[AppointmentsByDay])
def appointments_by_day(
    days: int = Query(settings.ANALYTICS_DAY_WINDOW, ge=1, le=90),
    identity: Identity = Depends(require_roles(Role.ADMIN)),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    return [AppointmentsByDay(date=day, count=count) for day, count in analytics.appointments_by_week(date.today(), days=days)]


@router.get("/revenue-by-month", response_model=List[RevenueByMonth])
def revenue_by_month(
    months: int = Query(settings.ANALYTICS_REVENUE_MONTHS, ge=1, le=36),
    identity: Identity = Depends(require_roles(Role.ADMIN)),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    return [RevenueByMonth(month=month, revenue=revenue) for month, revenue in analytics.revenue_by_month(date.today(), months=months)]


@router.get("/patients-by-condition", response_model=List[PatientsByCondition])
def patients_by_condition(
    limit: int = Query(settings.ANALYTICS_TOP_CONDITIONS, ge=1, le=100),
    identity: Identity = Depends(require_roles(Role.ADMIN)),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    return [PatientsByCondition(condition=name, count=count) for name, count in analytics.patients_by_condition(limit=limit)]


@router.get("/audit-logs", response_model=List[AuditLogResponse])
def audit_logs(
    limit: int = Query(settings.AUDIT_LOG_PAGE, ge=1, le=500),
    identity: Identity = Depends(require_roles(Role.ADMIN)),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    return analytics.audit_logs(limit=limit)
