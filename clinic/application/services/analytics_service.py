import logging
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from datetime import date, datetime, timedelta

from ..ports.appointments_repo import AppointmentsRepository, UPCOMING_STATUSES
from ..ports.audit_logger import AuditEntry, AuditLogger
from ..ports.billing_repo import BillingRepository, OUTSTANDING_STATUSES
from ..ports.patient_repo import PatientRepository
from ...core.clock import month_start

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _field(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def to_decimal(value: Any) -> Decimal:
    """Exact decimal from a store value (numeric string, int, float or Decimal)."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() first so floats keep their shortest repr instead of binary expansion
    return Decimal(str(value))


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def count_by_day(appointments: Iterable[Any], window_start: date, window_end: date) -> List[Tuple[str, int]]:
    """Appointments per calendar date inside [window_start, window_end].

    Only dates that occur in the input are returned, in ascending order.
    """
    counts: Dict[date, int] = {}
    for appt in appointments:
        day = _as_date(_field(appt, "appointment_date"))
        if day < window_start or day > window_end:
            continue
        counts[day] = counts.get(day, 0) + 1
    return [(day.isoformat(), counts[day]) for day in sorted(counts)]


def sum_revenue_by_month(billing_rows: Iterable[Any], month_count: int, today: Optional[date] = None) -> List[Tuple[str, Decimal]]:
    """Paid totals bucketed by the (year, month) of created_at.

    Keeps the last ``month_count`` calendar months ending at ``today``'s month,
    or at the newest month present when ``today`` is not given. Labels are
    "Jan" style when all buckets share a year and "Jan 2024" otherwise.
    """
    buckets: Dict[Tuple[int, int], Decimal] = {}
    for bill in billing_rows:
        if _field(bill, "status") != "paid":
            continue
        created = _as_datetime(_field(bill, "created_at"))
        key = (created.year, created.month)
        buckets[key] = buckets.get(key, Decimal("0")) + to_decimal(_field(bill, "total_amount"))

    if not buckets or month_count <= 0:
        return []

    anchor = (today.year, today.month) if today else max(buckets)
    first = _shift_month(anchor[0], anchor[1], -(month_count - 1))
    keys = [k for k in sorted(buckets) if first <= k <= anchor]

    single_year = len({year for year, _ in keys}) <= 1
    out = []
    for year, month in keys:
        label = MONTH_LABELS[month - 1] if single_year else f"{MONTH_LABELS[month - 1]} {year}"
        out.append((label, buckets[(year, month)].quantize(CENTS)))
    return out


def total_with_status(billing_rows: Iterable[Any], statuses: Iterable[str]) -> Decimal:
    wanted = set(statuses)
    total = sum(
        (to_decimal(_field(bill, "total_amount")) for bill in billing_rows if _field(bill, "status") in wanted),
        Decimal("0"),
    )
    return total.quantize(CENTS)


def pending_total(billing_rows: Iterable[Any]) -> Decimal:
    return total_with_status(billing_rows, OUTSTANDING_STATUSES)


def top_conditions(patient_rows: Iterable[Any], limit: int = 10) -> List[Tuple[str, int]]:
    """Most frequent chronic conditions, ties in first-seen order."""
    counts: Counter = Counter()
    for patient in patient_rows:
        for condition in _field(patient, "chronic_conditions") or []:
            counts[condition] += 1
    # sorted() is stable, so equal counts keep insertion (first-seen) order
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return ranked[:max(limit, 0)]


@dataclass
class DashboardStats:
    total_patients: int
    total_appointments: int
    upcoming_appointments: int
    completed_appointments: int
    total_revenue: Decimal
    pending_bills: Decimal


@dataclass
class AnalyticsService:
    appointments: AppointmentsRepository
    billing: BillingRepository
    patients: PatientRepository
    audit: AuditLogger

    def dashboard_stats(self, today: Optional[date] = None) -> DashboardStats:
        today = today or date.today()
        bills = self.billing.list_all()
        stats = DashboardStats(
            total_patients=self.patients.count(active_only=True),
            total_appointments=self.appointments.count(),
            upcoming_appointments=self.appointments.count(statuses=UPCOMING_STATUSES, from_date=today),
            completed_appointments=self.appointments.count(statuses=("completed",)),
            total_revenue=total_with_status(bills, ("paid",)),
            pending_bills=pending_total(bills),
        )
        logger.info(f"Computed dashboard stats for {today}")
        return stats

    def appointments_by_week(self, today: Optional[date] = None, days: int = 7) -> List[Tuple[str, int]]:
        today = today or date.today()
        start = today - timedelta(days=days)
        rows = self.appointments.list_between(start, today)
        return count_by_day(rows, start, today)

    def revenue_by_month(self, today: Optional[date] = None, months: int = 6) -> List[Tuple[str, Decimal]]:
        today = today or date.today()
        year, month = _shift_month(today.year, today.month, -(max(months, 1) - 1))
        rows = self.billing.list_all(since=month_start(year, month))
        return sum_revenue_by_month(rows, months, today=today)

    def patients_by_condition(self, limit: int = 10) -> List[Tuple[str, int]]:
        return top_conditions(self.patients.list_active(), limit=limit)

    def audit_logs(self, limit: int = 50) -> List[AuditEntry]:
        return self.audit.list_recent(limit=limit)
