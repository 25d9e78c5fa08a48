from datetime import datetime, date, timezone
from decimal import Decimal

from clinic.application.ports.audit_logger import AuditEntry
from clinic.application.services.analytics_service import (
    AnalyticsService,
    count_by_day,
    pending_total,
    sum_revenue_by_month,
    top_conditions,
    total_with_status,
)


def bill(status, total, created):
    return {"status": status, "total_amount": total, "created_at": created}


def test_revenue_by_month_sums_paid_only():
    rows = [
        bill("paid", "100.50", "2024-01-05T10:00:00"),
        bill("paid", "49.50", "2024-01-20T09:30:00Z"),
        bill("pending", "500", "2024-01-11T12:00:00"),
    ]
    assert sum_revenue_by_month(rows, 6) == [("Jan", Decimal("150.00"))]


def test_revenue_by_month_has_no_float_drift():
    rows = [bill("paid", 0.1, datetime(2024, 2, 1)) for _ in range(3)]
    assert sum_revenue_by_month(rows, 1) == [("Feb", Decimal("0.30"))]


def test_revenue_by_month_window_and_year_labels():
    rows = [
        bill("paid", "10", datetime(2023, 11, 3)),
        bill("paid", "20", datetime(2023, 12, 3)),
        bill("paid", "30", datetime(2024, 1, 3)),
        bill("paid", "40", datetime(2024, 2, 3)),
    ]
    out = sum_revenue_by_month(rows, 3, today=date(2024, 2, 15))
    assert out == [
        ("Dec 2023", Decimal("20.00")),
        ("Jan 2024", Decimal("30.00")),
        ("Feb 2024", Decimal("40.00")),
    ]


def test_revenue_by_month_empty():
    assert sum_revenue_by_month([], 6) == []
    assert sum_revenue_by_month([bill("paid", "5", datetime(2024, 1, 1))], 0) == []


def test_top_conditions_counts_and_ties():
    patients = [
        {"chronic_conditions": ["diabetes", "hypertension"]},
        {"chronic_conditions": ["diabetes"]},
    ]
    assert top_conditions(patients) == [("diabetes", 2), ("hypertension", 1)]

    tied = [
        {"chronic_conditions": ["asthma"]},
        {"chronic_conditions": ["copd", "asthma"]},
        {"chronic_conditions": ["copd"]},
        {"chronic_conditions": None},
    ]
    assert top_conditions(tied, limit=1) == [("asthma", 2)]
    assert top_conditions(tied) == [("asthma", 2), ("copd", 2)]


def test_count_by_day_in_window():
    appts = [
        {"appointment_date": "2024-03-01"},
        {"appointment_date": date(2024, 3, 3)},
        {"appointment_date": "2024-03-03"},
        {"appointment_date": "2024-02-20"},
    ]
    out = count_by_day(appts, date(2024, 2, 28), date(2024, 3, 6))
    assert out == [("2024-03-01", 1), ("2024-03-03", 2)]


def test_count_by_day_includes_both_window_ends():
    appts = [{"appointment_date": d} for d in ("2024-02-27", "2024-02-28", "2024-03-06", "2024-03-07")]
    out = count_by_day(appts, date(2024, 2, 28), date(2024, 3, 6))
    assert out == [("2024-02-28", 1), ("2024-03-06", 1)]


def test_totals_by_status():
    rows = [bill("paid", "10.10", "2024-01-01"), bill("pending", "5", "2024-01-01"), bill("overdue", "2.5", "2024-01-01")]
    assert total_with_status(rows, ("paid",)) == Decimal("10.10")
    assert pending_total(rows) == Decimal("7.50")


class FakeAppointments:
    def __init__(self, rows):
        self.rows = rows
        self.window = None

    def list_between(self, start, end):
        self.window = (start, end)
        return self.rows

    def count(self, statuses=None, from_date=None):
        return len([r for r in self.rows if not statuses or r["status"] in statuses])


class FakeBilling:
    def __init__(self, rows):
        self.rows = rows
        self.since = None

    def list_all(self, since=None):
        self.since = since
        return self.rows


class FakePatients:
    def __init__(self, rows):
        self.rows = rows

    def list_active(self):
        return self.rows

    def count(self, active_only=False):
        return len(self.rows)


class FakeAudit:
    def log(self, *args, **kwargs):
        pass

    def list_recent(self, limit=50):
        entry = AuditEntry("1", "u1", "create", "appointments", "a1", None, None, None, None, datetime(2024, 1, 1))
        return [entry][:limit]


def make_service():
    appointments = FakeAppointments([
        {"appointment_date": "2024-03-05", "status": "scheduled"},
        {"appointment_date": "2024-03-01", "status": "completed"},
    ])
    billing = FakeBilling([bill("paid", "100", datetime(2024, 3, 2)), bill("pending", "40", datetime(2024, 3, 2))])
    patients = FakePatients([{"chronic_conditions": ["diabetes"]}])
    return AnalyticsService(appointments, billing, patients, FakeAudit()), appointments, billing


def test_dashboard_stats():
    svc, _, _ = make_service()
    stats = svc.dashboard_stats(date(2024, 3, 4))
    assert stats.total_patients == 1
    assert stats.total_appointments == 2
    assert stats.completed_appointments == 1
    assert stats.total_revenue == Decimal("100.00")
    assert stats.pending_bills == Decimal("40.00")


def test_service_windows():
    svc, appointments, billing = make_service()
    assert svc.appointments_by_week(date(2024, 3, 6)) == [("2024-03-01", 1), ("2024-03-05", 1)]
    assert appointments.window == (date(2024, 2, 28), date(2024, 3, 6))

    assert svc.revenue_by_month(date(2024, 3, 6), months=6) == [("Mar", Decimal("100.00"))]
    assert billing.since == datetime(2023, 10, 1, tzinfo=timezone.utc)

    assert svc.patients_by_condition() == [("diabetes", 1)]
    assert svc.audit_logs(limit=5)[0].action == "create"
