import jwt
import pytest
from cryptography.fernet import Fernet
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from clinic.core.config import settings
from clinic.database import build_engine, create_db_and_tables, get_session
from clinic.main import app
from clinic.routers import deps


def token_for(user_id, role):
    return jwt.encode({"sub": user_id, "role": role}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def auth(user_id, role):
    return {"Authorization": f"Bearer {token_for(user_id, role)}"}


ADMIN = auth("admin-1", "admin")
DESK = auth("desk-1", "receptionist")
DOCTOR = auth("doc-user-1", "doctor")


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "FIELD_ENCRYPTION_KEY", Fernet.generate_key().decode())
    monkeypatch.setattr(settings, "REPORTS_DIR", str(tmp_path / "reports"))
    deps.get_field_codec.cache_clear()

    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(engine)

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()
    deps.get_field_codec.cache_clear()
    engine.dispose()


@pytest.fixture
def patient_id(client):
    resp = client.post("/patients/", json={"profile_id": "pat-user-1", "chronic_conditions": ["diabetes"], "ssn": "123-45-6789"}, headers=DESK)
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


def book(client, patient_id, start, end, headers=DESK):
    body = {
        "patient_id": patient_id,
        "doctor_id": "doc-1",
        "appointment_date": "2024-06-01",
        "start_time": start,
        "end_time": end,
        "appointment_type": "consultation",
    }
    return client.post("/appointments/", json=body, headers=headers)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["service"] == settings.APP_NAME


def test_requests_without_token_are_rejected(client):
    resp = client.get("/appointments/upcoming")
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "data": None, "error": "Authentication required"}

    resp = client.get("/appointments/upcoming", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


def test_booking_flow(client, patient_id):
    first = book(client, patient_id, "09:00", "09:30")
    assert first.status_code == 200, first.text
    assert first.json()["start_time"] == "09:00:00"

    clash = book(client, patient_id, "09:15", "09:45")
    assert clash.status_code == 409
    assert clash.json()["error"] == "Time slot is already booked"

    assert book(client, patient_id, "09:30", "10:00").status_code == 200
    assert book(client, patient_id, "11:00", "10:00").status_code == 400

    check = client.post(
        "/appointments/check-conflict",
        json={"doctor_id": "doc-1", "appointment_date": "2024-06-01", "start_time": "09:10", "end_time": "09:20",
              "exclude_appointment_id": first.json()["id"]},
        headers=DESK,
    )
    assert check.json() == {"conflict": False}


def test_status_and_reschedule(client, patient_id):
    appt = book(client, patient_id, "09:00", "09:30").json()
    resp = client.patch(f"/appointments/{appt['id']}/status", json={"status": "completed"}, headers=DESK)
    assert resp.json()["status"] == "completed"
    resp = client.patch(f"/appointments/{appt['id']}/status", json={"status": "scheduled"}, headers=DESK)
    assert resp.status_code == 409

    other = book(client, patient_id, "10:00", "10:30").json()
    resp = client.put(f"/appointments/{other['id']}/reschedule",
                      json={"appointment_date": "2024-06-02", "start_time": "08:00", "end_time": "08:30"}, headers=DESK)
    assert resp.status_code == 200
    assert resp.json()["appointment_date"] == "2024-06-02"

    assert client.delete(f"/appointments/{other['id']}", headers=DESK).status_code == 403
    assert client.delete(f"/appointments/{other['id']}", headers=ADMIN).status_code == 200
    assert client.get(f"/appointments/{other['id']}", headers=ADMIN).status_code == 404


def test_patients_only_reach_their_own_chart(client, patient_id):
    book(client, patient_id, "09:00", "09:30")
    me = auth("pat-user-1", "patient")
    stranger = auth("pat-user-2", "patient")

    assert client.get("/patients/me", headers=me).json()["id"] == patient_id
    assert len(client.get(f"/appointments/patient/{patient_id}", headers=me).json()) == 1
    assert client.get(f"/appointments/patient/{patient_id}", headers=stranger).status_code == 403
    assert client.get("/patients/", headers=me).status_code == 403


def test_patient_may_cancel_but_not_complete(client, patient_id):
    appt = book(client, patient_id, "09:00", "09:30").json()
    me = auth("pat-user-1", "patient")
    resp = client.patch(f"/appointments/{appt['id']}/status", json={"status": "completed"}, headers=me)
    assert resp.status_code == 403
    resp = client.patch(f"/appointments/{appt['id']}/status", json={"status": "cancelled"}, headers=me)
    assert resp.json()["status"] == "cancelled"


def test_records_are_returned_decrypted(client, patient_id):
    resp = client.post("/records/medical", json={"patient_id": patient_id, "doctor_id": "doc-1", "diagnosis": "type 2 diabetes"}, headers=DOCTOR)
    assert resp.status_code == 200, resp.text
    assert resp.json()["diagnosis"] == "type 2 diabetes"

    rx = client.post("/records/prescriptions", json={
        "patient_id": patient_id, "doctor_id": "doc-1", "medication_name": "metformin",
        "dosage": "500mg", "frequency": "2x daily", "duration": "90 days",
    }, headers=DOCTOR)
    assert rx.status_code == 200, rx.text
    listed = client.get(f"/records/prescriptions/patient/{patient_id}?active_only=true", headers=auth("pat-user-1", "patient"))
    assert [p["medication_name"] for p in listed.json()] == ["metformin"]


def test_billing_and_analytics(client, patient_id):
    inv = client.post("/billing/", json={"patient_id": patient_id, "amount": "100.50", "due_date": "2024-07-01"}, headers=DESK)
    assert inv.status_code == 200, inv.text
    assert inv.json()["invoice_number"].endswith("-00001")
    paid = client.patch(f"/billing/{inv.json()['id']}/status", json={"status": "paid", "payment_method": "card"}, headers=DESK)
    assert paid.json()["status"] == "paid"

    assert client.get("/admin/analytics/stats", headers=DESK).status_code == 403
    stats = client.get("/admin/analytics/stats", headers=ADMIN).json()
    assert stats["total_patients"] == 1
    assert float(stats["total_revenue"]) == 100.50
    conditions = client.get("/admin/analytics/patients-by-condition", headers=ADMIN).json()
    assert conditions == [{"condition": "diabetes", "count": 1}]
    revenue = client.get("/admin/analytics/revenue-by-month", headers=ADMIN).json()
    assert [float(r["revenue"]) for r in revenue] == [100.50]
    logs = client.get("/admin/analytics/audit-logs?limit=2", headers=ADMIN).json()
    assert len(logs) == 2


def test_report_upload_and_signed_download(client, patient_id):
    resp = client.post(
        "/reports/",
        data={"patient_id": patient_id, "report_type": "lab", "report_date": "2024-06-01", "title": "HbA1c", "findings": "7.1%"},
        files={"file": ("hba1c.pdf", b"%PDF-1.4 result", "application/pdf")},
        headers=DOCTOR,
    )
    assert resp.status_code == 200, resp.text
    report = resp.json()
    assert report["findings"] == "7.1%"

    link = client.get(f"/reports/{report['id']}/download-url", headers=DOCTOR).json()
    assert link["expires_in"] == settings.REPORT_URL_TTL_SECONDS
    download = client.get(link["url"])
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 result"

    assert client.get("/reports/download?token=bogus").status_code == 400
