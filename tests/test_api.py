"""
Route tests through the FastAPI TestClient with the database, outbound HTTP
and model client overridden (see conftest.api_client).
"""

import base64
import json

import pytest
from google.genai import errors as genai_errors
from sqlmodel import select

from conftest import fake_genai, registry_handler
from db.models import CounterfeitReport, FakeMedicineEffect, MedicineInfo, VerifiedMedicine
from services.verifier import NOT_FOUND_MESSAGE

IMAGE = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff-package-photo").decode()

GENUINE_PARACETAMOL = {
    "prediction": "genuine",
    "confidence": 95,
    "medicine_name": "Paracetamol",
    "batch_number": "LOT12345",
    "expiry_date": "12/2099",
    "manufacturer": "Acme Pharma",
    "details": "Print quality and hologram consistent with genuine packaging.",
}


@pytest.fixture
def seeded(session):
    session.add(VerifiedMedicine(
        batch_number="LOT12345",
        medicine_name="Paracetamol",
        manufacturer="Acme Pharma",
        verification_source="Manufacturer Registry",
    ))
    session.add(MedicineInfo(name="Paracetamol", purpose="Relieves pain and fever", description="Analgesic"))
    session.add(FakeMedicineEffect(name="Paracetamol", side_effects="Liver damage", reason="Wrong dosage"))
    session.commit()
    return session


# -------------------
# ANALYZE / SCAN
# -------------------
def test_analyze_requires_image(api_client):
    response = api_client.post("/api/analyze-medicine", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "No image provided"


def test_analyze_returns_snake_case_contract(api_client):
    api_client.genai = fake_genai(text=json.dumps({"prediction": "fake", "confidence": 88}))

    response = api_client.post("/api/analyze-medicine", json={"image": IMAGE})

    assert response.status_code == 200
    body = response.json()
    assert body["prediction"] == "fake"
    assert body["confidence"] == 88
    assert body["medicine_name"] == "Unknown Medicine"
    assert body["batch_number"] == "N/A"
    assert body["fdaInfo"] is None


def test_analyze_includes_fda_label(api_client, openfda_label):
    api_client.genai = fake_genai(text=json.dumps({"prediction": "genuine", "medicine_name": "Tylenol"}))
    api_client.http_handler = registry_handler({"openfda": openfda_label})

    body = api_client.post("/api/analyze-medicine", json={"image": IMAGE}).json()

    assert body["manufacturer"] == "Kenvue Brands LLC"
    assert body["fdaInfo"]["genericName"] == "ACETAMINOPHEN"
    assert body["fdaInfo"]["dosageForm"] == "TABLET"


def test_analyze_rate_limited(api_client):
    error = genai_errors.ClientError(429, {"error": {"code": 429, "message": "quota", "status": "RESOURCE_EXHAUSTED"}})
    api_client.genai = fake_genai(error=error)

    response = api_client.post("/api/analyze-medicine", json={"image": IMAGE})

    assert response.status_code == 429
    assert response.json()["detail"]["error"].startswith("Rate limit exceeded")


def test_analyze_without_api_key(api_client):
    response = api_client.post("/api/analyze-medicine", json={"image": IMAGE})

    assert response.status_code == 500
    assert "GOOGLE_API_KEY" in response.json()["detail"]["error"]


def test_analyze_unreachable_image_url(api_client):
    api_client.genai = fake_genai(text="{}")

    response = api_client.post("/api/analyze-medicine", json={"image": "https://example.com/not-an-image"})

    assert response.status_code == 400
    assert "hint" in response.json()["detail"]


def test_scan_composes_verification_and_reference_texts(api_client, seeded):
    api_client.genai = fake_genai(text=json.dumps(GENUINE_PARACETAMOL))

    response = api_client.post("/api/scan", json={"image": IMAGE}, headers={"X-Session-Id": "phone-1"})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "genuine"
    assert body["blockchain"]["isVerified"] is True
    assert body["blockchain"]["source"] == "Manufacturer Registry"
    assert body["purpose"] == "Relieves pain and fever"
    assert body["sideEffects"] == "Liver damage"
    assert body["isExpired"] is False
    assert body["voiceMessage"] == "This medicine is genuine. Paracetamol. Relieves pain and fever"

    assert len(api_client.registry.history_for("phone-1")) == 1


def test_scan_matches_reference_names_loosely(api_client, seeded):
    fake = dict(GENUINE_PARACETAMOL, prediction="fake", medicine_name="paracetamol 500mg", batch_number="N/A")
    api_client.genai = fake_genai(text=json.dumps(fake))

    body = api_client.post("/api/scan", json={"image": IMAGE}).json()

    assert body["blockchain"] is None
    assert body["sideEffects"] == "Liver damage"
    assert body["voiceMessage"].startswith("Warning! This is a fake medicine.")


def test_scan_expired_medicine(api_client):
    expired = dict(GENUINE_PARACETAMOL, expiry_date="01/2020", batch_number="N/A")
    api_client.genai = fake_genai(text=json.dumps(expired))

    body = api_client.post("/api/scan", json={"image": IMAGE}).json()

    assert body["isExpired"] is True
    assert body["voiceMessage"].startswith("Warning! This medicine has expired.")


# -------------------
# HISTORY
# -------------------
def test_history_requires_session_header(api_client):
    assert api_client.get("/api/history").status_code == 400


def test_history_lists_and_clears_session_scans(api_client, seeded):
    api_client.genai = fake_genai(text=json.dumps(GENUINE_PARACETAMOL))
    headers = {"X-Session-Id": "phone-2"}

    api_client.post("/api/scan", json={"image": IMAGE}, headers=headers)
    api_client.post("/api/scan", json={"image": IMAGE}, headers={"X-Session-Id": "someone-else"})

    history = api_client.get("/api/history", headers=headers).json()["history"]
    assert len(history) == 1
    assert history[0]["medicineName"] == "Paracetamol"
    assert history[0]["id"]

    assert api_client.delete("/api/history", headers=headers).json() == {"cleared": 1}
    assert api_client.get("/api/history", headers=headers).json() == {"history": []}


# -------------------
# QR
# -------------------
@pytest.mark.parametrize("body", [{}, {"qrData": ""}, {"qrData": "   "}])
def test_qr_requires_data(api_client, body):
    response = api_client.post("/api/process-qr-data", json=body)

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid QR data"


def test_qr_json_payload(api_client):
    payload = '{"name":"Amoxicillin","batch":"B2024X","exp":"11/2025"}'

    body = api_client.post("/api/process-qr-data", json={"qrData": payload}).json()

    assert body["type"] == "json"
    assert body["extracted"]["batchNumber"] == "B2024X"
    assert body["extracted"]["rawJson"]["name"] == "Amoxicillin"


def test_qr_image_url(api_client):
    body = api_client.post("/api/process-qr-data", json={"qrData": "https://x.example.com/p.png?v=2"}).json()

    assert body["type"] == "image_url"
    assert body["imageUrl"] == "https://x.example.com/p.png?v=2"
    assert body["extracted"]["shouldAnalyzeImage"] is True


# -------------------
# VERIFY BATCH
# -------------------
@pytest.mark.parametrize("body", [{}, {"batchNumber": "  "}])
def test_verify_requires_batch_number(api_client, body):
    response = api_client.post("/api/verify-batch", json=body)

    assert response.status_code == 400
    assert response.json()["detail"] == "Batch number is required"


def test_verify_unknown_batch(api_client):
    body = api_client.post("/api/verify-batch", json={"batchNumber": "NOPE"}).json()

    assert body == {"isVerified": False, "message": NOT_FOUND_MESSAGE}


def test_verify_registry_fallback_then_cache(api_client, session):
    rxnorm = {"drugGroup": {"conceptGroup": [{"conceptProperties": [{"rxcui": "5640", "name": "ibuprofen", "tty": "IN"}]}]}}
    api_client.http_handler = registry_handler({"rxnorm": rxnorm})

    first = api_client.post("/api/verify-batch", json={"batchNumber": "IB-9", "medicineName": "Ibuprofen"}).json()

    assert first["isVerified"] is True
    assert first["source"] == "RxNorm (NLM)"
    assert first["medicineName"] == "Ibuprofen"
    assert session.exec(select(VerifiedMedicine).where(VerifiedMedicine.batch_number == "IB-9")).one()

    api_client.http_handler = registry_handler({})
    second = api_client.post("/api/verify-batch", json={"batchNumber": "IB-9", "medicineName": "Ibuprofen"}).json()
    assert second == first


# -------------------
# PHARMACIES
# -------------------
def test_pharmacies(api_client):
    body = api_client.post("/api/pharmacies", json={"medicineName": "Paracetamol", "latitude": 1.0, "longitude": 2.0}).json()

    names = [pharmacy["name"] for pharmacy in body["pharmacies"]]
    assert names == ["HealthPlus Pharmacy", "MediCare Express", "QuickMed Pharmacy"]
    assert body["pharmacies"][2]["available"] is False


def test_pharmacies_require_name(api_client):
    assert api_client.post("/api/pharmacies", json={"medicineName": ""}).status_code == 400


# -------------------
# REGISTER BATCH
# -------------------
def test_register_batch_then_verify(api_client):
    form = {
        "batch_number": " GEN-001 ",
        "medicine_name": "Cetirizine",
        "manufacturer": "Acme Pharma",
        "expiry_date": "06/2027",
    }

    response = api_client.post("/api/register-batch/", data=form)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["batch_number"] == "GEN-001"
    assert data["verification_source"] == "Manufacturer Registry"
    assert data["manufacture_date"] is None

    verified = api_client.post("/api/verify-batch", json={"batchNumber": "GEN-001"}).json()
    assert verified["isVerified"] is True
    assert verified["manufacturer"] == "Acme Pharma"


def test_register_duplicate_batch(api_client, seeded):
    form = {"batch_number": "LOT12345", "medicine_name": "Paracetamol", "manufacturer": "Acme Pharma"}

    response = api_client.post("/api/register-batch/", data=form)

    assert response.status_code == 400
    assert response.json()["detail"] == "Batch 'LOT12345' already exists in the database."


def test_register_rejects_blank_fields(api_client):
    form = {"batch_number": "B1", "medicine_name": "  ", "manufacturer": "Acme"}
    assert api_client.post("/api/register-batch/", data=form).status_code == 400


# -------------------
# REPORT
# -------------------
def test_report_is_stored(api_client, session):
    report = {
        "name": "  Jane Reporter ",
        "email": "jane@example.com",
        "subject": "Fake Paracetamol",
        "message": "Packaging misspelled and hologram missing.",
        "medicineName": "Paracetamol",
        "batchNumber": "FAKE01",
    }

    response = api_client.post("/api/report/", json=report)

    assert response.status_code == 200
    assert response.json()["message"] == "Report submitted successfully! We'll review it within 24 hours."

    stored = session.exec(select(CounterfeitReport)).one()
    assert stored.id == response.json()["id"]
    assert stored.name == "Jane Reporter"
    assert stored.batch_number == "FAKE01"


@pytest.mark.parametrize("change", [
    {"email": "not-an-email"},
    {"name": ""},
    {"message": "x" * 1001},
    {"batchNumber": "B" * 101},
])
def test_report_validation(api_client, change):
    report = {"name": "Jane", "email": "jane@example.com", "subject": "Fake", "message": "Details"}
    report.update(change)

    assert api_client.post("/api/report/", json=report).status_code == 422


def test_history_for_unknown_session_is_empty_and_not_stored(api_client):
    headers = {"X-Session-Id": "random-1234"}

    assert api_client.get("/api/history", headers=headers).json() == {"history": []}
    assert api_client.delete("/api/history", headers=headers).json() == {"cleared": 0}
    assert len(api_client.registry) == 0
