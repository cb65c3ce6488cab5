"""POST /v1/ocr: validation, fetch/extract/parse failures, and default filling."""
import json
from datetime import date

import pytest
from fastapi.testclient import TestClient

from conftest import FakeExtractor
from errors import ExtractionError, StorageError
from main import create_app


def _client_with(settings, storage, extractor) -> TestClient:
    return TestClient(create_app(settings=settings, storage=storage, extractor=extractor))


def test_ocr_missing_file_name_returns_422_without_side_effects(client, storage, extractor):
    response = client.post("/v1/ocr", json={})
    assert response.status_code == 422
    assert response.json() == {"error": "Validation Error", "message": "fileName is required"}
    assert storage.get_calls == []
    assert extractor.calls == []


def test_ocr_blank_file_name_returns_422(client, storage, extractor):
    for payload in ({"fileName": ""}, {"fileName": "   "}, {"fileName": None}):
        response = client.post("/v1/ocr", json=payload)
        assert response.status_code == 422
        assert response.json()["message"] == "fileName is required"
    assert storage.get_calls == []
    assert extractor.calls == []


def test_ocr_without_body_returns_422(client, storage):
    response = client.post("/v1/ocr")
    assert response.status_code == 422
    assert response.json()["error"] == "Validation Error"
    assert storage.get_calls == []


def test_ocr_non_string_file_name_returns_422(client, storage):
    response = client.post("/v1/ocr", json={"fileName": 42})
    assert response.status_code == 422
    assert response.json()["error"] == "Validation Error"
    assert storage.get_calls == []


def test_ocr_makes_exactly_one_fetch_and_one_extraction(client, storage, extractor):
    response = client.post("/v1/ocr", json={"fileName": "abc.pdf"})
    assert response.status_code == 200
    assert storage.get_calls == ["abc.pdf"]
    assert len(extractor.calls) == 1
    document, file_name = extractor.calls[0]
    assert document == b"%PDF-1.7 offering memorandum"
    assert file_name == "abc.pdf"


def test_ocr_unknown_file_returns_500_not_crash(client, extractor):
    response = client.post("/v1/ocr", json={"fileName": "never-uploaded.pdf"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process OCR request"}
    assert extractor.calls == []


def test_ocr_storage_fault_returns_generic_500(client, storage, extractor):
    storage.fail_with = StorageError("AccessDenied for arn:aws:s3:::deals")
    response = client.post("/v1/ocr", json={"fileName": "abc.pdf"})
    assert response.status_code == 500
    body = response.json()
    assert body == {"error": "Failed to process OCR request"}
    assert "AccessDenied" not in response.text
    assert extractor.calls == []


def test_ocr_oversized_document_returns_413(settings, storage):
    storage.files["big.pdf"] = b"x" * (settings.max_document_bytes + 1)
    extractor = FakeExtractor()
    client = _client_with(settings, storage, extractor)
    response = client.post("/v1/ocr", json={"fileName": "big.pdf"})
    assert response.status_code == 413
    assert response.json()["error"] == "Document too large"
    assert extractor.calls == []


def test_ocr_extraction_failure_returns_500(settings, storage):
    extractor = FakeExtractor(error=ExtractionError("quota exceeded"))
    client = _client_with(settings, storage, extractor)
    response = client.post("/v1/ocr", json={"fileName": "abc.pdf"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process OCR request"}


def test_ocr_invalid_json_returns_500_with_details(settings, storage):
    extractor = FakeExtractor(raw="{not json")
    client = _client_with(settings, storage, extractor)
    response = client.post("/v1/ocr", json={"fileName": "abc.pdf"})
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to parse extracted data"
    assert isinstance(body["details"], str) and body["details"]
    assert "data" not in body


@pytest.mark.parametrize(
    "raw",
    [
        '{"leaseInfo": {"capRatePercent": NaN}}',
        '{"financingInfo": {"assumableLoanAmountUSD": Infinity}}',
    ],
)
def test_ocr_non_finite_numbers_return_500_with_details(settings, storage, raw):
    client = _client_with(settings, storage, FakeExtractor(raw=raw))
    response = client.post("/v1/ocr", json={"fileName": "abc.pdf"})
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to parse extracted data"
    assert "not JSON compliant" in body["details"]
    assert "data" not in body


def test_ocr_whole_numbers_stay_integers(settings, storage, full_extraction_raw):
    client = _client_with(settings, storage, FakeExtractor(raw=full_extraction_raw))
    data = client.post("/v1/ocr", json={"fileName": "abc.pdf"}).json()["data"]
    assert isinstance(data["offeringDetails"]["guidancePriceUSD"], int)
    assert isinstance(data["propertyInfo"]["propertySizeSF"], int)
    assert isinstance(data["offeringDetails"]["guidancePricePSF"], float)


def test_ocr_full_extraction_echoes_model_values(settings, storage, full_extraction, full_extraction_raw):
    client = _client_with(settings, storage, FakeExtractor(raw=full_extraction_raw))
    response = client.post("/v1/ocr", json={"fileName": "abc.pdf"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    data = body["data"]
    for section in ("propertyInfo", "offeringDetails", "leaseInfo", "financingInfo", "summaryPoints"):
        assert data[section] == full_extraction[section]
    assert data["brokerContacts"] == full_extraction["brokerContacts"]
    assert data["documentInfo"] == {
        "documentType": "Offering Memorandum",
        "dateUploaded": date.today().isoformat(),
        "sourceFileName": "abc.pdf",
    }


def test_ocr_empty_object_gets_documented_defaults(client):
    response = client.post("/v1/ocr", json={"fileName": "abc.pdf"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["propertyInfo"]["propertyName"] == "280 Richards"
    assert data["propertyInfo"]["propertyType"] == "Warehouse"
    assert data["offeringDetails"]["guidancePriceUSD"] == 143000000
    assert data["leaseInfo"]["tenantName"] == "Amazon"
    assert data["leaseInfo"]["leasePercentage"] == 100
    assert data["financingInfo"]["isFinancingAssumable"] is True
    assert data["brokerContacts"] == []
    assert data["documentInfo"]["sourceFileName"] == "abc.pdf"


def test_ocr_partial_output_defaults_only_missing_fields(settings, storage):
    raw = json.dumps({"leaseInfo": {"tenantName": "Target", "leasePercentage": None}})
    client = _client_with(settings, storage, FakeExtractor(raw=raw))
    data = client.post("/v1/ocr", json={"fileName": "abc.pdf"}).json()["data"]
    assert data["leaseInfo"]["tenantName"] == "Target"
    assert data["leaseInfo"]["leasePercentage"] == 100
    assert data["propertyInfo"]["address"]["city"] == "Brooklyn"


def test_ocr_accepts_code_fenced_json(settings, storage, full_extraction_raw):
    raw = "```json\n" + full_extraction_raw + "\n```"
    client = _client_with(settings, storage, FakeExtractor(raw=raw))
    response = client.post("/v1/ocr", json={"fileName": "abc.pdf"})
    assert response.status_code == 200
    assert response.json()["data"]["leaseInfo"]["tenantName"] == "FedEx"


def test_ocr_repeated_requests_are_independent(client, storage, extractor):
    first = client.post("/v1/ocr", json={"fileName": "abc.pdf"})
    second = client.post("/v1/ocr", json={"fileName": "abc.pdf"})
    assert first.status_code == second.status_code == 200
    assert storage.get_calls == ["abc.pdf", "abc.pdf"]
    assert len(extractor.calls) == 2


def test_ocr_response_includes_market_context(client):
    data = client.post("/v1/ocr", json={"fileName": "abc.pdf"}).json()["data"]
    assert [row["propertyName"] for row in data["supplyPipeline"]] == ["640 Columbia", "WB Mason"]
    assert [row["tenant"] for row in data["saleComparables"]] == ["Berry Plastics", "FedEx"]


def test_ocr_response_has_request_id_header(client):
    response = client.post("/v1/ocr", json={"fileName": "abc.pdf"})
    assert len(response.headers["X-Request-Id"]) == 8
