"""Add backend to path so tests resolve 'from models import' when run from project root."""
import os
import sys

_backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _backend_dir not in sys.path:
    sys.path.insert(0, _backend_dir)

import json
from io import BytesIO

import pytest
from fastapi.testclient import TestClient

from config import Settings
from errors import NotFoundError
from main import create_app
from s3_client import S3Service


class FakeStorage(S3Service):
    """In-memory bucket; keeps the real stream_to_buffer."""

    def __init__(self, settings: Settings, files: dict | None = None):
        self.bucket = settings.s3_bucket
        self.expires_in = settings.upload_url_expires_in
        self._client = None
        self.files = dict(files or {})
        self.get_calls: list[str] = []
        self.upload_calls: list[str] = []
        self.fail_with: Exception | None = None

    def generate_upload_url(self, content_type="application/pdf"):
        self.upload_calls.append(content_type)
        if self.fail_with is not None:
            raise self.fail_with
        return {
            "uploadUrl": f"https://{self.bucket}.s3.amazonaws.com/new.pdf?ct={content_type}",
            "fileName": "new.pdf",
            "expiresIn": self.expires_in,
        }

    def generate_download_url(self, file_name):
        if self.fail_with is not None:
            raise self.fail_with
        return f"https://{self.bucket}.s3.amazonaws.com/{file_name}?signed"

    def get_file(self, file_name):
        self.get_calls.append(file_name)
        if self.fail_with is not None:
            raise self.fail_with
        if file_name not in self.files:
            raise NotFoundError(f"No such object: {file_name}")
        return BytesIO(self.files[file_name])


class FakeExtractor:
    def __init__(self, raw: str | None = None, error: Exception | None = None):
        self.raw = raw if raw is not None else "{}"
        self.error = error
        self.calls: list[tuple[bytes, str]] = []

    def extract(self, document_bytes: bytes, file_name: str = "document.pdf") -> str:
        self.calls.append((document_bytes, file_name))
        if self.error is not None:
            raise self.error
        return self.raw


@pytest.fixture
def settings() -> Settings:
    return Settings(
        s3_bucket="deals",
        s3_access_key="testing",
        s3_secret_key="testing",
        openai_api_key="sk-test",
        max_document_bytes=1024,
    )


@pytest.fixture
def storage(settings) -> FakeStorage:
    return FakeStorage(settings, files={"abc.pdf": b"%PDF-1.7 offering memorandum"})


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def client(settings, storage, extractor) -> TestClient:
    app = create_app(settings=settings, storage=storage, extractor=extractor)
    return TestClient(app)


@pytest.fixture
def full_extraction() -> dict:
    """A complete model answer for a non-default property."""
    return {
        "propertyInfo": {
            "propertyName": "Bayonne Logistics Center",
            "address": {
                "street": "1 Harbor Way",
                "city": "Bayonne",
                "state": "NJ",
                "zipCode": "07002",
                "submarket": "Hudson County",
            },
            "propertyType": "Logistics Facility",
            "propertySizeSF": 410000,
            "landAreaAcres": 22.5,
            "yearBuilt": 2019,
            "constructionStatus": "New Construction",
        },
        "offeringDetails": {
            "sellerName": "Harbor Partners",
            "brokerageFirm": "Newmark",
            "guidancePriceUSD": 185000000,
            "guidancePricePSF": 451.22,
            "offeringType": "Leasehold",
        },
        "leaseInfo": {
            "tenantName": "FedEx",
            "leasePercentage": 85,
            "leaseTermRemainingYears": 8.5,
            "leaseExpirationDate": "2033-03-31",
            "rentEscalations": "2.5% annual",
            "capRatePercent": 5.6,
        },
        "financingInfo": {
            "isFinancingAssumable": False,
            "assumableLoanAmountUSD": 90000000,
            "assumableInterestRatePercent": 3.9,
            "loanMaturityDate": "2030-12-01",
        },
        "summaryPoints": {
            "investmentHighlights": ["Port-adjacent last-mile site"],
            "riskFactors": ["Flood zone exposure"],
        },
        "brokerContacts": [
            {
                "name": "Jane Doe",
                "title": "Vice Chairman",
                "phone": "212-555-0100",
                "email": "jane.doe@example.com",
            }
        ],
        "documentInfo": {
            "documentType": "Marketing Flyer",
            "dateUploaded": "1999-01-01",
            "sourceFileName": "model-guess.pdf",
        },
    }


@pytest.fixture
def full_extraction_raw(full_extraction) -> str:
    return json.dumps(full_extraction)


