"""
Structured-output JSON schema for offering memorandum extraction.
Nullable fields are declared as ["<type>", "null"]; enforcement is left to the model.
"""
from __future__ import annotations

from typing import Any

SCHEMA_NAME = "offering_memorandum"


def _scalar(kind: str, description: str, nullable: bool = False) -> dict[str, Any]:
    return {"type": [kind, "null"] if nullable else kind, "description": description}


def _string(description: str, nullable: bool = False) -> dict[str, Any]:
    return _scalar("string", description, nullable)


def _number(description: str, nullable: bool = False) -> dict[str, Any]:
    return _scalar("number", description, nullable)


def _object(description: str, properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "type": "object",
        "description": description,
        "properties": properties,
        "required": required,
    }


def _string_list(description: str, item_description: str) -> dict[str, Any]:
    return {
        "type": "array",
        "description": description,
        "items": {"type": "string", "description": item_description},
    }


ADDRESS_SCHEMA = _object(
    "Property address details",
    {
        "street": _string("Street address"),
        "city": _string("City name"),
        "state": _string("State abbreviation"),
        "zipCode": _string("Postal code", nullable=True),
        "submarket": _string("Submarket or district name", nullable=True),
    },
    ["street", "city", "state"],
)

PROPERTY_INFO_SCHEMA = _object(
    "Basic property information and characteristics",
    {
        "propertyName": _string('Name of the property (e.g., "280 Richards")'),
        "address": ADDRESS_SCHEMA,
        "propertyType": _string('Type of property (e.g., "Logistics Facility", "Warehouse", "Industrial")'),
        "propertySizeSF": _number("Total property size in square feet"),
        "landAreaAcres": _number("Land area in acres", nullable=True),
        "yearBuilt": _number("Year the property was built", nullable=True),
        "constructionStatus": _string(
            'Current construction status (e.g., "New Construction", "Existing")', nullable=True
        ),
    },
    ["propertyName", "address", "propertyType", "propertySizeSF"],
)

OFFERING_DETAILS_SCHEMA = _object(
    "Details about the property offering",
    {
        "sellerName": _string("Name of the selling entity", nullable=True),
        "brokerageFirm": _string("Name of the brokerage firm"),
        "guidancePriceUSD": _number("Asking price in USD"),
        "guidancePricePSF": _number("Price per square foot", nullable=True),
        "offeringType": _string('Type of offering (e.g., "Fee Simple", "Leasehold")', nullable=True),
    },
    ["brokerageFirm", "guidancePriceUSD"],
)

LEASE_INFO_SCHEMA = _object(
    "Lease and tenant information",
    {
        "tenantName": _string("Name of primary tenant"),
        "leasePercentage": _number("Percentage of property that is leased"),
        "leaseTermRemainingYears": _number("Remaining years on the lease", nullable=True),
        "leaseExpirationDate": _string("Lease expiration date in YYYY-MM-DD format", nullable=True),
        "rentEscalations": _string("Description of rent escalation structure", nullable=True),
        "capRatePercent": _number("Capitalization rate as a percentage", nullable=True),
    },
    ["tenantName", "leasePercentage"],
)

FINANCING_INFO_SCHEMA = _object(
    "Financing details and terms",
    {
        "isFinancingAssumable": _scalar("boolean", "Whether existing financing can be assumed"),
        "assumableLoanAmountUSD": _number("Amount of assumable loan in USD", nullable=True),
        "assumableInterestRatePercent": _number(
            "Interest rate of assumable loan as a percentage", nullable=True
        ),
        "loanMaturityDate": _string("Loan maturity date in YYYY-MM-DD format", nullable=True),
    },
    ["isFinancingAssumable"],
)

SUMMARY_POINTS_SCHEMA = _object(
    "Key points and considerations about the property",
    {
        "investmentHighlights": _string_list(
            "List of key investment highlights", "Individual investment highlight"
        ),
        "riskFactors": _string_list("List of potential risk factors", "Individual risk factor"),
    },
    ["investmentHighlights", "riskFactors"],
)

BROKER_CONTACTS_SCHEMA = {
    "type": "array",
    "description": "List of broker contact information",
    "items": {
        "type": "object",
        "properties": {
            "name": _string("Broker name"),
            "title": _string("Broker title"),
            "phone": _string("Contact phone number"),
            "email": _string("Contact email address"),
        },
        "required": ["name", "title", "phone", "email"],
    },
}

DOCUMENT_INFO_SCHEMA = _object(
    "Document metadata",
    {
        "documentType": _string("Type of document"),
        "dateUploaded": _string("Date the document was uploaded in YYYY-MM-DD format"),
        "sourceFileName": _string("Original filename of the document"),
    },
    ["documentType", "dateUploaded", "sourceFileName"],
)

OFFERING_MEMORANDUM_SCHEMA: dict[str, Any] = _object(
    "Real Estate Offering Memorandum details",
    {
        "propertyInfo": PROPERTY_INFO_SCHEMA,
        "offeringDetails": OFFERING_DETAILS_SCHEMA,
        "leaseInfo": LEASE_INFO_SCHEMA,
        "financingInfo": FINANCING_INFO_SCHEMA,
        "summaryPoints": SUMMARY_POINTS_SCHEMA,
        "brokerContacts": BROKER_CONTACTS_SCHEMA,
        "documentInfo": DOCUMENT_INFO_SCHEMA,
    },
    ["propertyInfo", "offeringDetails", "leaseInfo", "documentInfo"],
)


def response_format() -> dict[str, Any]:
    """OpenAI response_format payload. Non-strict so optional sections stay optional."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": SCHEMA_NAME,
            "schema": OFFERING_MEMORANDUM_SCHEMA,
            "strict": False,
        },
    }
