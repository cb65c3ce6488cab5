from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt
from pydantic.alias_generators import to_camel

DOCUMENT_TYPE = "Offering Memorandum"

# int first so whole numbers are echoed as integers.
Number = Union[int, float]
NonNegativeNumber = Union[NonNegativeInt, NonNegativeFloat]
Percentage = Union[Annotated[int, Field(ge=0, le=100)], Annotated[float, Field(ge=0, le=100)]]


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)


class Address(_WireModel):
    street: str
    city: str
    state: str
    zip_code: Optional[str] = None
    submarket: Optional[str] = None


class PropertyInfo(_WireModel):
    property_name: str
    address: Address
    property_type: str
    property_size_sf: NonNegativeNumber = Field(alias="propertySizeSF")
    land_area_acres: Optional[NonNegativeNumber] = None
    year_built: Optional[int] = None
    construction_status: Optional[str] = None


class OfferingDetails(_WireModel):
    seller_name: Optional[str] = None
    brokerage_firm: str
    guidance_price_usd: NonNegativeNumber = Field(alias="guidancePriceUSD")
    guidance_price_psf: Optional[NonNegativeNumber] = Field(default=None, alias="guidancePricePSF")
    offering_type: Optional[str] = None


class LeaseInfo(_WireModel):
    tenant_name: str
    lease_percentage: Percentage
    lease_term_remaining_years: Optional[NonNegativeNumber] = None
    lease_expiration_date: Optional[str] = None
    rent_escalations: Optional[str] = None
    cap_rate_percent: Optional[Number] = None


class FinancingInfo(_WireModel):
    is_financing_assumable: bool
    assumable_loan_amount_usd: Optional[Number] = Field(default=None, alias="assumableLoanAmountUSD")
    assumable_interest_rate_percent: Optional[Number] = None
    loan_maturity_date: Optional[str] = None


class SummaryPoints(_WireModel):
    investment_highlights: List[str]
    risk_factors: List[str]


class BrokerContact(_WireModel):
    name: str
    title: str
    phone: str
    email: str


class DocumentInfo(_WireModel):
    document_type: str = DOCUMENT_TYPE
    date_uploaded: str
    source_file_name: str


class SupplyPipelineEntry(_WireModel):
    property_name: str
    submarket: str
    delivery_date: str
    owner: str
    square_feet: int


class SaleComparable(_WireModel):
    property_name: str
    submarket: str
    square_feet: int
    owner: str
    date: str
    purchase_price: int
    tenant: str


class PropertyRecord(_WireModel):
    """
    Normalized offering-memorandum extraction returned by /v1/ocr.

    supply_pipeline and sale_comparables are fixed market context, never read
    from model output.
    """

    property_info: PropertyInfo
    offering_details: OfferingDetails
    lease_info: LeaseInfo
    financing_info: FinancingInfo
    summary_points: SummaryPoints
    broker_contacts: List[BrokerContact]
    document_info: DocumentInfo
    supply_pipeline: List[SupplyPipelineEntry] = Field(default_factory=list)
    sale_comparables: List[SaleComparable] = Field(default_factory=list)


# --- Request/response bodies ---

class UploadUrlRequest(_WireModel):
    file_type: Optional[str] = None


class UploadUrlResponse(_WireModel):
    upload_url: str
    file_name: str
    expires_in: int


class FileRequest(_WireModel):
    # Optional here so a missing value yields our own 422 body, not FastAPI's.
    file_name: Optional[str] = None


class DownloadUrlResponse(_WireModel):
    download_url: str
    file_name: str
    expires_in: int


class OcrResponse(_WireModel):
    data: PropertyRecord
    status: Literal["success"] = "success"
