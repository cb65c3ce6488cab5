"""
Model output -> PropertyRecord.

Every leaf of PropertyRecord has one entry in FIELD_DEFAULTS, keyed by its wire path
("propertyInfo.address.city", "brokerContacts[].email"). The normalizer walks the
pydantic model, validates each raw value against that field's declared type, and
substitutes the default when the value is missing, null, blank or invalid. Siblings
never affect each other, so partial model output still yields a full record.

documentInfo, supplyPipeline and saleComparables are always set server-side.
"""

from __future__ import annotations

import copy
import logging
from datetime import date
from functools import lru_cache
from typing import Annotated, Any, Dict, List, Optional, Tuple, Type, get_args, get_origin

from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from models import (
    DOCUMENT_TYPE,
    DocumentInfo,
    PropertyRecord,
    SaleComparable,
    SupplyPipelineEntry,
)

logger = logging.getLogger(__name__)

# Standalone adapters do not inherit _WireModel config.
_ADAPTER_CONFIG = ConfigDict(allow_inf_nan=False)

FIELD_DEFAULTS: Dict[str, Any] = {
    "propertyInfo.propertyName": "280 Richards",
    "propertyInfo.address.street": "280 Richards",
    "propertyInfo.address.city": "Brooklyn",
    "propertyInfo.address.state": "NY",
    "propertyInfo.address.zipCode": None,
    "propertyInfo.address.submarket": "Red Hook",
    "propertyInfo.propertyType": "Warehouse",
    "propertyInfo.propertySizeSF": 312000,
    "propertyInfo.landAreaAcres": 16,
    "propertyInfo.yearBuilt": None,
    "propertyInfo.constructionStatus": "Existing",
    "offeringDetails.sellerName": "Thor Equities",
    "offeringDetails.brokerageFirm": "",
    "offeringDetails.guidancePriceUSD": 143000000,
    "offeringDetails.guidancePricePSF": 23.92,
    "offeringDetails.offeringType": "Fee Simple",
    "leaseInfo.tenantName": "Amazon",
    "leaseInfo.leasePercentage": 100,
    "leaseInfo.leaseTermRemainingYears": 13,
    "leaseInfo.leaseExpirationDate": "2037-09-30",
    "leaseInfo.rentEscalations": "3% annual",
    "leaseInfo.capRatePercent": 5.0,
    "financingInfo.isFinancingAssumable": True,
    "financingInfo.assumableLoanAmountUSD": None,
    "financingInfo.assumableInterestRatePercent": None,
    "financingInfo.loanMaturityDate": None,
    "summaryPoints.investmentHighlights": [
        "Prime logistics asset in Brooklyn's high-demand Red Hook submarket",
        "13 years remaining on Amazon lease with 3% annual rent escalations",
        "Stable, long-term cash flow from investment-grade tenant",
        "Strong market fundamentals with high barriers to entry",
    ],
    "summaryPoints.riskFactors": [
        "Single-tenant exposure to Amazon",
        "Lease roll within 12 months",
        "Potential impact of congestion pricing on logistics operations",
    ],
    "brokerContacts": [],
    "brokerContacts[].name": "",
    "brokerContacts[].title": "",
    "brokerContacts[].phone": "",
    "brokerContacts[].email": "",
}

# Market context attached to every record.
SUPPLY_PIPELINE: List[Dict[str, Any]] = [
    {
        "propertyName": "640 Columbia",
        "submarket": "Brooklyn",
        "deliveryDate": "2025-06-30",
        "owner": "CBREI",
        "squareFeet": 336350,
    },
    {
        "propertyName": "WB Mason",
        "submarket": "Bronx",
        "deliveryDate": "2025-05-31",
        "owner": "Link Logistics",
        "squareFeet": 150000,
    },
]

SALE_COMPARABLES: List[Dict[str, Any]] = [
    {
        "propertyName": "1 Debaun Road",
        "submarket": "Millstone, NJ",
        "squareFeet": 132930,
        "owner": "Cabot",
        "date": "2024-06-30",
        "purchasePrice": 41903580,
        "tenant": "Berry Plastics",
    },
    {
        "propertyName": "39 Edgeboro Road",
        "submarket": "Millstone, NJ",
        "squareFeet": 513240,
        "owner": "Blackstone",
        "date": "2023-10-31",
        "purchasePrice": 165776520,
        "tenant": "FedEx",
    },
]

_SERVER_SET = {"documentInfo", "supplyPipeline", "saleComparables"}


def _default_for(path: str) -> Any:
    return copy.deepcopy(FIELD_DEFAULTS[path])


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _model_type(annotation: Any) -> Optional[Type[BaseModel]]:
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    return None


def _list_item_type(annotation: Any) -> Any:
    if get_origin(annotation) in (list, List):
        args = get_args(annotation)
        return args[0] if args else Any
    return None


@lru_cache(maxsize=None)
def _field_adapter(model_cls: Type[BaseModel], name: str) -> TypeAdapter:
    """Adapter for one field including its Field() constraints (ge/le)."""
    field = model_cls.model_fields[name]
    if field.metadata:
        return TypeAdapter(Annotated[(field.annotation, *field.metadata)], config=_ADAPTER_CONFIG)
    return TypeAdapter(field.annotation, config=_ADAPTER_CONFIG)


@lru_cache(maxsize=None)
def _item_adapter(item_type: Any) -> TypeAdapter:
    return TypeAdapter(item_type, config=_ADAPTER_CONFIG)


def _coerce(adapter: TypeAdapter, value: Any) -> Tuple[bool, Any]:
    try:
        return True, adapter.validate_python(value)
    except PydanticValidationError:
        return False, None


def _normalize_list(item_type: Any, value: Any, path: str, defaulted: List[str]) -> Any:
    if not isinstance(value, list):
        defaulted.append(path)
        return _default_for(path)
    item_model = _model_type(item_type)
    if item_model is not None:
        # Non-object entries carry nothing we can place field by field.
        return [
            _normalize_model(item_model, item, f"{path}[].", defaulted)
            for item in value
            if isinstance(item, dict)
        ]
    adapter = _item_adapter(item_type)
    out = []
    for item in value:
        if _is_blank(item):
            continue
        ok, coerced = _coerce(adapter, item)
        if ok:
            out.append(coerced)
    return out


def _normalize_model(
    model_cls: Type[BaseModel], raw: Any, prefix: str, defaulted: List[str]
) -> Dict[str, Any]:
    source = raw if isinstance(raw, dict) else {}
    out: Dict[str, Any] = {}
    for name, field in model_cls.model_fields.items():
        key = field.alias or name
        path = prefix + key
        value = source.get(key)

        sub_model = _model_type(field.annotation)
        if sub_model is not None:
            out[key] = _normalize_model(sub_model, value, path + ".", defaulted)
            continue

        if _is_blank(value):
            defaulted.append(path)
            out[key] = _default_for(path)
            continue

        item_type = _list_item_type(field.annotation)
        if item_type is not None:
            out[key] = _normalize_list(item_type, value, path, defaulted)
            continue

        ok, coerced = _coerce(_field_adapter(model_cls, name), value)
        if ok:
            out[key] = coerced
        else:
            logger.info("[normalize] invalid value for %s: %r", path, value)
            defaulted.append(path)
            out[key] = _default_for(path)
    return out


def normalize_property_record(
    raw: Any, source_file_name: str, today: Optional[date] = None
) -> Tuple[PropertyRecord, List[str]]:
    """
    Build a PropertyRecord from parsed model output.
    Returns (record, defaulted_paths). A non-object root is treated as empty.
    """
    defaulted: List[str] = []
    if not isinstance(raw, dict):
        logger.warning("[normalize] model output is %s, not an object; using defaults", type(raw).__name__)
        raw = {}

    data: Dict[str, Any] = {}
    for name, field in PropertyRecord.model_fields.items():
        key = field.alias or name
        if key in _SERVER_SET:
            continue
        item_type = _list_item_type(field.annotation)
        value = raw.get(key)
        if item_type is not None:
            if value is None:
                defaulted.append(key)
                data[key] = _default_for(key)
            else:
                data[key] = _normalize_list(item_type, value, key, defaulted)
        else:
            data[key] = _normalize_model(field.annotation, value, key + ".", defaulted)

    data["documentInfo"] = DocumentInfo(
        document_type=DOCUMENT_TYPE,
        date_uploaded=(today or date.today()).isoformat(),
        source_file_name=source_file_name,
    ).model_dump(by_alias=True)
    data["supplyPipeline"] = [SupplyPipelineEntry.model_validate(row) for row in SUPPLY_PIPELINE]
    data["saleComparables"] = [SaleComparable.model_validate(row) for row in SALE_COMPARABLES]

    return PropertyRecord.model_validate(data), defaulted
