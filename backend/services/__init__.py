"""Backend services."""

from services.record_normalizer import (
    FIELD_DEFAULTS,
    normalize_property_record,
)

__all__ = [
    "FIELD_DEFAULTS",
    "normalize_property_record",
]
