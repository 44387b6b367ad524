"""Models package initialization."""
from nova.models.product import (
    MAX_IMAGES,
    NormalizedProductRecord,
    Platform,
    Specification,
    Variant,
    VariantOption,
)

__all__ = [
    "MAX_IMAGES",
    "NormalizedProductRecord",
    "Platform",
    "Specification",
    "Variant",
    "VariantOption",
]
