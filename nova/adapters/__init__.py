"""Adapters package initialization."""
from nova.adapters.base import BaseExtractor, ExtractionError, MalformedEmbeddedDataError
from nova.adapters.aliexpress import AliExpressExtractor
from nova.adapters.amazon import AmazonExtractor
from nova.adapters.alibaba import AlibabaExtractor
from nova.adapters.cj import CJExtractor
from nova.adapters.generic import GenericExtractor

__all__ = [
    "BaseExtractor",
    "ExtractionError",
    "MalformedEmbeddedDataError",
    "AliExpressExtractor",
    "AmazonExtractor",
    "AlibabaExtractor",
    "CJExtractor",
    "GenericExtractor",
]
