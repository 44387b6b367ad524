"""Layers package initialization."""
from nova.layers.platform_detection import PlatformDetectionLayer, detect_platform, PLATFORM_TABLE
from nova.layers.validity_gate import ValidityGate, DEMO_RECORD
from nova.layers.ingestion import IngestionLayer, build_extractors, scrape

__all__ = [
    "PlatformDetectionLayer",
    "detect_platform",
    "PLATFORM_TABLE",
    "ValidityGate",
    "DEMO_RECORD",
    "IngestionLayer",
    "build_extractors",
    "scrape",
]
