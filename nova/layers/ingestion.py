"""
Ingestion Layer for the Nova product scraper.
Runs the whole pipeline for one URL: detect platform, extract a
candidate, pass it through the validity gate.
"""
from typing import Dict, Optional

import httpx

from nova.adapters.base import BaseExtractor, ExtractionError
from nova.adapters.aliexpress import AliExpressExtractor
from nova.adapters.amazon import AmazonExtractor
from nova.adapters.alibaba import AlibabaExtractor
from nova.adapters.cj import CJExtractor
from nova.adapters.generic import GenericExtractor
from nova.layers.platform_detection import PlatformDetectionLayer
from nova.layers.validity_gate import ValidityGate
from nova.models.product import NormalizedProductRecord, Platform
from nova.utils.logger import LayerLogger


def build_extractors(client: Optional[httpx.AsyncClient] = None) -> Dict[Platform, BaseExtractor]:
    """One extractor per platform, all sharing the optional client."""
    return {
        Platform.ALIEXPRESS: AliExpressExtractor(client=client),
        Platform.AMAZON: AmazonExtractor(client=client),
        Platform.ALIBABA: AlibabaExtractor(client=client),
        Platform.CJ: CJExtractor(client=client),
        Platform.GENERIC_HTTP: GenericExtractor(client=client),
    }


class IngestionLayer:
    """
    Ingestion Layer - one URL in, one normalized record out.

    This layer:
    - Picks the extractor for the detected platform
    - Converts every extraction failure into a gate substitution
    - Never raises; the worst outcome is the Demo Record
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        extractors: Optional[Dict[Platform, BaseExtractor]] = None,
        detector: Optional[PlatformDetectionLayer] = None,
        gate: Optional[ValidityGate] = None,
    ):
        self.logger = LayerLogger("ingestion_layer")
        self.extractors = extractors if extractors is not None else build_extractors(client)
        self.detector = detector or PlatformDetectionLayer()
        self.gate = gate or ValidityGate()

    def extractor_for(self, platform: Platform) -> BaseExtractor:
        extractor = self.extractors.get(platform)
        if extractor is None:
            self.logger.log_fallback(
                from_source=platform.value,
                to_source=Platform.GENERIC_HTTP.value,
                reason="No extractor registered for platform",
            )
            extractor = self.extractors.get(Platform.GENERIC_HTTP) or GenericExtractor()
        return extractor

    async def scrape(self, url: str) -> NormalizedProductRecord:
        """
        Scrape a product URL into a NormalizedProductRecord.

        Args:
            url: product page URL, preserved verbatim on the record

        Returns:
            The accepted candidate, or the Demo Record with is_demo=True
        """
        platform = self.detector.detect(url)
        self.logger.log_action("scrape", "started", url=url, platform=platform.value)

        candidate = None
        try:
            candidate = await self.extractor_for(platform).extract(url)
        except ExtractionError as e:
            self.logger.log_fallback(
                from_source=platform.value,
                to_source="demo_record",
                reason=e.message,
                url=url,
            )
        except Exception as e:
            self.logger.log_error(
                f"Unexpected extractor failure: {str(e)}",
                error_type=type(e).__name__,
                url=url,
            )

        record = self.gate.accept(candidate, platform, url)
        self.logger.log_action(
            "scrape",
            "completed",
            url=url,
            platform=record.platform.value,
            is_demo=record.is_demo,
            title=record.title,
            price=record.price,
            images_count=len(record.images),
        )
        return record


async def scrape(url: str, client: Optional[httpx.AsyncClient] = None) -> NormalizedProductRecord:
    """Scrape one URL with a fresh pipeline."""
    return await IngestionLayer(client=client).scrape(url)
