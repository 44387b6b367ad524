"""
Validity Gate for the Nova product scraper.

Reviews an extraction candidate and either accepts it or substitutes the
fixed Demo Record, so downstream consumers always receive a complete,
well-formed product.
"""
from datetime import datetime, timezone
from typing import Callable, Optional

from nova.models.product import (
    NormalizedProductRecord,
    Platform,
    Specification,
    Variant,
    VariantOption,
)
from nova.utils.logger import LayerLogger


MIN_TITLE_LENGTH = 5
ERROR_PAGE_MARKER = "404"


# Substituted whenever extraction fails or looks unusable.
# platform/source_url are replaced per request; everything else is constant.
DEMO_RECORD = NormalizedProductRecord(
    platform=Platform.GENERIC_HTTP,
    source_url="",
    title="Premium Wireless Bluetooth Earbuds Pro",
    price=49.99,
    original_price=129.99,
    currency="USD",
    images=[
        "https://images.unsplash.com/photo-1590658268037-6bf12165a8df?w=800&q=80",
        "https://images.unsplash.com/photo-1598371839696-5c5bb00bdc28?w=800&q=80",
        "https://images.unsplash.com/photo-1606220588913-b3aacb4d2f46?w=800&q=80",
        "https://images.unsplash.com/photo-1484704849700-f032a568e944?w=800&q=80",
    ],
    description=(
        "Experience premium sound quality with our latest wireless earbuds "
        "featuring advanced active noise cancellation."
    ),
    bullets=[
        "Active Noise Cancellation blocks 98% of ambient noise",
        "40-hour total battery life with wireless charging case",
        "Premium 12mm audio drivers for rich sound",
        "IPX5 water & sweat resistant",
        "Touch controls for music & calls",
        "Bluetooth 5.3 connectivity",
    ],
    variants=[
        Variant(
            name="Color",
            options=[
                VariantOption(name="Midnight Black"),
                VariantOption(name="Pearl White"),
                VariantOption(name="Rose Gold"),
            ],
        ),
    ],
    specifications=[
        Specification(key="Battery Life", value="8 hours (40 with case)"),
        Specification(key="Bluetooth", value="5.3"),
        Specification(key="Driver Size", value="12mm"),
        Specification(key="Water Resistance", value="IPX5"),
    ],
    rating=4.8,
    review_count=12847,
    is_demo=True,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValidityGate:
    """
    Accepts or replaces an extraction candidate.

    Pending -> Accepted (candidate stamped with scraped_at)
    Pending -> Substituted (Demo Record for this platform/url)

    No retries happen here.
    """

    def __init__(
        self,
        demo_record: NormalizedProductRecord = DEMO_RECORD,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.demo_record = demo_record
        self.clock = clock
        self.logger = LayerLogger("validity_gate")

    def reject_reason(self, candidate: Optional[NormalizedProductRecord]) -> Optional[str]:
        """Why a candidate is unusable, or None if it passes."""
        if candidate is None:
            return "extraction_failed"

        title = (candidate.title or "").strip()
        if not title:
            return "title_missing"
        if len(title) < MIN_TITLE_LENGTH:
            return "title_too_short"
        if ERROR_PAGE_MARKER in title:
            return "error_page_title"
        if candidate.price == 0:
            return "price_missing"
        return None

    def demo_for(self, platform: Platform, source_url: str) -> NormalizedProductRecord:
        """
        The Demo Record addressed to one request.

        Deep copy; the returned lists are never shared with the
        module-level constant.
        """
        return self.demo_record.model_copy(
            update={
                "platform": platform,
                "source_url": source_url,
                "is_demo": True,
            },
            deep=True,
        )

    def accept(
        self,
        candidate: Optional[NormalizedProductRecord],
        platform: Platform,
        source_url: str,
    ) -> NormalizedProductRecord:
        """
        Return the final record for a request.

        Args:
            candidate: extractor output, or None when extraction raised
            platform: platform chosen by the detector
            source_url: the URL exactly as the caller supplied it
        """
        if candidate is not None and candidate.is_demo:
            # Already a final substitution; passing it again is a no-op
            return candidate

        reason = self.reject_reason(candidate)
        if reason:
            self.logger.log_decision(
                decision="substitute_demo_record",
                reason=reason,
                url=source_url,
                platform=platform.value,
                title=candidate.title if candidate else None,
                price=candidate.price if candidate else None,
            )
            return self.demo_for(platform, source_url)

        self.logger.log_decision(
            decision="accept_candidate",
            reason="title and price present",
            url=source_url,
            platform=platform.value,
        )
        return candidate.model_copy(update={
            "scraped_at": self.clock(),
            "is_demo": False,
        })
