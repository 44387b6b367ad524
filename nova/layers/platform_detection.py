"""
Platform Detection Layer for the Nova product scraper.
This is the first stage of the pipeline - it decides which extractor
handles a URL. Pure string matching, no network access.
"""
from typing import Optional, Sequence, Tuple

from nova.models.product import Platform
from nova.utils.logger import LayerLogger


# Ordered (hostname fragment, platform) table; first match wins
PLATFORM_TABLE: Tuple[Tuple[str, Platform], ...] = (
    ("aliexpress.", Platform.ALIEXPRESS),
    ("amazon.", Platform.AMAZON),
    ("alibaba.com", Platform.ALIBABA),
    ("cjdropshipping.com", Platform.CJ),
)


def detect_platform(
    url: Optional[str],
    table: Sequence[Tuple[str, Platform]] = PLATFORM_TABLE,
) -> Platform:
    """
    Classify a URL into a platform.

    Case-insensitive substring match against the table. Anything
    unrecognized (including empty input) is GENERIC_HTTP.
    """
    if not isinstance(url, str):
        return Platform.GENERIC_HTTP

    url_lower = url.lower()
    for fragment, platform in table:
        if fragment in url_lower:
            return platform
    return Platform.GENERIC_HTTP


class PlatformDetectionLayer:
    """Logs and returns the platform decision for a URL."""

    def __init__(self, table: Sequence[Tuple[str, Platform]] = PLATFORM_TABLE):
        self.table = table
        self.logger = LayerLogger("platform_detection")

    def detect(self, url: Optional[str]) -> Platform:
        platform = detect_platform(url, self.table)
        if platform is Platform.GENERIC_HTTP:
            reason = "No known platform hostname in URL"
        else:
            reason = "Matched platform hostname fragment"
        self.logger.log_decision(
            decision=platform.value,
            reason=reason,
            url=url,
        )
        return platform
