"""
Alibaba extractor for the Nova product scraper.
Wholesale listings: title, lowest tier price, gallery and minimum order
quantity, with `window.detailData` used where the page embeds it.
"""
import re
from typing import Any, Dict, List

from bs4 import BeautifulSoup

from nova.adapters.base import (
    BaseExtractor,
    EmbeddedPattern,
    collect_images,
    dig,
    find_embedded_json,
    first_present,
    parse_price,
    text_of,
    title_tag_prefix,
)
from nova.models.product import NormalizedProductRecord, Platform


EMBEDDED_PATTERNS = [
    EmbeddedPattern("detail_data", r"window\.detailData\s*=\s*"),
]

TITLE_SELECTOR = ".module-pdp-title, .ma-title, h1"
PRICE_SELECTOR = ".module-pdp-price, .ma-spec-price"
GALLERY_SELECTOR = ".main-image-wrapper img, .detail-gallery img, .image-container img"
MOQ_SELECTOR = ".module-pdp-moq, .ma-min-order"
DESCRIPTION_SELECTOR = ".product-description, .do-entry-item"


class AlibabaExtractor(BaseExtractor):
    """Extractor for alibaba.com product pages."""

    platform = Platform.ALIBABA

    async def _extract(self, url: str) -> NormalizedProductRecord:
        html = await self.fetch_text(url, purpose="product_page")
        soup = self.parse_html(html)
        product = dig(find_embedded_json(soup, EMBEDDED_PATTERNS, self.logger), "globalData", "product") or {}

        title = first_present(
            lambda: product["subject"],
            lambda: text_of(soup.select_one(TITLE_SELECTOR)),
            lambda: title_tag_prefix(soup),
        )

        price_text = first_present(
            lambda: product["price"]["productLadderPrices"][0]["dollarPrice"],
            lambda: text_of(soup.select_one(PRICE_SELECTOR)),
        )

        description_element = soup.select_one(DESCRIPTION_SELECTOR)

        return NormalizedProductRecord(
            platform=self.platform,
            source_url=url,
            product_id=first_present(
                lambda: str(product["productId"]),
                lambda: re.search(r"_(\d+)\.html", url).group(1),
            ),
            title=title or "",
            price=parse_price(price_text),
            currency=self.default_currency,
            images=self._extract_images(product, soup),
            description=description_element.decode_contents().strip() if description_element else "",
            moq=self._extract_moq(product, soup),
        )

    def _extract_images(self, product: Dict[str, Any], soup: BeautifulSoup) -> List[str]:
        sources = []
        for media in product.get("mediaItems") or []:
            if isinstance(media, dict) and media.get("type", "image") == "image":
                sources.append(dig(media, "imageUrl", "big"))

        for img in soup.select(GALLERY_SELECTOR):
            sources.append(img.get("src") or img.get("data-src"))

        return collect_images(sources)

    def _extract_moq(self, product: Dict[str, Any], soup: BeautifulSoup) -> int:
        """Minimum order quantity; 1 when the page does not state one."""
        moq = first_present(
            lambda: int(product["moq"]),
            lambda: int(re.search(r"\d+", text_of(soup.select_one(MOQ_SELECTOR))).group()),
        )
        return moq or 1
