"""
Amazon extractor for the Nova product scraper.
Parses the desktop product detail page (DOM selectors plus the inline
`colorImages` gallery blob).
"""
import re
from typing import List, Optional

from bs4 import BeautifulSoup

from nova.adapters.base import (
    BaseExtractor,
    MalformedEmbeddedDataError,
    collect_images,
    first_present,
    loads_js_object,
    parse_int,
    parse_price,
    parse_rating,
    text_of,
)
from nova.models.product import (
    NormalizedProductRecord,
    Platform,
    Specification,
    Variant,
    VariantOption,
)


PRICE_SELECTORS = [
    ".a-price .a-offscreen",
    "#priceblock_ourprice",
    "#priceblock_dealprice",
    ".a-price-whole",
    '[data-a-color="price"] .a-offscreen',
]

LIST_PRICE_SELECTORS = [
    ".a-price.a-text-price .a-offscreen",
    "#listPrice",
    "#priceblock_listprice",
]

VARIANT_CONTAINERS = "#variation_color_name, #variation_size_name"

SPEC_TABLES = [
    "#productDetails_techSpec_section_1 tr",
    "#productDetails_detailBullets_sections1 tr",
]

COLOR_IMAGES = re.compile(r"'colorImages'\s*:\s*(\{[\s\S]*?\})\s*,\s*'")

# e.g. "71abc._AC_SX679_.jpg" -> "71abc.jpg"
SIZE_SEGMENT = re.compile(r"\._[^/]*?_\.")


def full_size_image(url: str) -> str:
    """Drop Amazon's `._XX_.` resize segment."""
    return SIZE_SEGMENT.sub(".", url)


class AmazonExtractor(BaseExtractor):
    """Extractor for amazon.* product detail pages."""

    platform = Platform.AMAZON

    async def _extract(self, url: str) -> NormalizedProductRecord:
        html = await self.fetch_text(url, purpose="product_page")
        soup = self.parse_html(html)

        title = first_present(
            lambda: text_of(soup.select_one("#productTitle")),
            lambda: text_of(soup.find("h1")),
        )

        bullets = self._extract_bullets(soup)
        description = first_present(
            lambda: soup.select_one("#productDescription").decode_contents().strip(),
            lambda: "\n".join(bullets),
        )

        return NormalizedProductRecord(
            platform=self.platform,
            source_url=url,
            product_id=first_present(
                lambda: soup.select_one("#ASIN").get("value"),
                lambda: re.search(r"/(?:dp|gp/product)/([A-Z0-9]{10})", url).group(1),
            ),
            title=title or "",
            price=parse_price(self._first_text(soup, PRICE_SELECTORS)),
            original_price=parse_price(self._first_text(soup, LIST_PRICE_SELECTORS)) or None,
            currency=self.default_currency,
            images=self._extract_images(soup),
            description=description or "",
            bullets=bullets,
            variants=self._extract_variants(soup),
            specifications=self._extract_specifications(soup),
            rating=parse_rating(first_present(
                lambda: soup.select_one("#acrPopover").get("title"),
            )),
            review_count=parse_int(text_of(soup.select_one("#acrCustomerReviewText"))),
        )

    def _first_text(self, soup: BeautifulSoup, selectors: List[str]) -> Optional[str]:
        """Text of the first selector that yields a non-empty element."""
        for selector in selectors:
            text = text_of(soup.select_one(selector))
            if text:
                return text
        return None

    def _extract_images(self, soup: BeautifulSoup) -> List[str]:
        sources = []

        main_image = soup.select_one("#landingImage") or soup.select_one("#imgBlkFront")
        if main_image:
            sources.append(main_image.get("data-old-hires") or main_image.get("src"))

        for img in soup.select("#altImages img, .imageThumbnail img"):
            sources.append(img.get("src") or img.get("data-old-hires"))

        for script in soup.find_all("script"):
            content = script.string or ""
            if "colorImages" not in content:
                continue
            match = COLOR_IMAGES.search(content)
            if not match:
                continue
            try:
                gallery = loads_js_object(match.group(1))
            except MalformedEmbeddedDataError as e:
                self.logger.log_fallback(
                    from_source="color_images",
                    to_source="dom_images",
                    reason=f"malformed embedded data: {e}",
                )
                continue
            for image in gallery.get("initial") or []:
                if isinstance(image, dict) and image.get("hiRes"):
                    sources.append(image["hiRes"])

        return collect_images(sources, rewrite=full_size_image)

    def _extract_bullets(self, soup: BeautifulSoup) -> List[str]:
        bullets = []
        for span in soup.select("#feature-bullets li span"):
            text = text_of(span)
            if text and text not in bullets:
                bullets.append(text)
        return bullets

    def _extract_variants(self, soup: BeautifulSoup) -> List[Variant]:
        variants = []
        for container in soup.select(VARIANT_CONTAINERS):
            name = (text_of(container.select_one(".a-form-label")) or "").replace(":", "").strip()

            options = []
            for item in container.find_all("li"):
                option_name = first_present(
                    lambda: item["title"].replace("Click to select ", ""),
                    lambda: text_of(item),
                )
                if not option_name:
                    continue
                image = item.find("img")
                options.append(VariantOption(
                    name=option_name,
                    image=image.get("src") if image else None,
                ))

            if name and options:
                variants.append(Variant(name=name, options=options))
        return variants

    def _extract_specifications(self, soup: BeautifulSoup) -> List[Specification]:
        specs = []
        for selector in SPEC_TABLES:
            for row in soup.select(selector):
                key = text_of(row.find("th"))
                value = text_of(row.find("td"))
                if key and value:
                    specs.append(Specification(key=key, value=value))
        return specs
