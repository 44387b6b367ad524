"""
AliExpress extractor for the Nova product scraper.

Tries the lightweight mobile detail API first, then falls back to the
desktop product page and its embedded `runParams`-style data blob.
"""
import re
from typing import Any, Dict, List, Optional

from nova.adapters.base import (
    BaseExtractor,
    EmbeddedPattern,
    ExtractionError,
    absolute_url,
    collect_images,
    dig,
    find_embedded_json,
    first_present,
    normalize_image_url,
    parse_int,
    parse_price,
    parse_rating,
    text_of,
    title_tag_prefix,
)
from nova.config import config
from nova.models.product import (
    NormalizedProductRecord,
    Platform,
    Specification,
    Variant,
    VariantOption,
)


MOBILE_API_URL = "https://m.aliexpress.com/api/detail/v1/item/{product_id}"

PRODUCT_ID_PATTERNS = [
    re.compile(r"/item/(\d+)\.html"),
    re.compile(r"/(\d+)\.html"),
    re.compile(r"item/(\d+)"),
]

# Page variants embed their data under different assignments
EMBEDDED_PATTERNS = [
    EmbeddedPattern("run_params", r"window\.runParams\s*=\s*"),
    EmbeddedPattern("action_module_data", r"data:\s*", required_key="actionModule"),
    EmbeddedPattern("init_data", r"__INIT_DATA__\s*=\s*"),
]

# Known module names used to recognize a wrapped payload ({"data": {...modules}})
PAGE_MODULES = ("pageModule", "titleModule", "priceModule", "imageModule", "skuModule")

HTML_PRICE = re.compile(r"US\s*\$\s*([\d.,]+)")

# e.g. "H123.jpg_220x220q75.jpg_.webp" -> "H123.jpg"
THUMBNAIL_SUFFIX = re.compile(r"\.(jpg|jpeg|png|webp)_\d+x\d+[^/]*$", re.IGNORECASE)
# e.g. "H123_50x50.jpg" -> "H123.jpg"
THUMBNAIL_INLINE = re.compile(r"_\d+x\d+\.(jpg|jpeg|png|webp)", re.IGNORECASE)


def extract_product_id(url: str) -> Optional[str]:
    """Numeric AliExpress item id from a product URL."""
    for pattern in PRODUCT_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def full_size_image(url: str) -> str:
    """Strip alicdn thumbnail size segments to get the original asset."""
    url = THUMBNAIL_SUFFIX.sub(r".\1", url)
    return THUMBNAIL_INLINE.sub(r".\1", url)


def unwrap_page_data(blob: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return the dict holding the *Module keys, unwrapping a `data` envelope."""
    if not blob:
        return {}
    inner = blob.get("data")
    if isinstance(inner, dict) and any(module in inner for module in PAGE_MODULES):
        return inner
    return blob


class AliExpressExtractor(BaseExtractor):
    """Extractor for aliexpress.* product pages."""

    platform = Platform.ALIEXPRESS

    async def _extract(self, url: str) -> NormalizedProductRecord:
        product_id = extract_product_id(url)

        if product_id:
            try:
                record = await self._extract_from_api(url, product_id)
                if record is not None:
                    return record
                self.logger.log_fallback(
                    from_source="mobile_api",
                    to_source="html_page",
                    reason="API payload has no title",
                    url=url,
                )
            except ExtractionError as e:
                self.logger.log_fallback(
                    from_source="mobile_api",
                    to_source="html_page",
                    reason=e.message,
                    url=url,
                )
        else:
            self.logger.log_decision(
                decision="skip_mobile_api",
                reason="No product id in URL",
                url=url,
            )

        return await self._extract_from_page(url, product_id)

    # =========================================================================
    # MOBILE API
    # =========================================================================

    async def _extract_from_api(self, url: str, product_id: str) -> Optional[NormalizedProductRecord]:
        data = await self.fetch_json(
            MOBILE_API_URL.format(product_id=product_id),
            timeout=self.api_timeout,
            headers=config.mobile_api_headers(),
            purpose="mobile_api",
        )

        item = dig(data, "item")
        if not isinstance(item, dict):
            raise ExtractionError("No item in mobile API response", url=url, platform=self.platform.value)
        title = item.get("title")
        if not isinstance(title, str) or not title.strip():
            return None

        try:
            return self._record_from_api_item(url, product_id, item)
        except (ValueError, TypeError, AttributeError) as e:
            raise ExtractionError(
                f"Unusable mobile API item: {str(e)}",
                url=url,
                platform=self.platform.value,
            ) from e

    def _record_from_api_item(self, url: str, product_id: str, item: Dict[str, Any]) -> NormalizedProductRecord:
        images = item.get("images") or []
        # A zero promotion price means "no promotion", not a free item
        price = first_present(
            lambda: parse_price(item["sku"]["def"]["promotionPrice"]) or None,
            lambda: parse_price(item["sku"]["def"]["price"]) or None,
        )
        return NormalizedProductRecord(
            platform=self.platform,
            source_url=url,
            product_id=product_id,
            title=item["title"].strip(),
            price=price or 0.0,
            original_price=parse_price(dig(item, "sku", "def", "price")) or None,
            currency=self.default_currency,
            images=collect_images(images if isinstance(images, list) else [], rewrite=full_size_image),
            description=item.get("description") or "",
        )

    # =========================================================================
    # DESKTOP PAGE
    # =========================================================================

    async def _extract_from_page(self, url: str, product_id: Optional[str]) -> NormalizedProductRecord:
        html = await self.fetch_text(url, purpose="product_page")
        soup = self.parse_html(html)
        page_data = unwrap_page_data(find_embedded_json(soup, EMBEDDED_PATTERNS, self.logger))

        title = first_present(
            lambda: page_data["pageModule"]["title"],
            lambda: page_data["titleModule"]["subject"],
            lambda: text_of(soup.find("h1")),
            lambda: text_of(soup.select_one('[data-pl="product-title"]')),
            lambda: title_tag_prefix(soup),
        )

        price_module = page_data.get("priceModule") or {}
        price_text = first_present(
            lambda: price_module["minActivityAmount"]["value"],
            lambda: price_module["minAmount"]["value"],
            lambda: price_module["formatedActivityPrice"],
            lambda: HTML_PRICE.search(html).group(1),
        )

        currency = first_present(
            lambda: price_module["minActivityAmount"]["currency"],
            lambda: price_module["minAmount"]["currency"],
        )

        return NormalizedProductRecord(
            platform=self.platform,
            source_url=url,
            product_id=product_id,
            title=title or "",
            price=parse_price(price_text),
            original_price=parse_price(dig(price_module, "minAmount", "value")) or None,
            currency=currency or self.default_currency,
            images=self._extract_images(page_data, soup),
            description=await self._fetch_description(page_data, url),
            variants=self._extract_variants(page_data),
            specifications=self._extract_specifications(page_data),
            rating=parse_rating(first_present(
                lambda: page_data["feedbackModule"]["averageStar"],
                lambda: page_data["titleModule"]["feedbackRating"]["averageStar"],
            )),
            review_count=parse_int(first_present(
                lambda: page_data["feedbackModule"]["totalValidNum"],
                lambda: page_data["titleModule"]["feedbackRating"]["totalValidNum"],
            )),
        )

    def _extract_images(self, page_data: Dict[str, Any], soup) -> List[str]:
        sources = list(dig(page_data, "imageModule", "imagePathList") or [])

        for img in soup.find_all("img"):
            src = img.get("src") or img.get("data-src") or ""
            if "alicdn.com" in src:
                sources.append(src)

        return collect_images(sources, rewrite=full_size_image)

    async def _fetch_description(self, page_data: Dict[str, Any], url: str) -> str:
        """Description HTML lives behind a separate URL; failure leaves it empty."""
        description_url = absolute_url(dig(page_data, "descriptionModule", "descriptionUrl"))
        if not description_url:
            return ""
        try:
            return await self.fetch_text(
                description_url,
                timeout=self.api_timeout,
                purpose="description",
            )
        except ExtractionError as e:
            self.logger.log_fallback(
                from_source="description_url",
                to_source="empty_description",
                reason=e.message,
                url=url,
            )
            return ""

    def _extract_variants(self, page_data: Dict[str, Any]) -> List[Variant]:
        variants = []
        for prop in dig(page_data, "skuModule", "productSKUPropertyList") or []:
            if not isinstance(prop, dict) or not prop.get("skuPropertyName"):
                continue
            options = []
            for value in prop.get("skuPropertyValues") or []:
                name = value.get("propertyValueDisplayName") or value.get("propertyValueName")
                if not name:
                    continue
                options.append(VariantOption(
                    name=name,
                    image=normalize_image_url(value.get("skuPropertyImagePath")),
                ))
            variants.append(Variant(name=prop["skuPropertyName"], options=options))
        return variants

    def _extract_specifications(self, page_data: Dict[str, Any]) -> List[Specification]:
        specs = []
        for prop in dig(page_data, "specsModule", "props") or []:
            key = prop.get("attrName") if isinstance(prop, dict) else None
            value = prop.get("attrValue") if isinstance(prop, dict) else None
            if key and value is not None:
                specs.append(Specification(key=key, value=str(value)))
        return specs
