"""
CJ Dropshipping extractor for the Nova product scraper.

CJ product pages are rendered client-side from a state blob; the product
node is located inside it and mapped onto the record. Anything the blob
lacks is filled from the generic page heuristics.
"""
import json
import re
from typing import Any, Dict, List, Optional

from nova.adapters.base import (
    BaseExtractor,
    EmbeddedPattern,
    MalformedEmbeddedDataError,
    collect_images,
    decode_object_at,
    find_embedded_json,
    first_present,
    normalize_image_url,
    parse_price,
)
from nova.adapters.generic import extract_generic_fields
from nova.models.product import NormalizedProductRecord, Platform, Variant, VariantOption


EMBEDDED_PATTERNS = [
    EmbeddedPattern("initial_state", r"window\.__INITIAL_STATE__\s*=\s*"),
    EmbeddedPattern("product_detail", r"window\.productDetail\s*=\s*"),
]

# Keys that identify the product node inside the state tree
PRODUCT_NAME_KEYS = ("productNameEn", "nameEn")


def find_product_node(data: Any, depth: int = 0) -> Optional[Dict[str, Any]]:
    """Recursively find the product object in a state tree (max depth 5)."""
    if depth > 5:
        return None
    if isinstance(data, dict):
        if any(key in data for key in PRODUCT_NAME_KEYS):
            return data
        for value in data.values():
            found = find_product_node(value, depth + 1)
            if found:
                return found
    elif isinstance(data, list):
        for value in data[:20]:
            found = find_product_node(value, depth + 1)
            if found:
                return found
    return None


def split_image_field(value: Any) -> List[str]:
    """CJ stores image sets as a list, a JSON array string, or a comma list."""
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    if not isinstance(value, str) or not value.strip():
        return []
    value = value.strip()
    if value.startswith("["):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            parsed = []
        return [v for v in parsed if isinstance(v, str)]
    return [v.strip() for v in value.split(",") if v.strip()]


class CJExtractor(BaseExtractor):
    """Extractor for cjdropshipping.com product pages."""

    platform = Platform.CJ

    async def _extract(self, url: str) -> NormalizedProductRecord:
        html = await self.fetch_text(url, purpose="product_page")
        soup = self.parse_html(html)

        state = find_embedded_json(soup, EMBEDDED_PATTERNS, self.logger)
        if state is None:
            state = self._next_data(soup)
        product = find_product_node(state) or {}
        if not product:
            self.logger.log_fallback(
                from_source="embedded_state",
                to_source="generic_heuristics",
                reason="No product node in page state",
                url=url,
            )

        page = extract_generic_fields(soup, url)

        title = first_present(
            lambda: product["productNameEn"],
            lambda: product["nameEn"],
            lambda: page["title"],
        )

        price = parse_price(first_present(
            lambda: product["sellPrice"],
            lambda: product["price"],
        )) or page["price"]

        images = collect_images(
            split_image_field(product.get("productImageSet"))
            + split_image_field(product.get("productImage"))
            + page["images"],
            base_url=url,
        )

        return NormalizedProductRecord(
            platform=self.platform,
            source_url=url,
            product_id=first_present(
                lambda: str(product["pid"]),
                lambda: str(product["id"]),
                lambda: re.search(r"-p-([\w-]+)\.html", url).group(1),
            ),
            title=title or "",
            price=price,
            currency=page["currency"] or self.default_currency,
            images=images,
            description=first_present(
                lambda: product["descriptionEn"],
                lambda: product["description"],
                lambda: page["description"],
            ) or "",
            variants=self._extract_variants(product),
            rating=page["rating"],
            review_count=page["review_count"],
        )

    def _next_data(self, soup) -> Optional[Dict[str, Any]]:
        """Next.js pages ship state as a JSON script instead of an assignment."""
        script = soup.find("script", id="__NEXT_DATA__")
        if not script or not script.string:
            return None
        try:
            return decode_object_at(script.string, script.string.find("{"))
        except MalformedEmbeddedDataError as e:
            self.logger.log_fallback(
                from_source="next_data",
                to_source="generic_heuristics",
                reason=f"malformed embedded data: {e}",
            )
            return None

    def _extract_variants(self, product: Dict[str, Any]) -> List[Variant]:
        """
        Build variant dimensions from CJ's flat variant list.

        `variantKeyEn` names the dimensions ("Color-Size") and each
        variant's `variantKey` holds matching values ("Black-XL").
        """
        dimensions = [d.strip() for d in (product.get("variantKeyEn") or "").split("-") if d.strip()]
        variant_list = product.get("variantList") or product.get("variants") or []
        if not dimensions or not isinstance(variant_list, list):
            return []

        options: List[List[VariantOption]] = [[] for _ in dimensions]
        seen: List[set] = [set() for _ in dimensions]

        for variant in variant_list:
            if not isinstance(variant, dict):
                continue
            values = [v.strip() for v in (variant.get("variantKey") or "").split("-")]
            if len(values) != len(dimensions):
                continue
            for index, value in enumerate(values):
                if not value or value in seen[index]:
                    continue
                seen[index].add(value)
                # Variant images belong to the first dimension (usually color)
                image = normalize_image_url(variant.get("variantImage")) if index == 0 else None
                options[index].append(VariantOption(name=value, image=image))

        return [
            Variant(name=name, options=opts)
            for name, opts in zip(dimensions, options)
            if opts
        ]
