"""
Generic HTTP extractor for the Nova product scraper.
Used for any site without a platform-specific extractor.

Heuristics are applied in order: schema.org microdata attributes,
JSON-LD Product nodes, common CSS class conventions, and finally raw
heading/title text.
"""
import json
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from nova.adapters.base import (
    BaseExtractor,
    collect_images,
    first_present,
    parse_int,
    parse_price,
    parse_rating,
    text_of,
)
from nova.config import config
from nova.models.product import NormalizedProductRecord, Platform


# Image sources in page order: microdata first, then gallery conventions, then any <img>
IMAGE_SELECTOR = '[itemprop="image"], .product-image img, .gallery img, img'


def flatten_jsonld(data: Any) -> List[Dict[str, Any]]:
    """
    Flatten JSON-LD structure into a list of schema nodes.

    Handles single objects, @graph containers and arrays.
    """
    nodes = []

    if isinstance(data, dict):
        if "@graph" in data:
            for item in data["@graph"]:
                nodes.extend(flatten_jsonld(item))
        if "@type" in data:
            nodes.append(data)

    elif isinstance(data, list):
        for item in data:
            nodes.extend(flatten_jsonld(item))

    return nodes


def find_jsonld_product(soup: BeautifulSoup) -> Optional[Dict[str, Any]]:
    """Return the first JSON-LD node typed Product, if any."""
    for script in soup.find_all("script", type="application/ld+json"):
        if not script.string:
            continue
        try:
            data = json.loads(script.string)
        except json.JSONDecodeError:
            continue

        for node in flatten_jsonld(data):
            schema_type = node.get("@type")
            types = schema_type if isinstance(schema_type, list) else [schema_type]
            if "Product" in types:
                return node
    return None


def normalize_jsonld_images(image_data: Any) -> List[str]:
    """
    Normalize JSON-LD image field to list of URLs.

    Handles a string, a list of strings/ImageObjects, or one ImageObject.
    """
    images = []

    if isinstance(image_data, str):
        images.append(image_data)
    elif isinstance(image_data, list):
        for img in image_data:
            if isinstance(img, str):
                images.append(img)
            elif isinstance(img, dict):
                url = img.get("url") or img.get("contentUrl")
                if url:
                    images.append(url)
    elif isinstance(image_data, dict):
        url = image_data.get("url") or image_data.get("contentUrl")
        if url:
            images.append(url)

    return images


def jsonld_offer(product: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """First offer of a JSON-LD product (offers may be a list or an AggregateOffer)."""
    if not product:
        return {}
    offers = product.get("offers")
    if isinstance(offers, list):
        offers = offers[0] if offers else None
    return offers if isinstance(offers, dict) else {}


def extract_generic_fields(soup: BeautifulSoup, url: str) -> Dict[str, Any]:
    """
    Best-effort product fields from arbitrary markup.

    Returns keyword arguments for NormalizedProductRecord (without
    platform/source_url). Missing values are simply absent or empty.
    """
    product = find_jsonld_product(soup)
    offer = jsonld_offer(product)
    rating = (product or {}).get("aggregateRating") or {}

    title = first_present(
        lambda: text_of(soup.find("h1")),
        lambda: text_of(soup.select_one('[itemprop="name"]')),
        lambda: product["name"],
        lambda: text_of(soup.find("title")),
    )

    price_element = soup.select_one('[itemprop="price"]')
    price_text = first_present(
        lambda: price_element.get("content"),
        lambda: text_of(price_element),
        lambda: text_of(soup.select_one(".price")),
        lambda: offer.get("price") or offer.get("lowPrice"),
    )

    currency = first_present(
        lambda: soup.select_one('[itemprop="priceCurrency"]').get("content"),
        lambda: offer.get("priceCurrency"),
    )

    image_sources = []
    for element in soup.select(IMAGE_SELECTOR):
        image_sources.append(
            element.get("src") or element.get("data-src") or element.get("content")
        )
    if product:
        image_sources.extend(normalize_jsonld_images(product.get("image")))
    og_image = soup.find("meta", property="og:image")
    if og_image:
        image_sources.append(og_image.get("content"))

    description_element = soup.select_one('[itemprop="description"]')
    description = first_present(
        lambda: description_element.decode_contents().strip(),
        lambda: product["description"],
        lambda: soup.find("meta", attrs={"name": "description"}).get("content"),
    )

    return {
        "title": title or "",
        "price": parse_price(price_text),
        "currency": currency or config.DEFAULT_CURRENCY,
        "images": collect_images(image_sources, base_url=url),
        "description": description or "",
        "rating": parse_rating(rating.get("ratingValue")),
        "review_count": parse_int(rating.get("reviewCount") or rating.get("ratingCount")),
    }


class GenericExtractor(BaseExtractor):
    """
    Fallback extractor for sites without a dedicated extractor.
    Performs a single page fetch and applies universal heuristics.
    """

    platform = Platform.GENERIC_HTTP

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("page_timeout", config.GENERIC_TIMEOUT)
        super().__init__(*args, **kwargs)

    async def _extract(self, url: str) -> NormalizedProductRecord:
        html = await self.fetch_text(url, purpose="product_page")
        soup = self.parse_html(html)
        fields = extract_generic_fields(soup, url)

        return NormalizedProductRecord(
            platform=self.platform,
            source_url=url,
            **fields,
        )
