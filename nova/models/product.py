"""
Normalized Product Record for the Nova product scraper.
This model is the single canonical output of the scrape pipeline,
regardless of which platform the product page came from.
"""
from datetime import datetime
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

# Hard cap on the number of images carried by a record
MAX_IMAGES = 15


class Platform(str, Enum):
    """E-commerce platform a product URL belongs to."""
    ALIEXPRESS = "aliexpress"
    AMAZON = "amazon"
    ALIBABA = "alibaba"
    CJ = "cj"
    GENERIC_HTTP = "genericHttp"


class VariantOption(BaseModel):
    """One selectable value of a variant dimension."""
    model_config = ConfigDict(frozen=True)

    name: str
    image: Optional[str] = None


class Variant(BaseModel):
    """A selectable product dimension such as Color or Size."""
    model_config = ConfigDict(frozen=True)

    name: str
    options: List[VariantOption] = Field(default_factory=list)


class Specification(BaseModel):
    """Key/value specification row."""
    model_config = ConfigDict(frozen=True)

    key: str
    value: str


def clean_image_list(urls: List[str]) -> List[str]:
    """Drop empty and data-URI entries, dedupe in order, cap at MAX_IMAGES."""
    seen = set()
    cleaned = []
    for url in urls:
        if not url or url.strip().lower().startswith("data:") or url in seen:
            continue
        seen.add(url)
        cleaned.append(url)
        if len(cleaned) >= MAX_IMAGES:
            break
    return cleaned


class NormalizedProductRecord(BaseModel):
    """
    Normalized product record - the contract between the scrape pipeline
    and its downstream consumers (content generation, store assembly).

    Attributes are snake_case; JSON output uses the camelCase aliases.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Identity
    platform: Platform
    source_url: str = Field(alias="sourceUrl")
    product_id: Optional[str] = Field(default=None, alias="productId")

    # Core fields
    title: str = ""
    price: float = 0.0
    original_price: Optional[float] = Field(default=None, alias="originalPrice")
    currency: str = "USD"

    # Content
    images: List[str] = Field(default_factory=list)
    description: str = ""
    bullets: List[str] = Field(default_factory=list)
    variants: List[Variant] = Field(default_factory=list)
    specifications: List[Specification] = Field(default_factory=list)

    # Social proof
    rating: Optional[float] = None
    review_count: Optional[int] = Field(default=None, alias="reviewCount")

    # Wholesale minimum order quantity (Alibaba)
    moq: Optional[int] = None

    # Metadata
    scraped_at: Optional[datetime] = Field(default=None, alias="scrapedAt")
    is_demo: bool = Field(default=False, alias="isDemo")

    @field_validator("price", mode="before")
    @classmethod
    def _clamp_price(cls, value):
        if value is None:
            return 0.0
        try:
            value = float(value)
        except (TypeError, ValueError):
            return 0.0
        return value if value > 0 else 0.0

    @field_validator("original_price")
    @classmethod
    def _drop_lower_original_price(cls, value: Optional[float], info: ValidationInfo) -> Optional[float]:
        # A compare-at price below the selling price carries no discount
        if value is None or value <= 0:
            return None
        price = info.data.get("price", 0.0)
        if value < price:
            return None
        return value

    @field_validator("images")
    @classmethod
    def _clean_images(cls, value: List[str]) -> List[str]:
        return clean_image_list(value)

    def to_api_dict(self) -> dict:
        """Serialize with camelCase keys for API consumers."""
        return self.model_dump(mode="json", by_alias=True)

    def get_present_fields(self) -> List[str]:
        """Return list of non-empty fields."""
        present = ["platform", "source_url"]
        if self.title:
            present.append("title")
        if self.price:
            present.append("price")
        if self.original_price:
            present.append("original_price")
        if self.images:
            present.append("images")
        if self.description:
            present.append("description")
        if self.bullets:
            present.append("bullets")
        if self.variants:
            present.append("variants")
        if self.specifications:
            present.append("specifications")
        if self.rating:
            present.append("rating")
        if self.review_count:
            present.append("review_count")
        return present

    def get_missing_fields(self) -> List[str]:
        """Return list of empty optional fields."""
        all_optional = [
            "title", "price", "original_price", "images", "description",
            "bullets", "variants", "specifications", "rating", "review_count",
        ]
        present = self.get_present_fields()
        return [f for f in all_optional if f not in present]
