"""
Shared extractor machinery for the Nova product scraper.

Every platform extractor fetches markup or JSON over httpx, parses it with
BeautifulSoup, and fills a NormalizedProductRecord field by field using
ordered fallback chains. The helpers here keep those steps uniform.
"""
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, NamedTuple, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, Tag

from nova.config import config
from nova.models.product import NormalizedProductRecord, Platform, clean_image_list
from nova.utils.logger import LayerLogger


class ExtractionError(Exception):
    """
    Recoverable failure of a single extractor run.

    Raised for network errors, timeouts, non-2xx responses and
    markup that cannot be parsed at all.
    """

    def __init__(self, message: str, url: Optional[str] = None, platform: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.url = url
        self.platform = platform


class MalformedEmbeddedDataError(ValueError):
    """An embedded script blob matched a pattern but is not valid JSON."""


class EmbeddedPattern(NamedTuple):
    """
    A recognized variable-assignment convention for embedded page data.

    `prefix` matches everything up to (not including) the opening brace.
    `required_key` optionally names a top-level key the decoded object
    must carry for the match to count.
    """
    name: str
    prefix: str
    required_key: Optional[str] = None


# =========================================================================
# FIELD ACCESS HELPERS
# =========================================================================

def dig(data: Any, *path: Any) -> Any:
    """Safely walk nested dicts/lists. Returns None on any missing step."""
    current = data
    for key in path:
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and isinstance(key, int):
            current = current[key] if -len(current) <= key < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def is_present(value: Any) -> bool:
    """True for values that count as 'found' in a fallback chain."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


def first_present(*accessors: Callable[[], Any]) -> Any:
    """
    Evaluate accessors in order and return the first present value.

    Each accessor is a zero-argument callable returning an optional value.
    Lookup errors inside an accessor count as 'absent'.
    """
    for accessor in accessors:
        try:
            value = accessor()
        except (KeyError, IndexError, TypeError, AttributeError, ValueError):
            continue
        if is_present(value):
            return value.strip() if isinstance(value, str) else value
    return None


def text_of(element: Optional[Tag]) -> Optional[str]:
    """Visible text of an element, whitespace-collapsed."""
    if element is None:
        return None
    text = " ".join(element.get_text(" ", strip=True).split())
    return text or None


def title_tag_prefix(soup: BeautifulSoup) -> Optional[str]:
    """<title> text up to the first '-' (drops the site-name suffix)."""
    title_tag = soup.find("title")
    if not title_tag:
        return None
    return title_tag.get_text().split("-")[0].strip() or None


# =========================================================================
# PRICE & IMAGE NORMALIZATION
# =========================================================================

PRICE_TOKEN = re.compile(r"\d[\d,]*(?:\.\d+)?")


def parse_price(value: Any) -> float:
    """
    Parse the first price-looking token out of a string.

    Currency symbols, codes and thousands separators are discarded.
    Returns 0.0 when nothing parses; 0 is the 'price missing' sentinel.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else 0.0

    match = PRICE_TOKEN.search(str(value))
    if not match:
        return 0.0
    try:
        price = float(match.group().replace(",", ""))
    except ValueError:
        return 0.0
    return price if price > 0 else 0.0


def parse_int(value: Any) -> Optional[int]:
    """Digits of a string as an int (e.g. '12,847 ratings' -> 12847)."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    digits = re.sub(r"[^\d]", "", str(value))
    if not digits:
        return None
    return int(digits)


def parse_rating(value: Any) -> Optional[float]:
    """First decimal in a string such as '4.5 out of 5 stars'."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        rating = float(value)
    else:
        match = re.search(r"\d+(?:\.\d+)?", str(value))
        if not match:
            return None
        rating = float(match.group())
    if not (0 < rating <= 5):
        return None
    return rating


def absolute_url(src: Optional[str], base_url: Optional[str] = None) -> Optional[str]:
    """
    Turn a link into an absolute URL.

    - //host/path becomes https://host/path
    - relative paths are resolved against base_url
    """
    if not src or not isinstance(src, str):
        return None
    src = src.strip()
    if not src:
        return None
    if src.startswith("//"):
        return f"https:{src}"
    if src.startswith(("http://", "https://")):
        return src
    if base_url:
        return urljoin(base_url, src)
    return None


def normalize_image_url(src: Optional[str], base_url: Optional[str] = None) -> Optional[str]:
    """Absolute image URL, or None for data: URIs and unusable references."""
    if not src or not isinstance(src, str) or src.strip().lower().startswith("data:"):
        return None
    return absolute_url(src, base_url)


def collect_images(
    candidates: Iterable[Optional[str]],
    base_url: Optional[str] = None,
    rewrite: Optional[Callable[[str], str]] = None,
) -> List[str]:
    """Normalize, optionally rewrite to full size, dedupe and cap image URLs."""
    images = []
    for src in candidates:
        url = normalize_image_url(src, base_url)
        if not url:
            continue
        if rewrite:
            url = rewrite(url)
        images.append(url)
    return clean_image_list(images)


# =========================================================================
# EMBEDDED SCRIPT DATA
# =========================================================================

def clean_js_object(js_str: str) -> str:
    """Clean a JavaScript object literal for JSON parsing."""
    # Single-quoted strings/keys to double quotes
    js_str = js_str.replace("'", '"')
    # Remove trailing commas before } or ]
    js_str = re.sub(r",\s*([}\]])", r"\1", js_str)
    return js_str


def loads_js_object(text: str) -> Any:
    """Parse JSON, retrying once with JS-literal cleanup."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(clean_js_object(text))
    except json.JSONDecodeError as e:
        raise MalformedEmbeddedDataError(str(e)) from e


def decode_object_at(text: str, start: int) -> Any:
    """Decode one JSON value beginning at `start`, ignoring trailing text."""
    try:
        value, _ = json.JSONDecoder().raw_decode(text, start)
    except json.JSONDecodeError as e:
        raise MalformedEmbeddedDataError(str(e)) from e
    return value


def find_embedded_json(
    soup: BeautifulSoup,
    patterns: List[EmbeddedPattern],
    logger: Optional[LayerLogger] = None,
) -> Optional[Any]:
    """
    Scan <script> bodies for the first embedded JSON blob.

    Patterns are tried in order for every script; the first one whose
    payload decodes (and carries its required key, if any) wins.
    Malformed blobs fall through to the next pattern.
    """
    for script in soup.find_all("script"):
        content = script.string or script.get_text() or ""
        if not content.strip():
            continue

        for pattern in patterns:
            for match in re.finditer(pattern.prefix, content):
                brace = content.find("{", match.end())
                if brace == -1 or content[match.end():brace].strip():
                    continue
                try:
                    data = decode_object_at(content, brace)
                except MalformedEmbeddedDataError as e:
                    if logger:
                        logger.log_fallback(
                            from_source=pattern.name,
                            to_source="next_pattern",
                            reason=f"malformed embedded data: {e}",
                        )
                    continue

                if not isinstance(data, dict):
                    continue
                if pattern.required_key and pattern.required_key not in data:
                    continue

                if logger:
                    logger.log_action(
                        "embedded_json",
                        "completed",
                        pattern=pattern.name,
                        keys=list(data.keys())[:10],
                    )
                return data

    if logger:
        logger.log_action("embedded_json", "no_data_found")
    return None


# =========================================================================
# BASE EXTRACTOR
# =========================================================================

class BaseExtractor(ABC):
    """
    Base class for per-platform extractors.

    Subclasses implement `_extract`; callers use `extract`, which
    guarantees that every failure surfaces as ExtractionError.
    """

    platform: Platform = Platform.GENERIC_HTTP

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        page_timeout: Optional[float] = None,
        api_timeout: Optional[float] = None,
        headers: Optional[dict] = None,
        default_currency: Optional[str] = None,
    ):
        self.client = client
        self.page_timeout = page_timeout if page_timeout is not None else config.PAGE_TIMEOUT
        self.api_timeout = api_timeout if api_timeout is not None else config.API_TIMEOUT
        self.headers = headers or config.browser_headers()
        self.default_currency = default_currency or config.DEFAULT_CURRENCY
        self.logger = LayerLogger(f"{self.platform.value}_extractor")

    async def extract(self, url: str) -> NormalizedProductRecord:
        """
        Extract a candidate record from a product URL.

        Raises:
            ExtractionError: on any fetch or parse failure
        """
        self.logger.log_action("extract", "started", url=url)
        try:
            record = await self._extract(url)
        except ExtractionError:
            raise
        except Exception as e:
            self.logger.log_error(
                f"Extraction failed: {str(e)}",
                error_type=type(e).__name__,
                url=url,
            )
            raise ExtractionError(str(e), url=url, platform=self.platform.value) from e

        self.logger.log_extraction(
            platform=self.platform.value,
            fields_present=record.get_present_fields(),
            fields_missing=record.get_missing_fields(),
            url=url,
        )
        return record

    @abstractmethod
    async def _extract(self, url: str) -> NormalizedProductRecord:
        """Platform-specific extraction."""

    def parse_html(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html, "lxml")

    async def _get(self, url: str, timeout: float, headers: dict) -> httpx.Response:
        if self.client is not None:
            return await self.client.get(url, headers=headers, timeout=timeout, follow_redirects=True)
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            return await client.get(url, headers=headers)

    async def fetch(
        self,
        url: str,
        timeout: Optional[float] = None,
        headers: Optional[dict] = None,
        purpose: str = "product_page",
    ) -> httpx.Response:
        """
        GET a URL with an explicit timeout.

        Raises:
            ExtractionError: on network error, timeout or non-2xx status
        """
        timeout = timeout if timeout is not None else self.page_timeout
        try:
            response = await self._get(url, timeout, headers or self.headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.log_http_fetch(url, purpose, e.response.status_code, "bad_status")
            raise ExtractionError(
                f"HTTP {e.response.status_code} fetching {purpose}",
                url=url,
                platform=self.platform.value,
            ) from e
        except httpx.TimeoutException as e:
            self.logger.log_http_fetch(url, purpose, None, "timeout", timeout=timeout)
            raise ExtractionError(
                f"Timed out after {timeout}s fetching {purpose}",
                url=url,
                platform=self.platform.value,
            ) from e
        except httpx.HTTPError as e:
            self.logger.log_http_fetch(url, purpose, None, "network_error", error=str(e))
            raise ExtractionError(
                f"Failed to fetch {purpose}: {str(e)}",
                url=url,
                platform=self.platform.value,
            ) from e

        self.logger.log_http_fetch(
            url,
            purpose,
            response.status_code,
            "ok",
            content_length=len(response.content),
        )
        return response

    async def fetch_text(self, url: str, **kwargs) -> str:
        response = await self.fetch(url, **kwargs)
        return response.text

    async def fetch_json(self, url: str, **kwargs) -> Any:
        response = await self.fetch(url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise ExtractionError(
                "Response is not valid JSON",
                url=url,
                platform=self.platform.value,
            ) from e
