"""
Shared extraction pipeline for site scrape adapters.
"""
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlparse

from playwright.async_api import Error as PlaywrightError

from .locator import FieldLocator, MILEAGE_PATTERN, PRICE_PATTERN, VIN_PATTERN
from .models import MAX_LISTING_IMAGES, VehicleRecord, clean_record
from .utils import clean_text, dedupe, now_iso, parse_title, split_trim

logger = logging.getLogger(__name__)


# Images examined per selector
MAX_IMAGE_NODES = 80
LARGE_SIZE_SEGMENT = "/1920x1440"
# Lookahead leaves the closing slash for an adjacent segment
SIZE_SEGMENT_RE = re.compile(r"/(\d+)x(\d+)(?=/)")

# Record fields filled from per-site selector lists
SELECTOR_FIELDS = (
    "trim", "price", "mileage", "vin", "exterior_color", "interior_color",
    "drivetrain", "transmission", "engine", "mpg", "condition", "body_style",
    "fuel_type", "dealer_name", "dealer_phone", "dealer_address",
    "stock_number", "description",
)

# Page-text fallbacks for fields whose markup drifts the most
PATTERN_FALLBACKS = {
    "price": PRICE_PATTERN,
    "mileage": MILEAGE_PATTERN,
    "vin": VIN_PATTERN,
}


class ExtractionError(Exception):
    """The adapter could not resolve a minimal identity for the listing."""


def upgrade_size_segment(url: str) -> str:
    """Swap a WIDTHxHEIGHT path segment for the large-image size."""
    def repl(m):
        return m.group(0) if m.group(0) == LARGE_SIZE_SEGMENT else LARGE_SIZE_SEGMENT
    return SIZE_SEGMENT_RE.sub(repl, url)


def collect_image_urls(
    raw: Iterable[Optional[str]],
    upgrade: Callable[[str], str],
    limit: int = MAX_LISTING_IMAGES,
    base_url: str = "",
) -> List[str]:
    """
    Upgrade, deduplicate by resolved URL, and cap a stream of image sources.

    Protocol- and root-relative sources are resolved against ``base_url``
    the way the browser resolves ``img.src``. Order of first appearance is
    preserved.
    """
    urls: List[str] = []
    seen = set()
    for src in raw:
        if not src:
            continue
        src = urljoin(base_url, src.strip())
        if urlparse(src).scheme not in ("http", "https"):
            continue
        src = upgrade(src)
        if src in seen:
            continue
        seen.add(src)
        urls.append(src)
        if len(urls) >= limit:
            break
    return urls


class SiteAdapter:
    """
    Base adapter: subclasses provide the site's selector dialect.

    ``extract()`` never fails because a single field is missing; it only
    raises ExtractionError when no heading can be resolved at all.
    """

    site: str = ""
    heading_selectors: Sequence[str] = ("h1",)
    field_selectors: Dict[str, Sequence[str]] = {}
    image_selectors: Sequence[str] = ("picture img",)
    image_attributes: Sequence[str] = ("src", "data-src", "data-original", "srcset")
    feature_selectors: Sequence[str] = ()
    # (pattern, replacement) pairs applied after the size-segment swap
    thumbnail_rules: Sequence[Tuple[str, str]] = ()

    def __init__(self, page, max_images: int = MAX_LISTING_IMAGES):
        self.page = page
        self.max_images = max_images
        self.locator = FieldLocator(page)

    async def extract(self) -> VehicleRecord:
        rec = VehicleRecord(source=self.site, scraped_at=now_iso(), url=self.page.url)

        heading = await self.locator.text(self.heading_selectors, field="heading")
        rec.year, rec.make, rec.model = await self.extract_identity(heading)
        if not heading and not (rec.year and rec.make):
            raise ExtractionError(f"{self.site}: no listing heading found on {self.page.url}")

        for name in SELECTOR_FIELDS:
            value = await self.extract_field(name)
            if value:
                setattr(rec, name, value)

        rec.model, rec.trim = split_trim(rec.model, rec.trim)
        rec.images = await self.scrape_images()
        rec.features = await self.scrape_features()

        rec = clean_record(rec)
        logger.info(
            "Extracted %s from %s: price=%s mileage=%s vin=%s images=%d",
            rec.title or "?", self.site, rec.price, rec.mileage, rec.vin, len(rec.images),
        )
        return rec

    async def extract_identity(self, heading: Optional[str]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """Year/make/model from structured fields, falling back to the heading."""
        t_year, t_make, t_model = parse_title(heading)
        year = await self._structured("year") or t_year
        make = await self._structured("make") or t_make
        model = await self._structured("model") or t_model
        return year, make, model

    async def _structured(self, name: str) -> Optional[str]:
        selectors = self.field_selectors.get(name)
        if not selectors:
            return None
        return await self.locator.text(selectors, field=name)

    async def extract_field(self, name: str) -> Optional[str]:
        selectors = self.field_selectors.get(name, ())
        regex = PATTERN_FALLBACKS.get(name)
        if regex is not None:
            return await self.locator.text_or_pattern(selectors, regex, field=name)
        if not selectors:
            return None
        return await self.locator.text(selectors, field=name)

    def upgrade_image_url(self, url: str) -> str:
        url = upgrade_size_segment(url)
        for pattern, repl in self.thumbnail_rules:
            url = re.sub(pattern, repl, url)
        return url

    async def _image_sources(self) -> List[Optional[str]]:
        raw: List[Optional[str]] = []
        for sel in self.image_selectors:
            try:
                imgs = self.page.locator(sel)
                n = await imgs.count()
                for i in range(min(n, MAX_IMAGE_NODES)):
                    img = imgs.nth(i)
                    for attr in self.image_attributes:
                        src = await img.get_attribute(attr)
                        if src:
                            if attr == "srcset":
                                src = src.split(",")[0].split(" ")[0]
                            raw.append(src)
                            break
            except PlaywrightError as e:
                logger.debug("Image selector %s failed: %s", sel, e)
        return raw

    async def scrape_images(self) -> List[str]:
        return collect_image_urls(await self._image_sources(), self.upgrade_image_url, self.max_images,
                                  base_url=self.page.url)

    async def scrape_features(self) -> List[str]:
        features: List[str] = []
        for sel in self.feature_selectors:
            try:
                nodes = self.page.locator(sel)
                n = await nodes.count()
                for i in range(min(n, 200)):
                    text = clean_text(await nodes.nth(i).inner_text())
                    if text:
                        features.append(text)
            except PlaywrightError as e:
                logger.debug("Feature selector %s failed: %s", sel, e)
        return dedupe(features)
