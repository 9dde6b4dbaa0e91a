"""
Verification Probe: confirm a listing is live by reading the seller's own
listing index.

A negative result is never a confirmed failure; listing indexes lag, so the
caller reports it as uncertain.
"""
import logging
import re
from typing import Awaitable, Callable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from scraper.models import VehicleRecord
from scraper.utils import clean_text

from .completion import listing_url_from_text
from .models import PostingOutcome

logger = logging.getLogger(__name__)


SELLING_URL = "https://www.facebook.com/marketplace/you/selling"

TextFetcher = Callable[[], Awaitable[str]]


def tab_fetcher(context, url: str = SELLING_URL, timeout_ms: int = 30_000) -> TextFetcher:
    """
    Read the selling page in a separate tab of the same browser context.

    Falls back to the context's request API (same cookies, raw HTML) when the
    tab cannot be opened or loaded.
    """
    async def fetch() -> str:
        page = None
        try:
            page = await context.new_page()
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            try:
                await page.wait_for_load_state("networkidle", timeout=10_000)
            except PlaywrightTimeout:
                pass  # the index keeps polling; the rendered text is enough
            return await page.inner_text("body", timeout=timeout_ms)
        except PlaywrightError as e:
            logger.warning("Selling tab failed (%s); fetching raw page instead", e)
            resp = await context.request.get(url, timeout=timeout_ms)
            return await resp.text()
        finally:
            if page is not None and not page.is_closed():
                await page.close()
    return fetch


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").lower()


class VerificationProbe:
    """Looks the record up by VIN first and by exact title second."""

    def __init__(self, fetch_text: TextFetcher, selling_url: str = SELLING_URL):
        self.fetch_text = fetch_text
        self.selling_url = selling_url

    @classmethod
    def for_context(cls, context, selling_url: str = SELLING_URL) -> "VerificationProbe":
        return cls(tab_fetcher(context, selling_url), selling_url)

    async def verify(self, record: VehicleRecord, attempt: int = 0,
                     listing_url: Optional[str] = None) -> PostingOutcome:
        def outcome(verified: bool, message: str, url: Optional[str] = None) -> PostingOutcome:
            return PostingOutcome(
                vehicle_id=record.vehicle_id,
                verified=verified,
                listing_url=url or listing_url or self.selling_url,
                message=message,
                attempt=attempt,
                vin=record.vin,
            )

        try:
            text = await self.fetch_text()
        except Exception as e:  # never raise out of verification
            logger.warning("Verification fetch failed: %s", e)
            return outcome(False, f"Could not load the selling page: {e}")

        found_url = listing_url_from_text(text)
        if record.vin and record.vin.upper() in (text or "").upper():
            logger.info("Verified listing by VIN %s", record.vin)
            return outcome(True, f"Listing found on the selling page by VIN {record.vin}", found_url)

        title = clean_text(record.title)
        if title and _normalize(title) in _normalize(text):
            logger.info("Verified listing by title %r", title)
            return outcome(True, f"Listing found on the selling page by title '{title}'", found_url)

        parts = []
        if record.vin:
            parts.append(f"VIN {record.vin}")
        if title:
            parts.append(f"title '{title}'")
        looked_for = " or ".join(parts) or "identifiers"
        logger.info("Listing not in selling index yet (looked for %s)", looked_for)
        return outcome(False, f"Listing not found on the selling page by {looked_for}; the index may lag")
