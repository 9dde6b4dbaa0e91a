"""
Completion detection on the create page.
"""
import logging
import re
from enum import Enum
from typing import Optional

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


SUCCESS_PHRASES = (
    "Your listing is live",
    "Successfully posted",
    "Listing created",
    "View your listing",
)
ERROR_PHRASES = (
    "Something went wrong",
    "Please try again",
    "An error occurred",
)

LISTING_LINK_SELECTOR = 'a[href*="/marketplace/item/"]'
LISTING_URL_RE = re.compile(r"/marketplace/item/(\d+)")


class PageSignal(str, Enum):
    NONE = "none"
    SUCCESS = "success"
    ERROR = "error"


def classify_page_text(text: Optional[str]) -> PageSignal:
    """Success wins over error when a page shows both."""
    if not text:
        return PageSignal.NONE
    t = text.lower()
    if any(p.lower() in t for p in SUCCESS_PHRASES):
        return PageSignal.SUCCESS
    if any(p.lower() in t for p in ERROR_PHRASES):
        return PageSignal.ERROR
    return PageSignal.NONE


def listing_url_from_text(text: Optional[str]) -> Optional[str]:
    m = LISTING_URL_RE.search(text or "")
    if not m:
        return None
    return f"https://www.facebook.com/marketplace/item/{m.group(1)}/"


async def find_listing_url(page) -> Optional[str]:
    """Link to the new listing if the confirmation shows one."""
    try:
        links = page.locator(LISTING_LINK_SELECTOR)
        if await links.count():
            return listing_url_from_text(await links.first.get_attribute("href"))
    except PlaywrightError as e:
        logger.debug("No listing link on page: %s", e)
    return None
